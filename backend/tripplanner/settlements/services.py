"""Settlement suggestions - Splitwise-style transfer minimization over derived balances."""
from typing import Any, Dict, Iterable, List

from tripplanner.expenses.models import ParticipantBalance

# Balances within a cent of zero are treated as settled
THRESHOLD = 0.01


class SettlementCalculator:
    """Turn participant balances into a short list of who pays whom."""

    @staticmethod
    def calculate_debts(balances: Iterable[ParticipantBalance]) -> List[Dict[str, Any]]:
        """
        Calculate who owes whom using a greedy algorithm to minimize transactions.

        Returns list of: {fromUser, fromName, toUser, toName, amount}
        """
        creditors = []  # People who are OWED money
        debtors = []    # People who OWE money

        for b in balances:
            if b.balance > THRESHOLD:
                creditors.append({"user_id": b.user_id, "name": b.name, "amount": b.balance})
            elif b.balance < -THRESHOLD:
                debtors.append({"user_id": b.user_id, "name": b.name, "amount": -b.balance})

        # Largest first; ties keep participant order
        creditors.sort(key=lambda x: -x["amount"])
        debtors.sort(key=lambda x: -x["amount"])

        settlements = []
        for debtor in debtors:
            debt = debtor["amount"]

            while debt > THRESHOLD and creditors:
                creditor = creditors[0]
                amount = round(min(debt, creditor["amount"]), 2)

                if amount > THRESHOLD:
                    settlements.append({
                        "fromUser": debtor["user_id"],
                        "fromName": debtor["name"],
                        "toUser": creditor["user_id"],
                        "toName": creditor["name"],
                        "amount": amount,
                    })

                debt -= amount
                creditor["amount"] -= amount

                if creditor["amount"] < THRESHOLD:
                    creditors.pop(0)

        return settlements
