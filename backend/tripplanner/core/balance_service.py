"""
Balance Service - Per-participant paid/owed/net positions for a trip.

Responsibilities:
- Convert every expense into the pivot currency
- Credit payers (prorated for multiple payers) and debit split participants
- Convert the trip total into a display currency
"""
from typing import Dict, Iterable, List, Optional, Sequence

import structlog

from tripplanner.core.expense_service import SplitCalculator, expense_from_document
from tripplanner.errors import ValidationError
from tripplanner.expenses.models import (
    Expense,
    MultiPayer,
    Participant,
    ParticipantBalance,
    SinglePayer,
)

log = structlog.get_logger(__name__)


class BalanceAggregator:
    """Folds a trip's expenses into ParticipantBalance rows in one pivot currency."""

    def __init__(self, rate_provider, pivot_currency: str = "EUR"):
        self.rates = rate_provider
        self.pivot_currency = pivot_currency.upper()

    @staticmethod
    def calculate(
        participants: Iterable[Participant],
        expenses: Sequence[Expense],
        pivot_amounts: Sequence[Optional[float]],
    ) -> List[ParticipantBalance]:
        """
        Pure balance fold.

        Args:
            participants: the trip's participant set (owner + shared users)
            expenses: validated expenses
            pivot_amounts: amount in the pivot currency for the expense at the
                same position; a missing or None entry uses the original amount

        Returns:
            One ParticipantBalance per participant, in participant order.
            Payers or split entries outside the participant set are skipped.
        """
        balances: Dict[str, ParticipantBalance] = {}
        for p in participants:
            balances.setdefault(p.user_id, ParticipantBalance(user_id=p.user_id, name=p.name))

        for i, expense in enumerate(expenses):
            pivot_amount = pivot_amounts[i] if i < len(pivot_amounts) else None
            if pivot_amount is None:
                pivot_amount = expense.amount
            # Share of the original amount -> same share of the pivot amount
            ratio = pivot_amount / expense.amount

            payer = expense.paid_by
            if isinstance(payer, SinglePayer):
                if payer.user_id in balances:
                    balances[payer.user_id].total_paid += pivot_amount
            elif isinstance(payer, MultiPayer):
                for share in payer.payers:
                    if share.user_id in balances:
                        balances[share.user_id].total_paid += share.amount * ratio
            else:
                raise TypeError(f"Unknown payer type: {type(payer).__name__}")

            for split in expense.splits:
                row = balances.get(split.user_id)
                if row is None:
                    continue
                owed_original = SplitCalculator.split_amount(expense, split.user_id)
                row.total_owed += owed_original * ratio

        for row in balances.values():
            row.balance = row.total_paid - row.total_owed

        return list(balances.values())

    def pivot_amounts(self, expenses: Sequence[Expense]) -> List[float]:
        """Pivot-currency amounts, positionally aligned with ``expenses``."""
        # Keyed by position: stored expense ids are not guaranteed unique
        items = {i: (e.amount, e.currency) for i, e in enumerate(expenses)}
        converted = self.rates.convert_each(items, self.pivot_currency)
        return [converted[i] for i in range(len(expenses))]

    def for_expenses(self, participants: List[Participant], expenses: List[Expense]):
        """
        Balances plus the pivot-currency total for a list of expenses.

        Returns:
            Tuple of (balances, pivot total)
        """
        amounts = self.pivot_amounts(expenses)
        balances = self.calculate(participants, expenses, amounts)
        return balances, sum(amounts)

    def converted_total(self, pivot_total: float, display_currency: str) -> float:
        """Pivot total in ``display_currency``. A zero total never hits the rate provider."""
        if pivot_total == 0:
            return 0.0
        return self.rates.convert(pivot_total, self.pivot_currency, display_currency)


def load_expenses(documents: Optional[Iterable[dict]]) -> List[Expense]:
    """Parse stored expense documents, skipping any that no longer validate."""
    expenses = []
    for doc in documents or []:
        try:
            expenses.append(expense_from_document(doc))
        except ValidationError as e:
            expense_id = doc.get("id") if isinstance(doc, dict) else None
            log.warning("stored_expense_invalid", expense_id=expense_id, error=e.message)
    return expenses
