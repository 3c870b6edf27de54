"""Expense models."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from tripplanner.utils.enums import ExpenseCategory, SplitMethod


@dataclass(frozen=True)
class SinglePayer:
    user_id: str


@dataclass(frozen=True)
class PayerShare:
    user_id: str
    amount: float


@dataclass(frozen=True)
class MultiPayer:
    payers: Tuple[PayerShare, ...]


Payer = Union[SinglePayer, MultiPayer]


@dataclass
class Split:
    user_id: str
    amount: Optional[float] = None
    percentage: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"userId": self.user_id}
        if self.amount is not None:
            data["amount"] = self.amount
        if self.percentage is not None:
            data["percentage"] = self.percentage
        return data


@dataclass
class Expense:
    id: str
    title: str
    amount: float
    currency: str
    paid_by: Payer
    split_method: SplitMethod
    splits: List[Split]
    date: Optional[str] = None
    category: ExpenseCategory = ExpenseCategory.OTHER
    notes: str = ""
    linked_item_type: Optional[str] = None
    linked_item_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None

    def find_split(self, user_id: str) -> Optional[Split]:
        for split in self.splits:
            if split.user_id == user_id:
                return split
        return None

    def payer_ids(self) -> List[str]:
        if isinstance(self.paid_by, SinglePayer):
            return [self.paid_by.user_id]
        return [p.user_id for p in self.paid_by.payers]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the stored/API document shape (camelCase keys)."""
        if isinstance(self.paid_by, SinglePayer):
            paid_by: Any = self.paid_by.user_id
        else:
            paid_by = [{"userId": p.user_id, "amount": p.amount} for p in self.paid_by.payers]

        data = {
            "id": self.id,
            "title": self.title,
            "amount": self.amount,
            "currency": self.currency,
            "paidBy": paid_by,
            "splitMethod": self.split_method.value,
            "splits": [s.to_dict() for s in self.splits],
            "date": self.date,
            "category": self.category.value,
            "notes": self.notes,
            "createdBy": self.created_by,
            "createdAt": self.created_at,
        }
        if self.linked_item_type and self.linked_item_id:
            data["linkedItemType"] = self.linked_item_type
            data["linkedItemId"] = self.linked_item_id
        return data


@dataclass
class Participant:
    user_id: str
    name: str
    email: str = ""


@dataclass
class ParticipantBalance:
    """Derived per-participant position. Recomputed on every read, never stored."""
    user_id: str
    name: str
    total_paid: float = 0.0
    total_owed: float = 0.0
    balance: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "name": self.name,
            "totalPaid": round(self.total_paid, 2),
            "totalOwed": round(self.total_owed, 2),
            "balance": round(self.balance, 2),
        }


@dataclass
class BalanceReport:
    pivot_currency: str
    balances: List[ParticipantBalance]
    total: float
    display_currency: str
    converted_total: float
    settlements: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pivotCurrency": self.pivot_currency,
            "balances": [b.to_dict() for b in self.balances],
            "totalExpenses": round(self.total, 2),
            "displayCurrency": self.display_currency,
            "convertedTotal": round(self.converted_total, 2),
            "settlements": self.settlements,
        }
