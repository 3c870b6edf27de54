"""
Expense Service - Split calculation and expense validation.

Responsibilities:
- Calculate each participant's owed share of an expense
- Validate expense input before it is accepted into a trip
- Turn stored expense documents back into Expense models
"""
import math
from datetime import date as date_cls
from typing import Any, Dict, List, Optional

from tripplanner.errors import ValidationError
from tripplanner.expenses.models import Expense, MultiPayer, Payer, PayerShare, SinglePayer, Split
from tripplanner.utils.enums import ExpenseCategory, LinkedItemType, SplitMethod

# Absolute tolerance for sums of amounts and percentages
TOLERANCE = 0.01


class SplitCalculator:
    """Per-participant share of an expense, in the expense's own currency."""

    @classmethod
    def split_amount(cls, expense: Expense, participant_id: str) -> float:
        """
        Amount ``participant_id`` owes for ``expense``.

        - equal: amount divided by the number of entries in the split list
        - custom-amount: the participant's recorded amount (0 if unset)
        - custom-percentage: amount * percentage / 100

        A participant missing from the split list owes 0.
        """
        split = expense.find_split(participant_id)
        if split is None:
            return 0.0

        if expense.split_method == SplitMethod.EQUAL:
            return expense.amount / len(expense.splits)
        if expense.split_method == SplitMethod.CUSTOM_AMOUNT:
            return split.amount or 0.0
        if expense.split_method == SplitMethod.CUSTOM_PERCENTAGE:
            return expense.amount * (split.percentage or 0.0) / 100
        return 0.0

    @classmethod
    def split_all(cls, expense: Expense) -> Dict[str, float]:
        return {s.user_id: cls.split_amount(expense, s.user_id) for s in expense.splits}


def _to_number(value: Any, field_name: str) -> float:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(number):
        raise ValidationError(f"{field_name} must be a number")
    return number


class ExpenseValidator:
    """Checks run on every expense create/edit. Failures are reported, never corrected."""

    @classmethod
    def validate(
        cls,
        data: Dict[str, Any],
        expense_id: str,
        created_by: Optional[str] = None,
        created_at: Optional[str] = None,
    ) -> Expense:
        """
        Build an Expense from a request/stored document, or raise ValidationError.

        Args:
            data: camelCase expense document
            expense_id: id to assign
            created_by: user id of the creator
            created_at: ISO timestamp of creation

        Returns:
            The validated Expense
        """
        if not isinstance(data, dict):
            raise ValidationError("Expense must be an object")

        title = str(data.get("title") or "").strip()
        if not title or data.get("amount") in (None, ""):
            raise ValidationError("Please fill in all required fields")

        try:
            amount = _to_number(data.get("amount"), "amount")
        except ValidationError:
            raise ValidationError("Please enter a valid amount")
        if amount <= 0:
            raise ValidationError("Please enter a valid amount")

        currency = str(data.get("currency") or "EUR").strip().upper()
        if len(currency) != 3 or not currency.isalpha():
            raise ValidationError(f"Invalid currency code: {currency}")

        paid_by = cls._validate_payer(data.get("paidBy"), amount)
        split_method = cls._validate_split_method(data.get("splitMethod"))
        splits = cls._validate_splits(data.get("splits"), split_method, amount, currency)

        try:
            category = ExpenseCategory(data.get("category") or ExpenseCategory.OTHER.value)
        except ValueError:
            raise ValidationError(f"Invalid category: {data.get('category')}")

        linked_type = data.get("linkedItemType") or None
        linked_id = data.get("linkedItemId") or None
        if linked_type is not None:
            try:
                LinkedItemType(linked_type)
            except ValueError:
                raise ValidationError(f"Invalid linked item type: {linked_type}")

        return Expense(
            id=expense_id,
            title=title,
            amount=amount,
            currency=currency,
            paid_by=paid_by,
            split_method=split_method,
            splits=splits,
            date=str(data.get("date") or date_cls.today().isoformat()),
            category=category,
            notes=str(data.get("notes") or ""),
            linked_item_type=linked_type,
            linked_item_id=str(linked_id) if linked_id is not None else None,
            created_by=created_by,
            created_at=created_at,
        )

    @classmethod
    def _validate_payer(cls, raw: Any, amount: float) -> Payer:
        if isinstance(raw, str):
            if not raw.strip():
                raise ValidationError("Please select who paid")
            return SinglePayer(raw)

        if not isinstance(raw, list):
            raise ValidationError("Please select who paid")
        if not raw:
            raise ValidationError("Please specify who paid")

        payers: List[PayerShare] = []
        seen = set()
        for entry in raw:
            if not isinstance(entry, dict) or not entry.get("userId"):
                raise ValidationError("Each payer needs a userId and an amount")
            user_id = str(entry["userId"])
            if user_id in seen:
                raise ValidationError(f"Payer {user_id} is listed more than once")
            seen.add(user_id)

            payer_amount = _to_number(entry.get("amount"), "payer amount")
            if payer_amount <= 0:
                raise ValidationError("Each payer amount must be greater than 0")
            payers.append(PayerShare(user_id, payer_amount))

        total_paid = math.fsum(p.amount for p in payers)
        if abs(total_paid - amount) > TOLERANCE:
            raise ValidationError(
                f"Total paid ({total_paid:.2f}) must equal expense amount ({amount:.2f})"
            )
        return MultiPayer(tuple(payers))

    @classmethod
    def _validate_split_method(cls, raw: Any) -> SplitMethod:
        try:
            return SplitMethod(raw or SplitMethod.EQUAL.value)
        except ValueError:
            raise ValidationError(f"Invalid split method: {raw}")

    @classmethod
    def _validate_splits(cls, raw: Any, method: SplitMethod, amount: float, currency: str) -> List[Split]:
        if not isinstance(raw, list) or not raw:
            raise ValidationError("Select at least one participant to split with")

        splits: List[Split] = []
        seen = set()
        for entry in raw:
            if not isinstance(entry, dict) or not entry.get("userId"):
                raise ValidationError("Each split needs a userId")
            user_id = str(entry["userId"])
            if user_id in seen:
                raise ValidationError(f"Participant {user_id} is listed more than once in splits")
            seen.add(user_id)

            split = Split(user_id)
            if method == SplitMethod.CUSTOM_AMOUNT:
                value = entry.get("amount")
                split.amount = 0.0 if value in (None, "") else _to_number(value, "split amount")
                if split.amount < 0:
                    raise ValidationError("Split amounts cannot be negative")
            elif method == SplitMethod.CUSTOM_PERCENTAGE:
                value = entry.get("percentage")
                split.percentage = 0.0 if value in (None, "") else _to_number(value, "split percentage")
                if split.percentage < 0:
                    raise ValidationError("Split percentages cannot be negative")
            splits.append(split)

        if method == SplitMethod.CUSTOM_AMOUNT:
            total = math.fsum(s.amount for s in splits)
            if abs(total - amount) > TOLERANCE:
                raise ValidationError(f"Custom amounts must sum to {amount:g} {currency}")
        elif method == SplitMethod.CUSTOM_PERCENTAGE:
            total = math.fsum(s.percentage for s in splits)
            if abs(total - 100) > TOLERANCE:
                raise ValidationError("Custom percentages must sum to 100%")

        return splits


def expense_from_document(doc: Dict[str, Any]) -> Expense:
    """Rebuild a stored expense, re-running validation on it."""
    if not isinstance(doc, dict):
        raise ValidationError("Expense must be an object")
    return ExpenseValidator.validate(
        doc,
        expense_id=str(doc.get("id") or ""),
        created_by=doc.get("createdBy"),
        created_at=doc.get("createdAt"),
    )
