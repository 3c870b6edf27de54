"""Trip expense operations: add, edit, delete, filter and balance reports."""
from typing import List, Optional

import structlog

from tripplanner.core.balance_service import BalanceAggregator, load_expenses
from tripplanner.core.expense_service import ExpenseValidator
from tripplanner.errors import Forbidden, NotFound, ValidationError
from tripplanner.expenses.models import BalanceReport, Expense
from tripplanner.settlements.services import SettlementCalculator
from tripplanner.trips.services import TripService
from tripplanner.utils.enums import Permission
from tripplanner.utils.helpers import new_id, utc_now_iso
from tripplanner.utils.permissions import can_modify_expense

log = structlog.get_logger(__name__)

# Stored expense field -> trip booking list
LINKED_LISTS = {
    "hotel": "hotels",
    "flight": "flights",
    "ride": "rides",
    "attraction": "attractions",
}


def linked_item_label(trip: dict, expense: dict) -> Optional[str]:
    """Human readable label for the booking an expense is linked to, if it still exists."""
    item_type = expense.get("linkedItemType")
    item_id = expense.get("linkedItemId")
    if not item_type or not item_id or item_type not in LINKED_LISTS:
        return None

    # linkedItemId is "<type>-<index>"
    try:
        index = int(str(item_id).rsplit("-", 1)[-1])
    except ValueError:
        return None
    items = trip.get(LINKED_LISTS[item_type]) or []
    if index < 0 or index >= len(items):
        return None
    item = items[index]

    if item_type == "hotel":
        return f"Hotel: {item.get('name')}"
    if item_type == "flight":
        name = " ".join(p for p in (item.get("airline"), item.get("flightNumber")) if p)
        route = f"{item.get('departureAirportCode', '?')} → {item.get('arrivalAirportCode', '?')}"
        return f"Flight: {name} ({route})"
    if item_type == "ride":
        kind = "Taxi" if item.get("type") == "taxi" else "Rental Car"
        return f"{kind} ({item.get('pickup')} → {item.get('dropoff')})"
    return f"Attraction: {item.get('name')}"


def matches_filters(expense: dict, category: Optional[str], participant: Optional[str]) -> bool:
    if category and category != "all" and expense.get("category") != category:
        return False
    if participant and participant != "all":
        paid_by = expense.get("paidBy")
        if isinstance(paid_by, list):
            payers = {p.get("userId") for p in paid_by if isinstance(p, dict)}
        else:
            payers = {paid_by}
        in_splits = any(s.get("userId") == participant for s in expense.get("splits") or [])
        if participant not in payers and not in_splits:
            return False
    return True


class ExpenseService:
    """Expenses live inside their trip document under ``expenses``."""

    @classmethod
    def list_for_trip(cls, trip_id: str, user_id: str, category: str = None, participant: str = None) -> List[dict]:
        trip = TripService.get_for_user(trip_id, user_id)
        result = []
        for expense in trip["expenses"]:
            if not matches_filters(expense, category, participant):
                continue
            expense = dict(expense)
            label = linked_item_label(trip, expense)
            if label:
                expense["linkedItemLabel"] = label
            result.append(expense)
        return result

    @classmethod
    def add(cls, trip_id: str, user_id: str, data: dict) -> dict:
        trip = TripService.get_for_user(trip_id, user_id, Permission.EDIT)
        expense = ExpenseValidator.validate(
            data,
            expense_id=new_id("exp"),
            created_by=user_id,
            created_at=utc_now_iso(),
        )
        cls._check_participants(trip, expense)
        doc = expense.to_dict()
        TripService.save(trip_id, {"expenses": trip["expenses"] + [doc]})
        log.info("expense_added", trip_id=trip_id, expense_id=expense.id, amount=expense.amount, currency=expense.currency)
        return doc

    @classmethod
    def _find(cls, trip: dict, expense_id: str) -> int:
        for i, e in enumerate(trip["expenses"]):
            if e.get("id") == expense_id:
                return i
        raise NotFound("Expense not found")

    @staticmethod
    def _check_participants(trip: dict, expense: Expense) -> None:
        """Every payer and split entry must be the owner or a shared user of the trip."""
        allowed = {p.user_id for p in TripService.participants(trip)}
        for user_id in expense.payer_ids() + [s.user_id for s in expense.splits]:
            if user_id not in allowed:
                raise ValidationError(f"User {user_id} is not a participant in this trip")

    @classmethod
    def update(cls, trip_id: str, user_id: str, expense_id: str, data: dict) -> dict:
        if not isinstance(data, dict):
            raise ValidationError("Expense must be an object")
        trip = TripService.get_for_user(trip_id, user_id, Permission.EDIT)
        i = cls._find(trip, expense_id)
        current = trip["expenses"][i]
        if not can_modify_expense(user_id, trip, current):
            raise Forbidden("Only the expense creator or the trip owner can edit this expense")

        # Partial update: request fields override the stored ones
        merged = dict(current)
        merged.update({k: v for k, v in data.items() if k not in ("id", "createdBy", "createdAt")})
        expense = ExpenseValidator.validate(
            merged,
            expense_id=expense_id,
            created_by=current.get("createdBy"),
            created_at=current.get("createdAt"),
        )
        cls._check_participants(trip, expense)
        doc = expense.to_dict()
        doc["updatedAt"] = utc_now_iso()

        expenses = list(trip["expenses"])
        expenses[i] = doc
        TripService.save(trip_id, {"expenses": expenses})
        log.info("expense_updated", trip_id=trip_id, expense_id=expense_id)
        return doc

    @classmethod
    def delete(cls, trip_id: str, user_id: str, expense_id: str) -> None:
        trip = TripService.get_for_user(trip_id, user_id, Permission.EDIT)
        i = cls._find(trip, expense_id)
        if not can_modify_expense(user_id, trip, trip["expenses"][i]):
            raise Forbidden("Only the expense creator or the trip owner can delete this expense")

        expenses = trip["expenses"][:i] + trip["expenses"][i + 1:]
        TripService.save(trip_id, {"expenses": expenses})
        log.info("expense_deleted", trip_id=trip_id, expense_id=expense_id)

    @classmethod
    def balances(cls, trip_id: str, user_id: str, rate_provider, pivot_currency: str, display_currency: str = None) -> BalanceReport:
        trip = TripService.get_for_user(trip_id, user_id)
        aggregator = BalanceAggregator(rate_provider, pivot_currency)
        display_currency = (display_currency or aggregator.pivot_currency).upper()

        expenses = load_expenses(trip["expenses"])
        balances, total = aggregator.for_expenses(TripService.participants(trip), expenses)

        return BalanceReport(
            pivot_currency=aggregator.pivot_currency,
            balances=balances,
            total=total,
            display_currency=display_currency,
            converted_total=aggregator.converted_total(total, display_currency),
            settlements=SettlementCalculator.calculate_debts(balances),
        )
