"""Permission helpers."""
from typing import Optional

from tripplanner.utils.enums import Permission


def is_owner(user_id, trip):
    return trip.get("userId") == user_id


def trip_permission(user_id, trip) -> Optional[Permission]:
    """Owner edits; shared users get their recorded permission; everyone else gets None."""
    if is_owner(user_id, trip):
        return Permission.EDIT
    for share in trip.get("sharedWith") or []:
        if share.get("userId") == user_id:
            try:
                return Permission(share.get("permission") or Permission.EDIT.value)
            except ValueError:
                return Permission.VIEW
    return None


def can_modify_expense(user_id, trip, expense_doc):
    """Only the expense's creator or the trip owner may edit or delete it."""
    return expense_doc.get("createdBy") == user_id or is_owner(user_id, trip)
