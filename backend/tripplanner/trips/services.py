"""
Trip Service - Trip documents, booking lists and sharing.

Responsibilities:
- Create/read/update/delete trips through the configured store
- Enforce view/edit access for owners and shared users
- Add and remove bookings (flights, hotels, rides, attractions)
- Share and unshare trips with other accounts
- Derive the participant set used for expense balances
"""
from typing import Dict, List, Tuple

import structlog

from tripplanner.errors import Forbidden, NotFound, ValidationError
from tripplanner.expenses.models import Participant
from tripplanner.extensions import get_trip_store, get_user_store
from tripplanner.utils.enums import Permission, TripItemType
from tripplanner.utils.helpers import new_id, utc_now_iso
from tripplanner.utils.permissions import is_owner, trip_permission
from tripplanner.utils.validators import require_keys

log = structlog.get_logger(__name__)

LIST_FIELDS = ("flights", "hotels", "rides", "attractions", "expenses", "sharedWith")

# Fields a plain trip update may not touch; they have dedicated endpoints
PROTECTED_FIELDS = ("_id", "id", "userId", "createdAt", "expenses", "sharedWith")

# Required fields per booking list
ITEM_REQUIREMENTS: Dict[TripItemType, Tuple[str, ...]] = {
    TripItemType.FLIGHTS: ("flightNumber", "departureDateTime", "arrivalDateTime"),
    TripItemType.HOTELS: ("name", "checkIn", "checkOut"),
    TripItemType.RIDES: ("pickup", "dropoff"),
    TripItemType.ATTRACTIONS: ("name", "scheduledDate"),
}


class TripService:
    """Trip operations. Every lookup is scoped to the acting user."""

    @staticmethod
    def normalize(trip: dict) -> dict:
        """Ensure every list field exists and is a list."""
        for name in LIST_FIELDS:
            if not isinstance(trip.get(name), list):
                trip[name] = []
        return trip

    @classmethod
    def list_for_user(cls, user_id: str) -> List[dict]:
        return [cls.normalize(t) for t in get_trip_store().list_for_user(user_id)]

    @classmethod
    def get_for_user(cls, trip_id: str, user_id: str, need: Permission = Permission.VIEW) -> dict:
        """
        Load a trip the user may access.

        Raises NotFound when the trip is missing or not visible to the user,
        Forbidden when the user may view but ``need`` is edit.
        """
        trip = get_trip_store().get(trip_id)
        if not trip:
            raise NotFound("Trip not found")

        permission = trip_permission(user_id, trip)
        if permission is None:
            raise NotFound("Trip not found")
        if need == Permission.EDIT and permission != Permission.EDIT:
            raise Forbidden("You only have view access to this trip")

        trip = cls.normalize(trip)
        trip["permission"] = permission.value
        return trip

    @classmethod
    def get_owned(cls, trip_id: str, user_id: str) -> dict:
        trip = cls.get_for_user(trip_id, user_id)
        if not is_owner(user_id, trip):
            raise Forbidden("Only the trip owner can do this")
        return trip

    @classmethod
    def create(cls, data: dict, user: dict) -> dict:
        if not isinstance(data, dict):
            raise ValidationError("Trip must be an object")
        require_keys(data, "name")
        now = utc_now_iso()
        trip = {k: v for k, v in data.items() if k not in PROTECTED_FIELDS}
        trip.update({
            "id": new_id("trip"),
            "userId": user["id"],
            "userName": user.get("name") or "Owner",
            "userEmail": user.get("email") or "",
            "createdAt": now,
            "updatedAt": now,
        })
        cls.normalize(trip)
        created = get_trip_store().create(trip)
        log.info("trip_created", trip_id=created["id"], name=created.get("name"))
        return created

    @classmethod
    def save(cls, trip_id: str, fields: dict) -> dict:
        fields = dict(fields, updatedAt=utc_now_iso())
        updated = get_trip_store().update(trip_id, fields)
        if not updated:
            raise NotFound("Trip not found")
        return cls.normalize(updated)

    @classmethod
    def update(cls, trip_id: str, user_id: str, data: dict) -> dict:
        if not isinstance(data, dict):
            raise ValidationError("Trip must be an object")
        cls.get_for_user(trip_id, user_id, Permission.EDIT)
        fields = {k: v for k, v in data.items() if k not in PROTECTED_FIELDS + ("permission",)}
        updated = cls.save(trip_id, fields)
        log.info("trip_updated", trip_id=trip_id)
        return updated

    @classmethod
    def delete(cls, trip_id: str, user_id: str) -> None:
        cls.get_owned(trip_id, user_id)
        if not get_trip_store().delete(trip_id):
            raise NotFound("Trip not found")
        log.info("trip_deleted", trip_id=trip_id)

    @classmethod
    def add_item(cls, trip_id: str, user_id: str, item_type: TripItemType, item: dict) -> dict:
        trip = cls.get_for_user(trip_id, user_id, Permission.EDIT)
        if not isinstance(item, dict):
            raise ValidationError("Booking must be an object")
        require_keys(item, *ITEM_REQUIREMENTS[item_type])

        items = trip[item_type.value] + [item]
        return cls.save(trip_id, {item_type.value: items})

    @classmethod
    def remove_item(cls, trip_id: str, user_id: str, item_type: str, idx: str) -> dict:
        try:
            kind = TripItemType(item_type)
        except ValueError:
            raise ValidationError("Invalid type")

        trip = cls.get_for_user(trip_id, user_id, Permission.EDIT)
        items = trip[kind.value]
        try:
            i = int(idx)
        except (TypeError, ValueError):
            raise ValidationError("Invalid index")
        if i < 0 or i >= len(items):
            raise ValidationError("Invalid index")

        del items[i]
        return cls.save(trip_id, {kind.value: items})

    @classmethod
    def share(cls, trip_id: str, user_id: str, email: str, permission: str = None) -> dict:
        trip = cls.get_owned(trip_id, user_id)
        if not email:
            raise ValidationError("email is required")

        try:
            level = Permission(permission or Permission.EDIT.value)
        except ValueError:
            raise ValidationError(f"Invalid permission: {permission}")

        target = get_user_store().find_by_email(email)
        if not target:
            raise NotFound("User not found")
        if target["id"] == trip["userId"]:
            raise ValidationError("Trip owner cannot be added as a shared user")

        shared = [s for s in trip["sharedWith"] if s.get("userId") != target["id"]]
        shared.append({
            "userId": target["id"],
            "email": target.get("email"),
            "name": target.get("name"),
            "permission": level.value,
            "sharedAt": utc_now_iso(),
        })
        log.info("trip_shared", trip_id=trip_id, shared_with=target["id"], permission=level.value)
        return cls.save(trip_id, {"sharedWith": shared})

    @classmethod
    def unshare(cls, trip_id: str, user_id: str, shared_user_id: str) -> dict:
        trip = cls.get_owned(trip_id, user_id)
        shared = [s for s in trip["sharedWith"] if s.get("userId") != shared_user_id]
        if len(shared) == len(trip["sharedWith"]):
            raise NotFound("User is not shared on this trip")
        return cls.save(trip_id, {"sharedWith": shared})

    @staticmethod
    def participants(trip: dict) -> List[Participant]:
        """Owner plus every shared user."""
        people = [
            Participant(
                user_id=trip["userId"],
                name=trip.get("userName") or "Owner",
                email=trip.get("userEmail") or "",
            )
        ]
        for s in trip.get("sharedWith") or []:
            if s.get("userId"):
                people.append(Participant(user_id=s["userId"], name=s.get("name") or "", email=s.get("email") or ""))
        return people
