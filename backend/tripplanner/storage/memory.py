"""In-memory stores used when MongoDB is unavailable (and in tests)."""
import copy
import threading
from typing import Dict, List, Optional


class MemoryTripStore:
    def __init__(self):
        self._trips: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def list_for_user(self, user_id: str) -> List[dict]:
        with self._lock:
            trips = [
                copy.deepcopy(t) for t in self._trips.values()
                if t.get("userId") == user_id
                or any(s.get("userId") == user_id for s in t.get("sharedWith") or [])
            ]
        trips.sort(key=lambda t: t.get("createdAt", ""), reverse=True)
        return trips

    def get(self, trip_id: str) -> Optional[dict]:
        with self._lock:
            trip = self._trips.get(trip_id)
            return copy.deepcopy(trip) if trip else None

    def create(self, doc: dict) -> dict:
        with self._lock:
            self._trips[doc["id"]] = copy.deepcopy(doc)
        return copy.deepcopy(doc)

    def update(self, trip_id: str, fields: dict) -> Optional[dict]:
        with self._lock:
            trip = self._trips.get(trip_id)
            if trip is None:
                return None
            trip.update(copy.deepcopy(fields))
            return copy.deepcopy(trip)

    def delete(self, trip_id: str) -> bool:
        with self._lock:
            return self._trips.pop(trip_id, None) is not None


class MemoryUserStore:
    def __init__(self):
        self._users: Dict[str, dict] = {}
        self._lock = threading.Lock()

    def find_by_id(self, user_id: str) -> Optional[dict]:
        with self._lock:
            user = self._users.get(user_id)
            return copy.deepcopy(user) if user else None

    def find_by_email(self, email: str) -> Optional[dict]:
        with self._lock:
            for user in self._users.values():
                if user.get("email") == email:
                    return copy.deepcopy(user)
        return None

    def create(self, doc: dict) -> dict:
        with self._lock:
            self._users[doc["id"]] = copy.deepcopy(doc)
        return copy.deepcopy(doc)
