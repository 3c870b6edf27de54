"""Trip and user persistence: MongoDB with an in-memory fallback."""

from .memory import MemoryTripStore, MemoryUserStore
from .mongo import MongoTripStore, MongoUserStore

__all__ = ["MemoryTripStore", "MemoryUserStore", "MongoTripStore", "MongoUserStore"]
