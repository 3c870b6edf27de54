"""MongoDB-backed stores. Documents are addressed by their string ``id`` field."""
from typing import List, Optional

from pymongo import DESCENDING, ReturnDocument

# Never leak Mongo's ObjectId into API responses
_NO_OID = {"_id": 0}


class MongoTripStore:
    def __init__(self, db):
        self.collection = db["trips"]

    def list_for_user(self, user_id: str) -> List[dict]:
        cursor = self.collection.find(
            {"$or": [{"userId": user_id}, {"sharedWith.userId": user_id}]},
            _NO_OID,
        ).sort("createdAt", DESCENDING)
        return list(cursor)

    def get(self, trip_id: str) -> Optional[dict]:
        return self.collection.find_one({"id": trip_id}, _NO_OID)

    def create(self, doc: dict) -> dict:
        # insert_one adds _id to the dict it is given
        self.collection.insert_one(dict(doc))
        return doc

    def update(self, trip_id: str, fields: dict) -> Optional[dict]:
        fields = {k: v for k, v in fields.items() if k != "_id"}
        return self.collection.find_one_and_update(
            {"id": trip_id},
            {"$set": fields},
            projection=_NO_OID,
            return_document=ReturnDocument.AFTER,
        )

    def delete(self, trip_id: str) -> bool:
        return self.collection.delete_one({"id": trip_id}).deleted_count > 0


class MongoUserStore:
    def __init__(self, db):
        self.collection = db["users"]

    def find_by_id(self, user_id: str) -> Optional[dict]:
        return self.collection.find_one({"id": user_id}, _NO_OID)

    def find_by_email(self, email: str) -> Optional[dict]:
        return self.collection.find_one({"email": email}, _NO_OID)

    def create(self, doc: dict) -> dict:
        self.collection.insert_one(dict(doc))
        return doc
