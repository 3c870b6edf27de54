from tripplanner.extensions import get_user_store
from tripplanner.utils.helpers import new_id, utc_now_iso


class User:
    def __init__(self, user_dict):
        self.id = str(user_dict["id"])
        self.email = user_dict.get("email")
        self.name = user_dict.get("name")
        self.picture = user_dict.get("picture")

    def to_public(self):
        """User fields safe to return to clients (never the password hash)."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "picture": self.picture,
        }

    @staticmethod
    def find_by_id(user_id):
        return get_user_store().find_by_id(user_id)

    @staticmethod
    def find_by_email(email):
        return get_user_store().find_by_email(email)

    @staticmethod
    def create(email, name, password_hash):
        now = utc_now_iso()
        doc = {
            "id": new_id("user"),
            "email": email,
            "name": name,
            "password_hash": password_hash,
            "picture": None,
            "provider": "email",
            "createdAt": now,
            "updatedAt": now,
        }
        return get_user_store().create(doc)
