import structlog
from flask import current_app
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from tripplanner.core.currency_service import RapidApiRateSource, RateCache, RateProvider
from tripplanner.storage import MemoryTripStore, MemoryUserStore, MongoTripStore, MongoUserStore

log = structlog.get_logger(__name__)

EXTENSION_KEY = "tripplanner"


def _connect_mongo(app):
    """Return a database handle, or None when Mongo is not configured or unreachable."""
    mongo_uri = app.config.get("MONGO_URI")
    if not mongo_uri:
        return None

    try:
        client = MongoClient(mongo_uri, serverSelectionTimeoutMS=app.config["MONGO_TIMEOUT_MS"])
        client.admin.command("ping")
    except PyMongoError as e:
        log.warning("mongo_unavailable", error=str(e))
        return None

    # get_default_database() extracts the DB name from the URI when there is one
    db = client.get_default_database(default=app.config["MONGO_DB_NAME"])
    log.info("mongo_connected", database=db.name)
    return db


def init_storage(app):
    db = _connect_mongo(app)
    state = app.extensions.setdefault(EXTENSION_KEY, {})

    if db is not None:
        state["trips"] = MongoTripStore(db)
        state["users"] = MongoUserStore(db)
        state["storage"] = "mongodb"
    else:
        state["trips"] = MemoryTripStore()
        state["users"] = MemoryUserStore()
        state["storage"] = "memory"
        log.warning("using_memory_storage")


def init_currency(app, source=None, cache=None):
    """Attach the rate provider. Tests pass a fake ``source`` and a frozen-clock ``cache``."""
    if source is None:
        source = RapidApiRateSource(
            api_key=app.config.get("RAPIDAPI_KEY"),
            host=app.config.get("RAPIDAPI_HOST"),
            timeout=app.config.get("RATE_API_TIMEOUT"),
        )
    if cache is None:
        cache = RateCache(ttl=app.config.get("RATE_CACHE_TTL", 3600))

    state = app.extensions.setdefault(EXTENSION_KEY, {})
    state["rates"] = RateProvider(source, cache=cache)


def _state():
    state = current_app.extensions.get(EXTENSION_KEY)
    if state is None:
        raise RuntimeError("Extensions not initialized. Call init_storage first.")
    return state


def get_trip_store():
    """Get the trip store. Must be called inside an app context."""
    return _state()["trips"]


def get_user_store():
    """Get the user store. Must be called inside an app context."""
    return _state()["users"]


def get_rate_provider():
    return _state()["rates"]


def get_storage_kind():
    """Either ``"mongodb"`` or ``"memory"``."""
    return _state()["storage"]
