import time
import uuid
from datetime import datetime, timezone


def new_id(prefix):
    """Document ids look like ``trip-1717171717171-3fa2b1``."""
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def utc_now_iso():
    return datetime.now(timezone.utc).isoformat()
