"""Request validators."""
from tripplanner.errors import ValidationError


def _join(keys):
    if len(keys) == 1:
        return keys[0]
    return ", ".join(keys[:-1]) + " and " + keys[-1]


def require_keys(payload, *keys):
    """Raise ValidationError unless every key is present and non-empty."""
    missing = [k for k in keys if not (payload or {}).get(k)]
    if missing:
        verb = "is" if len(keys) == 1 else "are"
        raise ValidationError(f"{_join(list(keys))} {verb} required")
    return True


def has_strings(payload, *keys):
    """True when ``payload`` is an object whose ``keys`` are all non-empty strings."""
    if not isinstance(payload, dict):
        return False
    return all(isinstance(payload.get(k), str) and payload[k].strip() for k in keys)
