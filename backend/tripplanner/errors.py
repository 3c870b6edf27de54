"""Error types shared by the services and rendered by the app's error handlers."""


class TripPlannerError(Exception):
    """Base class for errors reported back to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"error": self.message}


class ValidationError(TripPlannerError):
    """User input failed validation; nothing was created or updated."""

    status_code = 400


class Unauthorized(TripPlannerError):
    status_code = 401


class Forbidden(TripPlannerError):
    status_code = 403


class NotFound(TripPlannerError):
    """A referenced trip, expense, user or booking does not exist."""

    status_code = 404


class Conflict(TripPlannerError):
    status_code = 409


class ConversionFailure(Exception):
    """The live rate source failed. Recovered by the rate provider's fallback table."""
