# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain error taxonomy.
Raised by services and repositories, mapped to HTTP responses in main.py.
"""


class CalendarError(Exception):
    """Base class for every error the calendar service reports to callers."""

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, detail: str = "", public_message: str | None = None) -> None:
        super().__init__(detail or public_message or self.public_message)
        self.detail = detail or self.public_message
        if public_message is not None:
            self.public_message = public_message


class ValidationError(CalendarError):
    """A required field is missing or a value is outside its domain."""

    status_code = 400
    public_message = "Invalid request"


class NotFoundError(CalendarError):
    """No record with the requested identifier exists."""

    status_code = 404
    public_message = "Not found"


class InvariantViolation(CalendarError):
    """The mutation would break a collection-wide rule (e.g. last admin)."""

    status_code = 400
    public_message = "Operation not allowed"


class StorageError(CalendarError):
    """The persistence backend failed (I/O, network, database)."""

    status_code = 500
    public_message = "Storage unavailable"


class AuthError(CalendarError):
    """Credentials did not match any member."""

    status_code = 401
    public_message = "Invalid credentials"
