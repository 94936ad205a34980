from __future__ import annotations


class EventTrackerError(Exception):
    """
    Base class for errors that are rendered to API clients as {"error": message}.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# PUBLIC_INTERFACE
class ValidationError(EventTrackerError):
    """Malformed or out-of-range request parameters."""

    status_code = 400


# PUBLIC_INTERFACE
class InvalidCursorError(ValidationError):
    """Pagination cursor is undecodable or no longer points into the result set."""

    def __init__(self, message: str = "Invalid cursor.") -> None:
        super().__init__(message)


class AuthenticationError(EventTrackerError):
    status_code = 401


class PermissionDeniedError(EventTrackerError):
    status_code = 403


# PUBLIC_INTERFACE
class NotFoundError(EventTrackerError):
    """Referenced event or user does not exist."""

    status_code = 404


# PUBLIC_INTERFACE
class ConflictError(EventTrackerError):
    """Duplicate unique key on creation."""

    status_code = 409
