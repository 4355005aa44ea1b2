"""
Domain exceptions raised by the signup services
"""

from typing import Any, Optional


class ConferenceError(Exception):
    """Base class for errors surfaced at the request boundary."""

    status_code = 400
    error_code = "error"

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(ConferenceError):
    status_code = 404
    error_code = "not_found"

    def __init__(self, resource: str = "Resource"):
        self.resource = resource
        super().__init__(f"{resource} not found")


class CapacityError(ConferenceError):
    """Signup would push a slot past its maximum capacity."""

    status_code = 409
    error_code = "capacity_exceeded"

    def __init__(self, remaining: int):
        self.remaining = remaining
        spots = "spot" if remaining == 1 else "spots"
        super().__init__(
            f"Not enough spots available. Only {remaining} {spots} left.",
            details={"remaining": remaining},
        )


class AuthorizationError(ConferenceError):
    status_code = 403
    error_code = "forbidden"

    def __init__(self, message: str = "You are not allowed to perform this action"):
        super().__init__(message)


class SlotValidationError(ConferenceError):
    status_code = 422
    error_code = "validation_failed"


class NotificationError(ConferenceError):
    """Email delivery failed. Callers log and swallow it."""

    status_code = 502
    error_code = "notification_failed"
