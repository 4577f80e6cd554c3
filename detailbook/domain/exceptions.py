"""
Domain-specific exception hierarchy for the detailbook application.
"""

from __future__ import annotations

from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ValidationError


class DetailbookError(Exception):
    """Base class for all application-level errors."""


class UnknownService(DetailbookError):
    """Raised when a service id has no entry in the catalog."""

    def __init__(self, service_id: str):
        super().__init__(f"Unknown service: '{service_id}'")
        self.service_id = service_id


class InvalidRequest(DetailbookError):
    """Raised when a booking is created from a request that fails validation."""

    def __init__(self, errors: List["ValidationError"]):
        super().__init__("; ".join(error.message for error in errors))
        self.errors = list(errors)


class BookingNotFound(DetailbookError):
    """Raised when an admin action references an unknown booking id."""

    def __init__(self, booking_id: str):
        super().__init__(f"Booking not found: '{booking_id}'")
        self.booking_id = booking_id


class StorageError(DetailbookError):
    """Raised when the booking collection cannot be read, written or imported."""


class NotificationError(DetailbookError):
    """Raised when the booking webhook cannot be delivered."""
