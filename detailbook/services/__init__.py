"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .booking_service import BookingService, BookingStoreProtocol, NotifierProtocol

__all__ = ["BookingService", "BookingStoreProtocol", "NotifierProtocol"]
