"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import (
    AddonEntry,
    Booking,
    BookingRequest,
    Catalog,
    LocationMode,
    Quote,
    ScheduleRules,
    ServiceCatalogEntry,
    TimeSlot,
    TravelZoneEntry,
    ValidationError,
    VehicleSize,
)
from .quote_engine import QuoteEngine

__all__ = [
    "AddonEntry",
    "Booking",
    "BookingRequest",
    "Catalog",
    "LocationMode",
    "Quote",
    "QuoteEngine",
    "ScheduleRules",
    "ServiceCatalogEntry",
    "TimeSlot",
    "TravelZoneEntry",
    "ValidationError",
    "VehicleSize",
]
