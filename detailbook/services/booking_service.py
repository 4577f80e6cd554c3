"""
Application service for taking and managing bookings.

The service loads the collection from a store, delegates pricing and
validation to the domain-level ``QuoteEngine``, persists the result and
forwards new bookings to a notifier. Store and notifier are protocols so
the file store and webhook can be swapped for in-memory stubs in tests.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional, Protocol, Sequence

from pendulum import DateTime

from ..adapters.csv_export import bookings_to_csv
from ..adapters.json_store import bookings_from_json, bookings_to_json
from ..domain import admin
from ..domain.exceptions import NotificationError, StorageError
from ..domain.models import (
    Booking,
    BookingRequest,
    BookingSummary,
    LocationMode,
    Quote,
    TimeSlot,
    ValidationError,
    VehicleSize,
)
from ..domain.quote_engine import QuoteEngine

logger = logging.getLogger(__name__)


class BookingStoreProtocol(Protocol):
    """Whole-collection persistence."""

    def load(self) -> List[Booking]:
        """Return every stored booking in insertion order."""

    def save(self, bookings: Sequence[Booking]) -> None:
        """Replace the stored collection."""


class NotifierProtocol(Protocol):
    """Receives each newly created booking."""

    def notify(self, booking: Booking) -> None:
        """Deliver the booking; raise NotificationError on failure."""


class BookingService:
    """
    Orchestrates storage, the quote engine and notifications.

    Every write is a read-modify-write of the full collection.
    """

    def __init__(
        self,
        engine: QuoteEngine,
        store: BookingStoreProtocol,
        notifier: NotifierProtocol,
        timezone: str = "Australia/Brisbane",
    ) -> None:
        self._engine = engine
        self._store = store
        self._notifier = notifier
        self._timezone = timezone

    @property
    def engine(self) -> QuoteEngine:
        return self._engine

    def list_bookings(self) -> List[Booking]:
        return self._store.load()

    def quote(
        self,
        service_id: str,
        size: VehicleSize,
        addon_ids: Iterable[str] = (),
        location_mode: LocationMode = LocationMode.STUDIO,
        zone_id: Optional[str] = None,
    ) -> Quote:
        return self._engine.quote(service_id, size, addon_ids, location_mode, zone_id)

    def time_slots(self, day: date) -> List[TimeSlot]:
        """All slots for a day with booked ones flagged."""
        return self._engine.available_time_slots(self._store.load(), day)

    def remaining_capacity(self, day: date) -> int:
        return self._engine.remaining_capacity(self._store.load(), day)

    def validate(self, request: BookingRequest) -> List[ValidationError]:
        return self._engine.validate_booking_request(request, self._store.load())

    def submit(self, request: BookingRequest, now: Optional[DateTime] = None) -> Booking:
        """
        Create, persist and announce a booking.

        Raises:
            InvalidRequest: If the request fails validation (nothing is saved)
        """
        bookings = self._store.load()
        booking = self._engine.create_booking(request, bookings, now=now)

        bookings.append(booking)
        self._store.save(bookings)
        logger.info(
            "Booking %s saved for %s on %s at %s (total %s)",
            booking.id,
            request.customer,
            request.date.isoformat(),
            request.time.strftime("%H:%M"),
            booking.total,
        )

        self._send_notification(booking)
        return booking

    def _send_notification(self, booking: Booking) -> None:
        try:
            self._notifier.notify(booking)
        except NotificationError as exc:
            logger.warning("Booking notification failed: %s", exc)

    def toggle_paid(self, booking_id: str) -> Booking:
        """
        Flip the paid flag.

        Raises:
            BookingNotFound: If no booking has this id
        """
        bookings = admin.toggle_paid(self._store.load(), booking_id)
        self._store.save(bookings)
        booking = admin.find_booking(bookings, booking_id)
        logger.info("Booking %s marked %s", booking_id, "paid" if booking.paid else "unpaid")
        return booking

    def delete(self, booking_id: str) -> Booking:
        """
        Remove a booking.

        Raises:
            BookingNotFound: If no booking has this id
        """
        bookings = self._store.load()
        booking = admin.find_booking(bookings, booking_id)
        self._store.save(admin.remove_booking(bookings, booking_id))
        logger.info("Booking %s deleted", booking_id)
        return booking

    def search(
        self,
        query: str = "",
        upcoming_only: bool = True,
        now: Optional[DateTime] = None,
    ) -> List[Booking]:
        return admin.filter_bookings(
            self._store.load(),
            query=query,
            upcoming_only=upcoming_only,
            now=now,
            timezone=self._timezone,
        )

    def summary(self) -> BookingSummary:
        return admin.summarize(self._store.load())

    def export_csv(self) -> str:
        return bookings_to_csv(self._store.load(), self._engine.catalog)

    def export_json(self) -> str:
        return bookings_to_json(self._store.load())

    def import_json(self, text: str) -> int:
        """
        Replace the collection with bookings parsed from JSON.

        Raises:
            StorageError: If the text is malformed or repeats a booking id;
                the store is left untouched
        """
        bookings = bookings_from_json(text)
        ids = [b.id for b in bookings]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise StorageError(f"Duplicate booking ids in import: {', '.join(duplicates)}")

        self._store.save(bookings)
        logger.info("Imported %d bookings", len(bookings))
        return len(bookings)
