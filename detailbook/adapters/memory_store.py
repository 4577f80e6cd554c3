"""
In-memory booking store for tests and demo mode.
"""

from typing import Iterable, List, Sequence

from ..domain.models import Booking


class InMemoryBookingStore:
    """
    Keeps the collection in a list.

    Mirrors ``JsonBookingStore`` without touching the filesystem, so the CLI
    can run with ``--demo`` and tests can inspect what was saved.
    """

    def __init__(self, bookings: Iterable[Booking] = ()):
        self._bookings: List[Booking] = list(bookings)
        self.save_count = 0

    def load(self) -> List[Booking]:
        return list(self._bookings)

    def save(self, bookings: Sequence[Booking]) -> None:
        self._bookings = list(bookings)
        self.save_count += 1
