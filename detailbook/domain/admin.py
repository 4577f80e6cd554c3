"""
Dashboard operations over the booking collection.

Every function returns new values; persisting them is the caller's job.
"""

import hmac
from typing import List, Optional, Sequence, Tuple

import pendulum
from pendulum import DateTime

from .exceptions import BookingNotFound
from .models import Booking, BookingSummary


def _search_text(booking: Booking) -> str:
    r = booking.request
    return " ".join(
        [r.customer, r.email, r.phone, r.vehicle, r.street, r.suburb, r.postcode]
    ).lower()


def filter_bookings(
    bookings: Sequence[Booking],
    query: str = "",
    upcoming_only: bool = True,
    now: Optional[DateTime] = None,
    timezone: str = "Australia/Brisbane",
) -> List[Booking]:
    """
    Search and sort bookings for the dashboard.

    Args:
        bookings: Full collection
        query: Case-insensitive text matched against contact, vehicle and address
        upcoming_only: Drop bookings that started before ``now``
        now: Reference time, defaults to the current time
        timezone: Business timezone used to place date + time on the timeline

    Returns:
        Matching bookings ordered by start
    """
    now = now or pendulum.now(timezone)
    needle = query.strip().lower()

    matches: List[Tuple[DateTime, Booking]] = []
    for booking in bookings:
        starts_at = booking.request.starts_at(timezone)
        if upcoming_only and starts_at < now:
            continue
        if needle and needle not in _search_text(booking):
            continue
        matches.append((starts_at, booking))

    matches.sort(key=lambda item: item[0])
    return [booking for _, booking in matches]


def find_booking(bookings: Sequence[Booking], booking_id: str) -> Booking:
    for booking in bookings:
        if booking.id == booking_id:
            return booking
    raise BookingNotFound(booking_id)


def toggle_paid(bookings: Sequence[Booking], booking_id: str) -> List[Booking]:
    """Flip the paid flag of one booking."""
    target = find_booking(bookings, booking_id)
    return [b.with_paid(not b.paid) if b is target else b for b in bookings]


def remove_booking(bookings: Sequence[Booking], booking_id: str) -> List[Booking]:
    target = find_booking(bookings, booking_id)
    return [b for b in bookings if b is not target]


def summarize(bookings: Sequence[Booking]) -> BookingSummary:
    """Counts and money totals for the dashboard header."""
    summary = BookingSummary()
    for booking in bookings:
        summary.count += 1
        if booking.paid:
            summary.paid_count += 1
            summary.revenue += booking.total
        else:
            summary.outstanding += booking.total
        service_id = booking.request.service_id
        summary.by_service[service_id] = summary.by_service.get(service_id, 0) + 1
    return summary


def check_admin_pin(candidate: str, expected: str) -> bool:
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))
