"""
CSV export of the booking collection for spreadsheets.
"""

import csv
import io
from typing import List, Sequence

from ..domain.models import Booking, Catalog

CSV_HEADERS = [
    "created_at",
    "date",
    "time",
    "customer",
    "email",
    "phone",
    "vehicle",
    "size",
    "service",
    "addons",
    "location_mode",
    "zone",
    "street",
    "suburb",
    "postcode",
    "notes",
    "paid",
    "travel_fee",
    "total",
]


def booking_to_row(booking: Booking, catalog: Catalog) -> List[str]:
    """Flatten a booking, resolving service and add-on names through the catalog."""
    r = booking.request
    return [
        booking.created_at.isoformat(),
        r.date.isoformat(),
        r.time.strftime("%H:%M"),
        r.customer,
        r.email,
        r.phone,
        r.vehicle,
        r.size.value,
        catalog.service_name(r.service_id),
        "; ".join(catalog.addon_names(r.addons)),
        r.location_mode.value,
        r.zone_id or "",
        r.street,
        r.suburb,
        r.postcode,
        r.notes.replace("\r\n", " ").replace("\n", " "),
        "yes" if booking.paid else "no",
        str(booking.travel_fee),
        str(booking.total),
    ]


def bookings_to_csv(bookings: Sequence[Booking], catalog: Catalog) -> str:
    """Render the collection as CSV text with every field quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for booking in bookings:
        writer.writerow(booking_to_row(booking, catalog))
    return buffer.getvalue()
