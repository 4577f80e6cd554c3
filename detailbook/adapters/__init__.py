"""
Adapters layer - Storage, export and webhook integrations.
"""

from .csv_export import bookings_to_csv
from .json_store import JsonBookingStore, bookings_from_json, bookings_to_json
from .memory_store import InMemoryBookingStore
from .webhook_notifier import NullNotifier, WebhookNotifier

__all__ = [
    "InMemoryBookingStore",
    "JsonBookingStore",
    "NullNotifier",
    "WebhookNotifier",
    "bookings_from_json",
    "bookings_to_csv",
    "bookings_to_json",
]
