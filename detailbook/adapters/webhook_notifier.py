"""
Webhook client that forwards new bookings to an external endpoint
(for example a spreadsheet script).
"""

import logging
from typing import Any, Dict

import requests

from ..domain.exceptions import NotificationError
from ..domain.models import Booking

logger = logging.getLogger(__name__)


class WebhookNotifier:
    """
    Posts each new booking as JSON.

    Delivery is best effort: callers catch ``NotificationError`` and carry on.
    """

    SOURCE = "website"

    def __init__(self, url: str, timeout: float = 10.0):
        """
        Initialize the notifier.

        Args:
            url: Endpoint receiving the POST
            timeout: Seconds to wait before giving up
        """
        self.url = url
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json"}

    def build_payload(self, booking: Booking) -> Dict[str, Any]:
        payload = booking.to_dict()
        payload["source"] = self.SOURCE
        return payload

    def notify(self, booking: Booking) -> None:
        """
        Send a booking to the webhook.

        Raises:
            NotificationError: If the request fails or returns an error status
        """
        try:
            response = requests.post(
                self.url,
                headers=self.headers,
                json=self.build_payload(booking),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise NotificationError(f"Failed to deliver booking {booking.id}: {e}") from e

        logger.debug("Booking %s delivered to webhook", booking.id)


class NullNotifier:
    """Used when no webhook is configured."""

    def notify(self, booking: Booking) -> None:
        pass
