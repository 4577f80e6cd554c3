"""
Tests for the webhook notifier.
"""

import pytest
import requests

from detailbook.adapters import webhook_notifier
from detailbook.adapters.webhook_notifier import NullNotifier, WebhookNotifier
from detailbook.domain.exceptions import NotificationError


class FakeResponse:
    def __init__(self, status_code: int = 200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"HTTP {self.status_code}")


class TestWebhookNotifier:
    """Tests for WebhookNotifier."""

    def test_posts_booking_payload(self, monkeypatch, make_booking):
        """The booking is sent as JSON with a source marker."""
        calls = []

        def fake_post(url, headers, json, timeout):
            calls.append({"url": url, "json": json, "timeout": timeout})
            return FakeResponse(200)

        monkeypatch.setattr(webhook_notifier.requests, "post", fake_post)
        booking = make_booking()

        WebhookNotifier("https://hooks.example.com/bookings", timeout=3).notify(booking)

        assert len(calls) == 1
        assert calls[0]["url"] == "https://hooks.example.com/bookings"
        assert calls[0]["timeout"] == 3
        assert calls[0]["json"]["id"] == booking.id
        assert calls[0]["json"]["source"] == "website"
        assert calls[0]["json"]["total"] == "289"

    def test_http_error_raises(self, monkeypatch, make_booking):
        monkeypatch.setattr(
            webhook_notifier.requests, "post", lambda *args, **kwargs: FakeResponse(500)
        )

        with pytest.raises(NotificationError, match="HTTP 500"):
            WebhookNotifier("https://hooks.example.com").notify(make_booking())

    def test_connection_error_raises(self, monkeypatch, make_booking):
        def fake_post(*args, **kwargs):
            raise requests.exceptions.ConnectionError("refused")

        monkeypatch.setattr(webhook_notifier.requests, "post", fake_post)

        with pytest.raises(NotificationError, match="refused"):
            WebhookNotifier("https://hooks.example.com").notify(make_booking())

    def test_null_notifier_does_nothing(self, make_booking):
        NullNotifier().notify(make_booking())
