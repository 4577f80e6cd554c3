"""
Shared fixtures: the default catalog, an engine and request/booking factories.
"""

from datetime import date, time

import pendulum
import pytest

from detailbook.config import AppConfig
from detailbook.domain.models import BookingRequest, LocationMode, VehicleSize
from detailbook.domain.quote_engine import QuoteEngine

FUTURE_DAY = date(2030, 3, 1)


@pytest.fixture
def config():
    return AppConfig()


@pytest.fixture
def catalog(config):
    return config.build_catalog()


@pytest.fixture
def engine(config, catalog):
    return QuoteEngine(catalog=catalog, rules=config.build_rules())


@pytest.fixture
def make_request():
    """Build a valid studio request; keyword arguments override fields."""

    def _make(**overrides) -> BookingRequest:
        fields = dict(
            customer="Jane Doe",
            email="jane@example.com",
            phone="0400 000 111",
            vehicle="Mazda 3",
            service_id="signature",
            size=VehicleSize.MEDIUM,
            date=FUTURE_DAY,
            time=time(10, 0),
            addons=(),
            location_mode=LocationMode.STUDIO,
        )
        fields.update(overrides)
        return BookingRequest(**fields)

    return _make


@pytest.fixture
def make_booking(engine, make_request):
    """Create a booking through the engine with no existing bookings."""

    def _make(**overrides):
        return engine.create_booking(
            make_request(**overrides),
            [],
            now=pendulum.datetime(2030, 1, 15, 8, 30, tz="UTC"),
        )

    return _make
