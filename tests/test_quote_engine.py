"""
Tests for the quote engine.
"""

from datetime import date, time
from decimal import Decimal

import pendulum
import pytest

from detailbook.domain.exceptions import InvalidRequest, UnknownService
from detailbook.domain.models import LocationMode, ScheduleRules, VehicleSize
from detailbook.domain.quote_engine import QuoteEngine

FUTURE_DAY = date(2030, 3, 1)


def _codes(errors):
    return [error.code for error in errors]


def _fill_day(engine, make_request, day, count, start_hour=9):
    """Create ``count`` bookings on ``day`` at distinct half-hour times."""
    bookings = []
    for i in range(count):
        minute = start_hour * 60 + i * 30
        request = make_request(date=day, time=time(minute // 60, minute % 60))
        bookings.append(engine.create_booking(request, bookings))
    return bookings


class TestComputeTotal:
    """Tests for pricing."""

    def test_worked_example(self, engine):
        """Signature, medium, pet + engine, home service in zone B."""
        total = engine.compute_total(
            "signature", VehicleSize.MEDIUM, ["pet", "engine"], LocationMode.MOBILE, "B"
        )

        assert total == Decimal("434")

    def test_studio_ignores_zone(self, engine):
        """Travel fee only applies to home service."""
        total = engine.compute_total("signature", VehicleSize.MEDIUM, [], LocationMode.STUDIO, "C")

        assert total == Decimal("289")

    def test_base_price_by_size(self, engine):
        """Each size picks its own base price."""
        assert engine.compute_total("express", VehicleSize.SMALL) == Decimal("89")
        assert engine.compute_total("express", VehicleSize.MEDIUM) == Decimal("109")
        assert engine.compute_total("express", VehicleSize.LARGE) == Decimal("129")

    def test_unknown_addon_contributes_nothing(self, engine):
        """Unknown add-on ids are tolerated."""
        total = engine.compute_total("express", VehicleSize.SMALL, ["pet", "teleport"])

        assert total == Decimal("129")

    def test_unknown_zone_is_free(self, engine):
        """An unknown zone for home service adds no fee."""
        total = engine.compute_total("express", VehicleSize.SMALL, [], LocationMode.MOBILE, "Z")

        assert total == Decimal("89")

    def test_unknown_service_raises(self, engine):
        """A service id missing from the catalog is an error."""
        with pytest.raises(UnknownService, match="detailing-deluxe"):
            engine.compute_total("detailing-deluxe", VehicleSize.SMALL)

    def test_monotonic_in_addons(self, engine):
        """Adding enhancements never lowers the price."""
        addon_ids = list(engine.catalog.addons)
        previous = Decimal("0")

        for count in range(len(addon_ids) + 1):
            total = engine.compute_total(
                "ceramic", VehicleSize.LARGE, addon_ids[:count], LocationMode.MOBILE, "A"
            )
            assert total >= previous
            previous = total

    def test_quote_breakdown(self, engine):
        """The quote splits base, add-ons and travel."""
        quote = engine.quote("signature", VehicleSize.MEDIUM, ["pet", "engine"], LocationMode.MOBILE, "B")

        assert quote.base_price == Decimal("289")
        assert quote.addons_total == Decimal("100")
        assert quote.travel_fee == Decimal("45")
        assert quote.total == Decimal("434")


class TestAvailableTimeSlots:
    """Tests for slot enumeration."""

    def test_sixteen_slots_in_order(self, engine):
        """A 9-17 day has 16 half-hour slots, ascending."""
        slots = engine.available_time_slots([], FUTURE_DAY)

        assert len(slots) == 16
        assert slots[0].label == "09:00"
        assert slots[-1].label == "16:30"
        assert [s.start for s in slots] == sorted(s.start for s in slots)
        assert not any(s.taken for s in slots)

    def test_booked_slots_are_flagged_not_removed(self, engine, make_request):
        """Bookings mark slots as taken without shortening the list."""
        bookings = _fill_day(engine, make_request, FUTURE_DAY, 3)

        slots = engine.available_time_slots(bookings, FUTURE_DAY)

        assert len(slots) == 16
        assert [s.label for s in slots if s.taken] == ["09:00", "09:30", "10:00"]

    def test_other_days_do_not_affect_slots(self, engine, make_request):
        """Only bookings on the requested date count."""
        bookings = _fill_day(engine, make_request, FUTURE_DAY, 2)

        slots = engine.available_time_slots(bookings, date(2030, 3, 2))

        assert not any(s.taken for s in slots)

    def test_custom_hours(self, catalog):
        """Slot count follows the configured window."""
        engine = QuoteEngine(catalog, ScheduleRules(opening_hour=8, closing_hour=12, slot_minutes=60))

        slots = engine.available_time_slots([], FUTURE_DAY)

        assert [s.label for s in slots] == ["08:00", "09:00", "10:00", "11:00"]

    def test_remaining_capacity(self, engine, make_request):
        """Capacity counts down and never goes negative."""
        bookings = _fill_day(engine, make_request, FUTURE_DAY, 4)

        assert engine.remaining_capacity(bookings, FUTURE_DAY) == 2
        assert engine.remaining_capacity([], FUTURE_DAY) == 6


class TestValidateBookingRequest:
    """Tests for request validation."""

    def test_valid_request_has_no_errors(self, engine, make_request):
        """A complete studio request passes."""
        assert engine.validate_booking_request(make_request(), []) == []

    def test_all_errors_are_accumulated_in_order(self, engine, make_request):
        """Every failing rule is reported, in evaluation order."""
        request = make_request(
            customer="  ",
            email="not-an-email",
            phone="123",
            vehicle="",
            location_mode=LocationMode.MOBILE,
            zone_id="A",
            street="",
            suburb="",
            postcode="40000",
        )

        errors = engine.validate_booking_request(request, [])

        assert _codes(errors) == [
            "name_required",
            "email_invalid",
            "phone_invalid",
            "vehicle_required",
            "street_required",
            "suburb_required",
            "postcode_invalid",
        ]
        assert errors[0].message == "Your full name is required."

    def test_mobile_address_is_accepted(self, engine, make_request):
        """Home service with a full address passes."""
        request = make_request(
            location_mode=LocationMode.MOBILE,
            zone_id="B",
            street="12 River St",
            suburb="Brisbane",
            postcode="4000",
        )

        assert engine.validate_booking_request(request, []) == []

    def test_studio_skips_address_rules(self, engine, make_request):
        """Address fields are not required in the studio."""
        request = make_request(street="", suburb="", postcode="")

        assert engine.validate_booking_request(request, []) == []

    @pytest.mark.parametrize("phone", ["0400 000 111", "+61 (7) 3000-0000", "12345678"])
    def test_phone_formats_accepted(self, engine, make_request, phone):
        """Digits with spaces, dashes, plus and brackets are fine."""
        assert engine.validate_booking_request(make_request(phone=phone), []) == []

    @pytest.mark.parametrize("phone", ["1234567", "0400abc111", ""])
    def test_phone_formats_rejected(self, engine, make_request, phone):
        """Short numbers or letters are rejected."""
        errors = engine.validate_booking_request(make_request(phone=phone), [])

        assert _codes(errors) == ["phone_invalid"]

    def test_full_day_reports_no_availability(self, engine, make_request):
        """A seventh booking on a full day is refused whatever the time."""
        bookings = _fill_day(engine, make_request, FUTURE_DAY, 6)

        errors = engine.validate_booking_request(
            make_request(date=FUTURE_DAY, time=time(16, 30)), bookings
        )

        assert _codes(errors) == ["no_availability"]

    def test_full_day_and_taken_slot_are_both_reported(self, engine, make_request):
        """Capacity and slot checks stay independent."""
        bookings = _fill_day(engine, make_request, FUTURE_DAY, 6)

        errors = engine.validate_booking_request(
            make_request(date=FUTURE_DAY, time=time(9, 0)), bookings
        )

        assert _codes(errors) == ["no_availability", "slot_taken"]

    def test_taken_slot(self, engine, make_request):
        """The same date and time cannot be booked twice; the next slot can."""
        existing = [engine.create_booking(make_request(time=time(10, 0)), [])]

        taken = engine.validate_booking_request(make_request(time=time(10, 0)), existing)
        free = engine.validate_booking_request(make_request(time=time(10, 30)), existing)

        assert _codes(taken) == ["slot_taken"]
        assert free == []

    @pytest.mark.parametrize("requested", [time(10, 15), time(8, 30), time(17, 0), time(3, 17)])
    def test_time_must_be_a_listed_slot(self, engine, make_request, requested):
        """Off-grid times and times outside opening hours are refused."""
        errors = engine.validate_booking_request(make_request(time=requested), [])

        assert _codes(errors) == ["slot_invalid"]

    def test_off_grid_time_next_to_booking(self, engine, make_request):
        """10:15 cannot slip in beside an existing 10:00 booking."""
        existing = [engine.create_booking(make_request(time=time(10, 0)), [])]

        errors = engine.validate_booking_request(make_request(time=time(10, 15)), existing)

        assert _codes(errors) == ["slot_invalid"]

    def test_last_slot_is_bookable(self, engine, make_request):
        assert engine.validate_booking_request(make_request(time=time(16, 30)), []) == []

    def test_past_date_is_refused(self, engine, make_request):
        """Dates before today are rejected; today itself is fine."""
        today = date(2030, 3, 1)

        past = engine.validate_booking_request(make_request(date=date(2030, 2, 28)), [], today=today)
        same_day = engine.validate_booking_request(make_request(date=today), [], today=today)

        assert _codes(past) == ["date_past"]
        assert same_day == []

    def test_rules_accumulate_with_slot_and_date(self, engine, make_request):
        """Date and time rules sit between the contact and capacity rules."""
        errors = engine.validate_booking_request(
            make_request(customer="", date=date(2030, 2, 1), time=time(23, 45)),
            [],
            today=date(2030, 3, 1),
        )

        assert _codes(errors) == ["name_required", "date_past", "slot_invalid"]

    def test_same_time_other_day_is_free(self, engine, make_request):
        """Slots are per date."""
        existing = [engine.create_booking(make_request(time=time(10, 0)), [])]

        errors = engine.validate_booking_request(
            make_request(date=date(2030, 3, 2), time=time(10, 0)), existing
        )

        assert errors == []


class TestCreateBooking:
    """Tests for booking creation."""

    def test_total_invariant(self, engine, make_request):
        """Total is base + add-ons + travel fee."""
        request = make_request(
            addons=("pet", "engine"),
            location_mode=LocationMode.MOBILE,
            zone_id="B",
            street="12 River St",
            suburb="Brisbane",
            postcode="4000",
        )

        booking = engine.create_booking(request, [])

        base = engine.catalog.services["signature"].price_for(VehicleSize.MEDIUM)
        addons = sum(engine.catalog.addons[a].price for a in request.addons)
        assert booking.travel_fee == Decimal("45")
        assert booking.total == base + addons + booking.travel_fee
        assert booking.total == Decimal("434")

    def test_new_booking_fields(self, engine, make_request):
        """A booking gets an id, a timestamp and starts unpaid."""
        now = pendulum.datetime(2030, 1, 15, 8, 30, tz="UTC")

        booking = engine.create_booking(make_request(), [], now=now)

        assert booking.id
        assert booking.created_at == now
        assert booking.paid is False
        assert booking.travel_fee == Decimal("0")

    def test_ids_are_unique(self, engine, make_request):
        """Each booking gets its own id."""
        first = engine.create_booking(make_request(time=time(9, 0)), [])
        second = engine.create_booking(make_request(time=time(9, 30)), [first])

        assert first.id != second.id

    def test_injected_id_factory(self, catalog, make_request):
        """The id generator can be replaced."""
        engine = QuoteEngine(catalog, id_factory=lambda: "BK-1")

        assert engine.create_booking(make_request(), []).id == "BK-1"

    def test_invalid_request_raises_with_errors(self, engine, make_request):
        """Validation failures surface as InvalidRequest."""
        with pytest.raises(InvalidRequest) as exc_info:
            engine.create_booking(make_request(customer="", email="x"), [])

        assert _codes(exc_info.value.errors) == ["name_required", "email_invalid"]

    def test_unknown_service_raises(self, engine, make_request):
        """A valid form naming a missing service is a data error."""
        with pytest.raises(UnknownService):
            engine.create_booking(make_request(service_id="nope"), [])

    def test_today_follows_creation_time_in_business_timezone(self, engine, make_request):
        """23:30 UTC on 28 Feb is already 1 March in Brisbane."""
        now = pendulum.datetime(2030, 2, 28, 23, 30, tz="UTC")

        with pytest.raises(InvalidRequest) as exc_info:
            engine.create_booking(make_request(date=date(2030, 2, 28)), [], now=now)
        booking = engine.create_booking(make_request(date=date(2030, 3, 1)), [], now=now)

        assert _codes(exc_info.value.errors) == ["date_past"]
        assert booking.created_at == now

    def test_existing_collection_is_not_modified(self, engine, make_request):
        """Creation leaves the caller's list alone."""
        existing = [engine.create_booking(make_request(time=time(9, 0)), [])]
        snapshot = list(existing)

        engine.create_booking(make_request(time=time(11, 0)), existing)

        assert existing == snapshot
