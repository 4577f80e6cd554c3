"""
Core business logic for pricing and validating bookings.

Pure domain logic: the catalog and schedule rules are injected, existing
bookings are passed in, and nothing here reads or writes storage.
"""

import re
import uuid
from datetime import date, time
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Sequence

import pendulum
from pendulum import DateTime

from .exceptions import InvalidRequest, UnknownService
from .models import (
    Booking,
    BookingRequest,
    Catalog,
    LocationMode,
    Quote,
    ScheduleRules,
    TimeSlot,
    ValidationError,
    VehicleSize,
)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^[- +()0-9]{8,}$")
POSTCODE_PATTERN = re.compile(r"^[0-9]{4}$")


class QuoteEngine:
    """
    Prices a selection and checks a requested slot against existing bookings.

    Rules, in evaluation order:
    1. Customer name, email, phone and vehicle must be present and well formed
    2. Home service needs a street, suburb and 4-digit postcode
    3. The date must not be in the past
    4. The time must be the start of one of the day's slots
    5. The day must not already be at capacity
    6. The requested time must not already be booked that day

    Every failing rule is reported; validation never stops at the first one.
    """

    def __init__(
        self,
        catalog: Catalog,
        rules: ScheduleRules = ScheduleRules(),
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        timezone: str = "Australia/Brisbane",
    ):
        self.catalog = catalog
        self.rules = rules
        self.timezone = timezone
        self._id_factory = id_factory

    def quote(
        self,
        service_id: str,
        size: VehicleSize,
        addon_ids: Iterable[str] = (),
        location_mode: LocationMode = LocationMode.STUDIO,
        zone_id: Optional[str] = None,
    ) -> Quote:
        """
        Break a selection down into base price, add-ons and travel fee.

        Unknown add-on and zone ids contribute nothing.

        Raises:
            UnknownService: If the service id is not in the catalog
        """
        service = self.catalog.services.get(service_id)
        if service is None:
            raise UnknownService(service_id)

        addons_total = sum(
            (self.catalog.addons[a].price for a in addon_ids if a in self.catalog.addons),
            Decimal("0"),
        )

        return Quote(
            base_price=service.price_for(size),
            addons_total=addons_total,
            travel_fee=self.travel_fee(location_mode, zone_id),
        )

    def compute_total(
        self,
        service_id: str,
        size: VehicleSize,
        addon_ids: Iterable[str] = (),
        location_mode: LocationMode = LocationMode.STUDIO,
        zone_id: Optional[str] = None,
    ) -> Decimal:
        """Total price for a selection: base + add-ons + travel fee."""
        return self.quote(service_id, size, addon_ids, location_mode, zone_id).total

    def travel_fee(self, location_mode: LocationMode, zone_id: Optional[str]) -> Decimal:
        """Zone fee for home service, zero in the studio."""
        if LocationMode(location_mode) is not LocationMode.MOBILE:
            return Decimal("0")
        zone = self.catalog.zones.get(zone_id) if zone_id else None
        return zone.fee if zone else Decimal("0")

    def available_time_slots(
        self,
        existing_bookings: Sequence[Booking],
        day: date,
    ) -> List[TimeSlot]:
        """
        Enumerate every slot start between opening and closing for a day.

        The list is always complete; slots already booked that day are
        flagged as taken rather than dropped.
        """
        taken = {b.time for b in self._bookings_on(existing_bookings, day)}

        slots: List[TimeSlot] = []
        minute = self.rules.opening_hour * 60
        closing = self.rules.closing_hour * 60

        while minute < closing:
            start = time(hour=minute // 60, minute=minute % 60)
            slots.append(TimeSlot(start=start, taken=start in taken))
            minute += self.rules.slot_minutes

        return slots

    def remaining_capacity(self, existing_bookings: Sequence[Booking], day: date) -> int:
        """How many more bookings the day can take."""
        booked = len(self._bookings_on(existing_bookings, day))
        return max(self.rules.slots_per_day - booked, 0)

    def validate_booking_request(
        self,
        request: BookingRequest,
        existing_bookings: Sequence[Booking],
        today: Optional[date] = None,
    ) -> List[ValidationError]:
        """
        Check a request against every rule.

        Args:
            request: The submitted form
            existing_bookings: Current collection
            today: First bookable date, defaults to today in the business timezone

        Returns:
            All violated rules in evaluation order; empty when acceptable
        """
        errors: List[ValidationError] = []

        if not request.customer.strip():
            errors.append(ValidationError("name_required", "Your full name is required."))
        if not EMAIL_PATTERN.match(request.email):
            errors.append(ValidationError("email_invalid", "A valid email is required."))
        if not PHONE_PATTERN.match(request.phone):
            errors.append(ValidationError("phone_invalid", "A valid phone number is required."))
        if not request.vehicle.strip():
            errors.append(ValidationError("vehicle_required", "Vehicle make/model is required."))

        if request.is_mobile:
            if not request.street.strip():
                errors.append(ValidationError(
                    "street_required", "Street address is required for home service."
                ))
            if not request.suburb.strip():
                errors.append(ValidationError(
                    "suburb_required", "Suburb is required for home service."
                ))
            if not POSTCODE_PATTERN.match(request.postcode):
                errors.append(ValidationError(
                    "postcode_invalid", "A 4-digit postcode is required for home service."
                ))

        today = today or pendulum.today(self.timezone).date()
        if request.date < today:
            errors.append(ValidationError("date_past", "Please pick a date from today onwards."))

        slot_starts = {slot.start for slot in self.available_time_slots([], request.date)}
        if request.time not in slot_starts:
            errors.append(ValidationError(
                "slot_invalid", "Please pick one of the listed times."
            ))

        day_bookings = self._bookings_on(existing_bookings, request.date)

        if len(day_bookings) >= self.rules.slots_per_day:
            errors.append(ValidationError(
                "no_availability", "No availability on this day. Please pick another date."
            ))
        if any(b.time == request.time for b in day_bookings):
            errors.append(ValidationError("slot_taken", "Selected time is already booked."))

        return errors

    def create_booking(
        self,
        request: BookingRequest,
        existing_bookings: Sequence[Booking],
        now: Optional[DateTime] = None,
    ) -> Booking:
        """
        Build a new booking from an acceptable request.

        The collection is not modified; the caller appends and persists.
        ``now`` is the creation time; its date in the business timezone is the
        earliest bookable date.

        Raises:
            InvalidRequest: If the request fails validation
            UnknownService: If the request names a service not in the catalog
        """
        now = now or pendulum.now("UTC")
        today = now.in_timezone(self.timezone).date()

        errors = self.validate_booking_request(request, existing_bookings, today=today)
        if errors:
            raise InvalidRequest(errors)

        quote = self.quote(
            request.service_id,
            request.size,
            request.addons,
            request.location_mode,
            request.zone_id,
        )

        return Booking(
            id=self._id_factory(),
            created_at=now,
            request=request,
            total=quote.total,
            travel_fee=quote.travel_fee,
        )

    @staticmethod
    def _bookings_on(bookings: Sequence[Booking], day: date) -> List[Booking]:
        return [b for b in bookings if b.date == day]
