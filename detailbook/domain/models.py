"""
Domain models for the catalog, booking requests and persisted bookings.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import pendulum
from pendulum import DateTime


class VehicleSize(str, Enum):
    """Vehicle size category used to pick a service price."""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class LocationMode(str, Enum):
    """Where the detail takes place."""
    STUDIO = "studio"
    MOBILE = "mobile"


@dataclass(frozen=True)
class ServiceCatalogEntry:
    """
    A detailing package offered by the business.

    Invariant: every vehicle size has a price.
    """
    id: str
    name: str
    duration_minutes: int
    price_by_size: Dict[VehicleSize, Decimal]
    description: str = ""

    def __post_init__(self):
        missing = [size.value for size in VehicleSize if size not in self.price_by_size]
        if missing:
            raise ValueError(f"Service '{self.id}' has no price for: {', '.join(missing)}")

    def price_for(self, size: VehicleSize) -> Decimal:
        """Return the base price for a vehicle size."""
        return self.price_by_size[VehicleSize(size)]


@dataclass(frozen=True)
class AddonEntry:
    """Optional extra with a flat price."""
    id: str
    name: str
    price: Decimal


@dataclass(frozen=True)
class TravelZoneEntry:
    """Home-service travel bucket with a flat fee."""
    id: str
    label: str
    fee: Decimal


@dataclass(frozen=True)
class Catalog:
    """
    Immutable lookup tables for services, add-ons and travel zones.

    Built once from configuration and handed to the engine.
    """
    services: Dict[str, ServiceCatalogEntry]
    addons: Dict[str, AddonEntry]
    zones: Dict[str, TravelZoneEntry]

    @classmethod
    def from_entries(
        cls,
        services: List[ServiceCatalogEntry],
        addons: List[AddonEntry],
        zones: List[TravelZoneEntry],
    ) -> "Catalog":
        return cls(
            services={s.id: s for s in services},
            addons={a.id: a for a in addons},
            zones={z.id: z for z in zones},
        )

    def service_name(self, service_id: str) -> str:
        service = self.services.get(service_id)
        return service.name if service else ""

    def addon_names(self, addon_ids) -> List[str]:
        """Names of the known add-ons, in selection order."""
        return [self.addons[a].name for a in addon_ids if a in self.addons]

    def zone_label(self, zone_id: Optional[str]) -> str:
        zone = self.zones.get(zone_id) if zone_id else None
        return zone.label if zone else ""


@dataclass(frozen=True)
class ScheduleRules:
    """Business hours and daily capacity."""
    opening_hour: int = 9
    closing_hour: int = 17
    slot_minutes: int = 30
    slots_per_day: int = 6


@dataclass(frozen=True)
class ValidationError:
    """
    A single violated booking rule.

    Not an exception: validation returns a list of these so every problem
    can be shown at once.
    """
    code: str
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class BookingRequest:
    """Form data submitted by a customer."""
    customer: str
    email: str
    phone: str
    vehicle: str
    service_id: str
    size: VehicleSize
    date: date
    time: time
    addons: Tuple[str, ...] = ()
    location_mode: LocationMode = LocationMode.STUDIO
    zone_id: Optional[str] = None
    street: str = ""
    suburb: str = ""
    postcode: str = ""
    notes: str = ""

    def __post_init__(self):
        # Accept plain strings and lists from forms and JSON
        object.__setattr__(self, "size", VehicleSize(self.size))
        object.__setattr__(self, "location_mode", LocationMode(self.location_mode))
        object.__setattr__(self, "addons", tuple(self.addons))

    @property
    def is_mobile(self) -> bool:
        return self.location_mode is LocationMode.MOBILE

    def starts_at(self, timezone: str) -> DateTime:
        """Requested start as an aware datetime in the business timezone."""
        return pendulum.datetime(
            self.date.year,
            self.date.month,
            self.date.day,
            self.time.hour,
            self.time.minute,
            tz=timezone,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "customer": self.customer,
            "email": self.email,
            "phone": self.phone,
            "vehicle": self.vehicle,
            "service_id": self.service_id,
            "size": self.size.value,
            "addons": list(self.addons),
            "location_mode": self.location_mode.value,
            "zone_id": self.zone_id,
            "street": self.street,
            "suburb": self.suburb,
            "postcode": self.postcode,
            "date": self.date.isoformat(),
            "time": self.time.strftime("%H:%M"),
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookingRequest":
        return cls(
            customer=data.get("customer", ""),
            email=data.get("email", ""),
            phone=data.get("phone", ""),
            vehicle=data.get("vehicle", ""),
            service_id=data["service_id"],
            size=VehicleSize(data["size"]),
            addons=tuple(data.get("addons") or ()),
            location_mode=LocationMode(data.get("location_mode", LocationMode.STUDIO.value)),
            zone_id=data.get("zone_id"),
            street=data.get("street") or "",
            suburb=data.get("suburb") or "",
            postcode=data.get("postcode") or "",
            date=parse_date(data["date"]),
            time=parse_time(data["time"]),
            notes=data.get("notes") or "",
        )


@dataclass(frozen=True)
class Booking:
    """
    A confirmed booking.

    Only ``paid`` may change after creation; see ``with_paid``.
    """
    id: str
    created_at: DateTime
    request: BookingRequest
    total: Decimal
    travel_fee: Decimal
    paid: bool = False

    @property
    def date(self) -> date:
        return self.request.date

    @property
    def time(self) -> time:
        return self.request.time

    def with_paid(self, paid: bool) -> "Booking":
        return replace(self, paid=paid)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
        }
        data.update(self.request.to_dict())
        data.update(
            {
                "travel_fee": str(self.travel_fee),
                "total": str(self.total),
                "paid": self.paid,
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Booking":
        created_at = pendulum.parse(data["created_at"])
        if not isinstance(created_at, DateTime):
            raise ValueError(f"Could not parse created_at: {data['created_at']}")

        return cls(
            id=str(data["id"]),
            created_at=created_at,
            request=BookingRequest.from_dict(data),
            total=Decimal(str(data["total"])),
            travel_fee=Decimal(str(data.get("travel_fee", 0))),
            paid=bool(data.get("paid", False)),
        )


@dataclass(frozen=True)
class Quote:
    """Price breakdown for a selection."""
    base_price: Decimal
    addons_total: Decimal
    travel_fee: Decimal

    @property
    def total(self) -> Decimal:
        return self.base_price + self.addons_total + self.travel_fee


@dataclass(frozen=True)
class TimeSlot:
    """A bookable half-hour start time; taken slots stay in the list."""
    start: time
    taken: bool = False

    @property
    def label(self) -> str:
        return self.start.strftime("%H:%M")


@dataclass
class BookingSummary:
    """Dashboard totals."""
    count: int = 0
    paid_count: int = 0
    revenue: Decimal = Decimal("0")
    outstanding: Decimal = Decimal("0")
    by_service: Dict[str, int] = field(default_factory=dict)


def parse_date(value: Any) -> date:
    """Parse a YYYY-MM-DD string (or pass through a date)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pendulum.from_format(str(value), "YYYY-MM-DD").date()


def parse_time(value: Any) -> time:
    """Parse an HH:MM string (or pass through a time)."""
    if isinstance(value, time):
        return value
    return time.fromisoformat(str(value).strip())
