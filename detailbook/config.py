"""
Configuration management using Pydantic models loaded from YAML.
"""

from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import (
    AddonEntry,
    Catalog,
    ScheduleRules,
    ServiceCatalogEntry,
    TravelZoneEntry,
    VehicleSize,
)


class BrandConfig(BaseModel):
    """Business details shown on confirmations."""
    name: str = "Olympus Detailing"
    tagline: str = "Where every finish feels first-class."
    phone: str = "+61 400 000 999"
    email: str = "bookings@olympus-detailing.au"
    address: str = "11 Athena Ave, Brisbane QLD"


class ScheduleConfig(BaseModel):
    """Opening hours and daily capacity."""
    opening_hour: int = 9
    closing_hour: int = 17
    slot_minutes: int = 30
    slots_per_day: int = 6

    @field_validator("opening_hour", "closing_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 23."""
        if not 0 <= v <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {v}")
        return v

    @field_validator("slot_minutes")
    @classmethod
    def validate_slot_minutes(cls, value: int) -> int:
        """Slots must tile the hour exactly."""
        if value <= 0 or 60 % value != 0:
            raise ValueError(f"slot_minutes must divide 60, got {value}")
        return value

    @field_validator("slots_per_day")
    @classmethod
    def validate_capacity(cls, value: int) -> int:
        if value < 1:
            raise ValueError("slots_per_day must be at least 1")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "ScheduleConfig":
        """Ensure the studio opens before it closes."""
        if self.closing_hour <= self.opening_hour:
            raise ValueError("closing_hour must be later than opening_hour")
        return self

    def to_rules(self) -> ScheduleRules:
        return ScheduleRules(
            opening_hour=self.opening_hour,
            closing_hour=self.closing_hour,
            slot_minutes=self.slot_minutes,
            slots_per_day=self.slots_per_day,
        )


class ServiceConfig(BaseModel):
    """A detailing package and its price per vehicle size."""
    id: str
    name: str
    description: str = ""
    duration_minutes: int
    price_by_size: Dict[VehicleSize, Decimal]

    @field_validator("price_by_size")
    @classmethod
    def validate_prices(cls, value: Dict[VehicleSize, Decimal]) -> Dict[VehicleSize, Decimal]:
        """Every size needs a non-negative price."""
        missing = [size.value for size in VehicleSize if size not in value]
        if missing:
            raise ValueError(f"price_by_size is missing: {', '.join(missing)}")
        negative = [size.value for size, price in value.items() if price < 0]
        if negative:
            raise ValueError(f"price_by_size must not be negative: {', '.join(negative)}")
        return value


class AddonConfig(BaseModel):
    """Flat-priced extra."""
    id: str
    name: str
    price: Decimal = Field(ge=0)


class ZoneConfig(BaseModel):
    """Home-service travel zone."""
    id: str
    label: str
    fee: Decimal = Field(ge=0)


def _default_services() -> List[ServiceConfig]:
    return [
        ServiceConfig(
            id="express",
            name="Express Detail",
            description="Exterior wash, quick interior spruce, tyre shine.",
            duration_minutes=60,
            price_by_size={"small": 89, "medium": 109, "large": 129},
        ),
        ServiceConfig(
            id="signature",
            name="Signature Detail",
            description="Deep interior clean, foam wash, clay, machine polish (light).",
            duration_minutes=150,
            price_by_size={"small": 249, "medium": 289, "large": 329},
        ),
        ServiceConfig(
            id="ceramic",
            name="Ceramic Coat (3-yr)",
            description="Paint prep, multi-stage polish, 3-year ceramic protection.",
            duration_minutes=300,
            price_by_size={"small": 899, "medium": 1099, "large": 1299},
        ),
    ]


def _default_addons() -> List[AddonConfig]:
    return [
        AddonConfig(id="pet", name="Pet Hair Removal", price=40),
        AddonConfig(id="engine", name="Engine Bay Detail", price=60),
        AddonConfig(id="headlights", name="Headlight Restoration", price=80),
        AddonConfig(id="interior", name="Leather Clean & Protect", price=70),
    ]


def _default_zones() -> List[ZoneConfig]:
    return [
        ZoneConfig(id="A", label="Zone A – within ~20km", fee=25),
        ZoneConfig(id="B", label="Zone B – 20–35km", fee=45),
        ZoneConfig(id="C", label="Zone C – 35–50km", fee=65),
    ]


class StorageConfig(BaseModel):
    """Where the booking collection lives on disk."""
    bookings_file: Path = Field(
        default_factory=lambda: Path.home() / ".detailbook" / "bookings.json"
    )

    @field_validator("bookings_file")
    @classmethod
    def expand_home(cls, value: Path) -> Path:
        return value.expanduser()


class NotificationConfig(BaseModel):
    """Optional webhook that receives every new booking."""
    webhook_url: Optional[str] = None
    timeout_seconds: float = Field(default=10.0, gt=0)


class AdminConfig(BaseModel):
    """Dashboard access."""
    pin: str = "2468"

    @field_validator("pin")
    @classmethod
    def validate_pin(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Admin PIN must not be empty")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    brand: BrandConfig = Field(default_factory=BrandConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    services: List[ServiceConfig] = Field(default_factory=_default_services)
    addons: List[AddonConfig] = Field(default_factory=_default_addons)
    zones: List[ZoneConfig] = Field(default_factory=_default_zones)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    admin: AdminConfig = Field(default_factory=AdminConfig)
    timezone: str = "Australia/Brisbane"
    currency: str = "AUD"
    log_level: str = "INFO"

    @field_validator("services", "addons", "zones")
    @classmethod
    def validate_unique_ids(cls, value: List[BaseModel]) -> List[BaseModel]:
        """Ensure catalog ids are unique within each table."""
        seen: set[str] = set()
        for entry in value:
            if entry.id in seen:
                raise ValueError(f"Duplicate catalog id detected: {entry.id}")
            seen.add(entry.id)
        return value

    @field_validator("services")
    @classmethod
    def validate_services_present(cls, value: List[ServiceConfig]) -> List[ServiceConfig]:
        if not value:
            raise ValueError("At least one service must be configured")
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def build_catalog(self) -> Catalog:
        """Convert the configured tables into the engine's catalog."""
        return Catalog.from_entries(
            services=[
                ServiceCatalogEntry(
                    id=s.id,
                    name=s.name,
                    description=s.description,
                    duration_minutes=s.duration_minutes,
                    price_by_size=dict(s.price_by_size),
                )
                for s in self.services
            ],
            addons=[AddonEntry(id=a.id, name=a.name, price=a.price) for a in self.addons],
            zones=[TravelZoneEntry(id=z.id, label=z.label, fee=z.fee) for z in self.zones],
        )

    def build_rules(self) -> ScheduleRules:
        return self.schedule.to_rules()


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load an explicit config file, or the default one if it exists.

    Falls back to built-in defaults when no path is given and no
    config.yaml can be found.
    """
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()
