"""Domain models for sites, positions, route stops and check-in state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PriorityTier(str, Enum):
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"

    @classmethod
    def parse(cls, value: Optional[str]) -> "PriorityTier":
        """Map a directory priority label onto a tier; ``urgent`` counts as high."""
        normalized = (value or "").strip().lower()
        if normalized == "urgent":
            return cls.HIGH
        try:
            return cls(normalized)
        except ValueError:
            return cls.NORMAL


class ServiceCapability(str, Enum):
    """Kind of work a site needs, as recorded in the account directory."""

    PLOWING = "plowing"
    SHOVEL = "shovel"
    BOTH = "both"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ServiceCapability":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.BOTH

    def matches(self, wanted: "ServiceCapability | None") -> bool:
        if wanted is None or wanted is ServiceCapability.BOTH:
            return True
        return self is ServiceCapability.BOTH or self is wanted


class WorkCategory(str, Enum):
    PLOW = "plow"
    SHOVEL = "shovel"


WORK_LOG_SERVICE_TYPES: dict[WorkCategory, tuple[str, ...]] = {
    WorkCategory.PLOW: ("plow", "salt", "both"),
    WorkCategory.SHOVEL: ("shovel", "salt", "both"),
}


@dataclass(frozen=True, slots=True)
class Coordinate:
    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True)
class Position:
    """A location fix from a device.

    Attributes:
        latitude: Latitude in decimal degrees.
        longitude: Longitude in decimal degrees.
        accuracy_m: Horizontal accuracy radius in meters.
        captured_at_ms: Unix epoch milliseconds when the fix was taken.
    """

    latitude: float
    longitude: float
    accuracy_m: float
    captured_at_ms: int

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class Site:
    """A serviceable account location from the directory."""

    id: str
    name: str
    address: str
    priority: PriorityTier = PriorityTier.NORMAL
    service: ServiceCapability = ServiceCapability.BOTH
    coordinate: Optional[Coordinate] = None
    completed_today: bool = False


@dataclass(frozen=True, slots=True)
class RouteStop:
    site: Site
    sequence_index: int
    distance_from_previous_m: Optional[float]

    @property
    def site_id(self) -> str:
        return self.site.id


@dataclass(frozen=True, slots=True)
class CheckInState:
    is_checked_in: bool = False
    site_id: Optional[str] = None
    site_name: Optional[str] = None
    check_in_time: Optional[str] = None
    service_type: Optional[str] = None

    def is_consistent(self) -> bool:
        present = (
            self.site_id is not None
            and self.site_name is not None
            and self.check_in_time is not None
        )
        return self.is_checked_in == present


DEFAULT_CHECK_IN_STATE = CheckInState()


@dataclass(frozen=True, slots=True)
class GeofenceEvent:
    """GPS stamp recorded when a worker checks in or out of a site."""

    worker_id: str
    site_id: str
    event_type: str
    latitude: float
    longitude: float
    accuracy_m: float
    timestamp: str
    distance_from_site_m: Optional[float] = None
    within_radius: Optional[bool] = None


@dataclass(slots=True)
class WorkLogRecord:
    """Completed service visit assembled at check-out."""

    site_id: str
    site_name: str
    category: WorkCategory
    service_type: Optional[str]
    check_in_time: str
    check_out_time: str
    duration_minutes: int
    notes: Optional[str] = None
    snow_depth: Optional[float] = None
    salt_used: Optional[float] = None
    temperature: Optional[float] = None
    weather_description: Optional[str] = None
