"""Routing request/response schemas."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..models.domain import Coordinate, PriorityTier, ServiceCapability, Site
from .common import PositionModel


class SiteModel(BaseModel):
    id: str
    name: str
    address: str = ""
    priority: PriorityTier = PriorityTier.NORMAL
    service_type: ServiceCapability = ServiceCapability.BOTH
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    completed_today: bool = False

    @field_validator("priority", mode="before")
    @classmethod
    def _parse_priority(cls, value: Any) -> PriorityTier:
        if isinstance(value, PriorityTier):
            return value
        return PriorityTier.parse(value)

    @field_validator("service_type", mode="before")
    @classmethod
    def _parse_service(cls, value: Any) -> ServiceCapability:
        if isinstance(value, ServiceCapability):
            return value
        return ServiceCapability.parse(value)

    def to_domain(self) -> Site:
        coordinate = None
        if self.latitude is not None and self.longitude is not None:
            coordinate = Coordinate(self.latitude, self.longitude)
        return Site(
            id=self.id,
            name=self.name,
            address=self.address,
            priority=self.priority,
            service=self.service_type,
            coordinate=coordinate,
            completed_today=self.completed_today,
        )

    @classmethod
    def from_domain(cls, site: Site) -> "SiteModel":
        return cls(
            id=site.id,
            name=site.name,
            address=site.address,
            priority=site.priority,
            service_type=site.service,
            latitude=site.coordinate.latitude if site.coordinate else None,
            longitude=site.coordinate.longitude if site.coordinate else None,
            completed_today=site.completed_today,
        )


class RoutingRequest(BaseModel):
    worker_id: str
    position: Optional[PositionModel] = Field(
        default=None,
        description="Start position. Falls back to the worker's last reported position.",
    )
    sites: Optional[List[SiteModel]] = Field(
        default=None,
        description="Candidate sites. When omitted, active sites are loaded from the directory.",
    )
    service_type: Optional[ServiceCapability] = None
    priority: Optional[PriorityTier] = None
    persist: Optional[bool] = Field(default=None, description="Write route outputs under the data root.")


class RouteStopModel(BaseModel):
    site: SiteModel
    sequence_index: int
    distance_from_previous_m: Optional[float]
    distance_label: Optional[str]
    completed: bool


class RouteResponse(BaseModel):
    worker_id: str
    active: bool
    stops: List[RouteStopModel]
    completed_sites: List[SiteModel] = Field(default_factory=list)
    completed_count: int
    next_site_id: Optional[str]
    total_distance_m: Optional[float]
    total_distance_label: Optional[str]
    estimated_minutes: int
    metadata: dict = Field(default_factory=dict)
