"""Check-in request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import Coordinate, WorkCategory
from .common import PositionModel


class SiteLocationMixin(BaseModel):
    site_latitude: Optional[float] = Field(None, ge=-90, le=90)
    site_longitude: Optional[float] = Field(None, ge=-180, le=180)

    def site_coordinate(self) -> Optional[Coordinate]:
        if self.site_latitude is None or self.site_longitude is None:
            return None
        return Coordinate(self.site_latitude, self.site_longitude)


class CheckInRequest(SiteLocationMixin):
    site_id: str
    site_name: str
    service_type: Optional[str] = None
    position: Optional[PositionModel] = None
    use_reported_position: bool = Field(
        default=True,
        description="Stamp with the worker's last reported position when none is sent.",
    )
    employee_id: Optional[str] = None


class CheckOutRequest(SiteLocationMixin):
    position: Optional[PositionModel] = None
    use_reported_position: bool = True
    employee_id: Optional[str] = None
    created_by: Optional[str] = None
    notes: Optional[str] = None
    snow_depth: Optional[float] = Field(None, ge=0)
    salt_used: Optional[float] = Field(None, ge=0)
    temperature: Optional[float] = None
    weather_description: Optional[str] = None
    persist: bool = True


class ServiceTypeUpdate(BaseModel):
    service_type: str


class CheckInStateModel(BaseModel):
    worker_id: str
    category: WorkCategory
    is_checked_in: bool
    site_id: Optional[str] = None
    site_name: Optional[str] = None
    check_in_time: Optional[str] = None
    service_type: Optional[str] = None
    elapsed_ms: int = 0
    elapsed_label: str = "0:00:00"


class GeofenceEventModel(BaseModel):
    site_id: str
    event_type: str
    latitude: float
    longitude: float
    accuracy_m: float
    timestamp: str
    distance_from_site_m: Optional[float] = None
    within_radius: Optional[bool] = None


class ReplacedSessionModel(BaseModel):
    site_id: Optional[str]
    site_name: Optional[str]
    check_in_time: Optional[str]
    service_type: Optional[str]


class CheckInResponse(BaseModel):
    state: CheckInStateModel
    replaced: Optional[ReplacedSessionModel] = None
    event: Optional[GeofenceEventModel] = None


class WorkLogModel(BaseModel):
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


class CheckOutResponse(BaseModel):
    state: CheckInStateModel
    record: Optional[WorkLogModel] = None
    event: Optional[GeofenceEventModel] = None
    work_log_id: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
