"""Device location report schemas."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, model_validator

from .common import PositionModel


class LocationReport(BaseModel):
    """Either a fix or a failure reported by the worker's device."""

    position: Optional[PositionModel] = None
    error: Optional[Literal["permission_denied", "unavailable", "timeout"]] = None
    message: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "LocationReport":
        if (self.position is None) == (self.error is None):
            raise ValueError("Provide either a position or an error.")
        return self


class LocationStateModel(BaseModel):
    worker_id: str
    position: Optional[PositionModel] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    loading: bool = False
    is_watching: bool = False
