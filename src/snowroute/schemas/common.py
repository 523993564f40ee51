"""Shared geographic schemas."""

from __future__ import annotations

import time

from pydantic import BaseModel, Field

from ..models.domain import Position


class PositionModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy_m: float = Field(0.0, ge=0)
    captured_at_ms: int = Field(default_factory=lambda: int(time.time() * 1000))

    def to_domain(self) -> Position:
        return Position(
            latitude=self.latitude,
            longitude=self.longitude,
            accuracy_m=self.accuracy_m,
            captured_at_ms=self.captured_at_ms,
        )

    @classmethod
    def from_domain(cls, position: Position) -> "PositionModel":
        return cls(
            latitude=position.latitude,
            longitude=position.longitude,
            accuracy_m=position.accuracy_m,
            captured_at_ms=position.captured_at_ms,
        )
