"""Geolocation services."""

from .errors import (
    GeolocationError,
    LocationTimeoutError,
    LocationUnavailableError,
    PermissionDeniedError,
)
from .provider import GeolocationProvider, LocationSource, PositionOptions, PositionResult
from .sources import ReportedLocationSource

__all__ = [
    "GeolocationError",
    "PermissionDeniedError",
    "LocationUnavailableError",
    "LocationTimeoutError",
    "GeolocationProvider",
    "LocationSource",
    "PositionOptions",
    "PositionResult",
    "ReportedLocationSource",
]
