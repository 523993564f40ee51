"""Typed location failures."""

from __future__ import annotations


class GeolocationError(Exception):
    kind = "unknown"
    default_message = "Unable to get location"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class PermissionDeniedError(GeolocationError):
    kind = "permission_denied"
    default_message = "Location permission denied"


class LocationUnavailableError(GeolocationError):
    kind = "unavailable"
    default_message = "Location unavailable"


class LocationTimeoutError(GeolocationError):
    kind = "timeout"
    default_message = "Location request timed out"


_ERRORS_BY_KIND: dict[str, type[GeolocationError]] = {
    cls.kind: cls for cls in (PermissionDeniedError, LocationUnavailableError, LocationTimeoutError)
}


def error_from_kind(kind: str, message: str | None = None) -> GeolocationError:
    """Build the error class matching a reported failure kind."""
    try:
        return _ERRORS_BY_KIND[kind](message)
    except KeyError:
        raise ValueError(f"Unknown location error kind '{kind}'.") from None
