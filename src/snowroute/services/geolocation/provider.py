"""Geolocation provider wrapping a device location source.

The provider runs on a single event loop. A one-shot ``get_position`` call
suspends until the source answers or the timeout expires; a watch delivers
positions through callbacks on the source's own schedule. Whichever of the
two produced the most recent fix wins ``position``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from ...config import settings
from ...models.domain import Position
from .errors import GeolocationError, LocationTimeoutError, LocationUnavailableError

PositionCallback = Callable[[Position], None]
ErrorCallback = Callable[[GeolocationError], None]


@dataclass(frozen=True, slots=True)
class PositionOptions:
    enable_high_accuracy: bool = True
    timeout_ms: int = 10_000
    max_cache_age_ms: int = 0

    @classmethod
    def from_settings(cls) -> "PositionOptions":
        return cls(
            enable_high_accuracy=settings.geolocation_enable_high_accuracy,
            timeout_ms=settings.geolocation_timeout_ms,
            max_cache_age_ms=settings.geolocation_max_cache_age_ms,
        )


@dataclass(frozen=True, slots=True)
class PositionResult:
    position: Optional[Position] = None
    error: Optional[GeolocationError] = None

    @property
    def ok(self) -> bool:
        return self.position is not None


class LocationSource(Protocol):
    async def current_position(self, options: PositionOptions) -> Position:
        """Resolve one fix or raise a ``GeolocationError``."""
        ...

    def watch(
        self,
        options: PositionOptions,
        on_position: PositionCallback,
        on_error: ErrorCallback,
    ) -> Any:
        """Start delivering fixes and return a handle for ``clear_watch``."""
        ...

    def clear_watch(self, handle: Any) -> None:
        ...


class GeolocationProvider:
    def __init__(self, source: LocationSource, options: PositionOptions | None = None) -> None:
        self._source = source
        self.options = options or PositionOptions.from_settings()
        self.position: Optional[Position] = None
        self.error: Optional[GeolocationError] = None
        self.loading = False
        self._watch_handle: Any = None
        self._listeners: list[PositionCallback] = []

    @property
    def is_watching(self) -> bool:
        return self._watch_handle is not None

    def subscribe(self, callback: PositionCallback) -> Callable[[], None]:
        """Register a listener for watched positions; returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    async def get_position(self) -> PositionResult:
        """Fetch a single fix.

        Location failures come back inside the result instead of being raised,
        and leave the last known position untouched.
        """
        self.loading = True
        timeout_s = self.options.timeout_ms / 1000.0
        try:
            position = await asyncio.wait_for(self._source.current_position(self.options), timeout=timeout_s)
        except asyncio.TimeoutError:
            self.error = LocationTimeoutError()
            return PositionResult(error=self.error)
        except GeolocationError as exc:
            self.error = exc
            return PositionResult(error=exc)
        except Exception as exc:
            logging.exception(f"Location source failed unexpectedly: {exc}")
            self.error = LocationUnavailableError()
            return PositionResult(error=self.error)
        finally:
            self.loading = False
        self.position = position
        self.error = None
        return PositionResult(position=position)

    def start_watching(self, callback: PositionCallback | None = None) -> None:
        if callback is not None and callback not in self._listeners:
            self._listeners.append(callback)
        if self._watch_handle is not None:
            return
        self._watch_handle = self._source.watch(self.options, self._handle_position, self._handle_error)

    def stop_watching(self) -> None:
        handle, self._watch_handle = self._watch_handle, None
        if handle is not None:
            self._source.clear_watch(handle)

    def close(self) -> None:
        self.stop_watching()
        self._listeners.clear()

    def _handle_position(self, position: Position) -> None:
        self.position = position
        self.error = None
        for listener in list(self._listeners):
            try:
                listener(position)
            except Exception as exc:
                logging.exception(f"Position listener failed: {exc}")

    def _handle_error(self, error: GeolocationError) -> None:
        self.error = error

    def __enter__(self) -> "GeolocationProvider":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    async def __aenter__(self) -> "GeolocationProvider":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()
