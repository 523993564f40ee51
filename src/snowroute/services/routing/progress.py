"""Session-scoped progress over an optimized route."""

from __future__ import annotations

from typing import Optional, Sequence

from ...models.domain import RouteStop
from .optimizer import estimate_minutes


class RouteSession:
    """Active route plus the stops a worker has ticked off locally.

    The local completion set is independent of the backend "completed today"
    flag. The route and the set are always replaced or cleared together so a
    stale set never carries over to a new route.
    """

    def __init__(self) -> None:
        self._stops: tuple[RouteStop, ...] = ()
        self._completed: frozenset[str] = frozenset()

    @property
    def stops(self) -> tuple[RouteStop, ...]:
        return self._stops

    @property
    def completed_ids(self) -> frozenset[str]:
        return self._completed

    @property
    def is_active(self) -> bool:
        return bool(self._stops)

    def activate(self, stops: Sequence[RouteStop]) -> None:
        self._stops, self._completed = tuple(stops), frozenset()

    def reset(self) -> None:
        self._stops, self._completed = (), frozenset()

    def toggle_complete(self, site_id: str) -> bool:
        """Flip the local completion mark of a stop and return the new mark."""
        if not any(stop.site_id == site_id for stop in self._stops):
            raise KeyError(site_id)
        if site_id in self._completed:
            self._completed = self._completed - {site_id}
            return False
        self._completed = self._completed | {site_id}
        return True

    def is_completed(self, stop: RouteStop) -> bool:
        return stop.site.completed_today or stop.site_id in self._completed

    def remaining_stops(self) -> list[RouteStop]:
        return [stop for stop in self._stops if not self.is_completed(stop)]

    def next_stop(self) -> Optional[RouteStop]:
        remaining = self.remaining_stops()
        return remaining[0] if remaining else None

    @property
    def completed_count(self) -> int:
        return sum(1 for stop in self._stops if self.is_completed(stop))

    def estimated_minutes_remaining(self) -> int:
        return estimate_minutes(len(self.remaining_stops()))
