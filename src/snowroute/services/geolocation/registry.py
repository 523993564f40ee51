"""Per-worker location feeds for the API process."""

from __future__ import annotations

from typing import Optional

from ...models.domain import Position
from .errors import error_from_kind
from .provider import GeolocationProvider, PositionOptions
from .sources import ReportedLocationSource


class WorkerLocations:
    """One reported source and one watching provider per worker."""

    def __init__(self, options: PositionOptions | None = None) -> None:
        self._options = options
        self._feeds: dict[str, tuple[ReportedLocationSource, GeolocationProvider]] = {}

    def _feed(self, worker_id: str) -> tuple[ReportedLocationSource, GeolocationProvider]:
        feed = self._feeds.get(worker_id)
        if feed is None:
            source = ReportedLocationSource()
            provider = GeolocationProvider(source, self._options)
            provider.start_watching()
            feed = (source, provider)
            self._feeds[worker_id] = feed
        return feed

    def provider(self, worker_id: str) -> GeolocationProvider:
        return self._feed(worker_id)[1]

    def report(self, worker_id: str, position: Position) -> GeolocationProvider:
        source, provider = self._feed(worker_id)
        source.report(position)
        return provider

    def report_error(self, worker_id: str, kind: str, message: str | None = None) -> GeolocationProvider:
        source, provider = self._feed(worker_id)
        source.report_error(error_from_kind(kind, message))
        return provider

    def last_known(self, worker_id: str) -> Optional[Position]:
        feed = self._feeds.get(worker_id)
        return feed[1].position if feed else None

    def close(self) -> None:
        for _, provider in self._feeds.values():
            provider.close()
        self._feeds.clear()


worker_locations = WorkerLocations()
