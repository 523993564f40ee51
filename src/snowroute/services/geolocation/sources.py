"""Location sources fed by positions that devices report to the API."""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from typing import Callable, Optional

from ...config import settings
from ...models.domain import Position
from .errors import GeolocationError
from .provider import ErrorCallback, PositionCallback, PositionOptions


def _now_ms() -> int:
    return int(time.time() * 1000)


class ReportedLocationSource:
    """Push-based source: the device sends fixes, waiting callers are resolved.

    A one-shot request is answered from the latest report when that report is
    fresh enough for ``max_cache_age_ms`` (and accurate enough when high
    accuracy is requested); otherwise it waits for the next report or error.
    """

    def __init__(self, *, clock_ms: Callable[[], int] | None = None, high_accuracy_max_m: float | None = None) -> None:
        self._clock_ms = clock_ms or _now_ms
        self._high_accuracy_max_m = (
            settings.high_accuracy_max_meters if high_accuracy_max_m is None else high_accuracy_max_m
        )
        self.latest: Optional[Position] = None
        self._pending: list[tuple[PositionOptions, asyncio.Future[Position]]] = []
        self._watches: dict[int, tuple[PositionCallback, ErrorCallback]] = {}
        self._ids = itertools.count(1)

    def _acceptable(self, position: Position, options: PositionOptions, *, cached: bool) -> bool:
        if options.enable_high_accuracy and position.accuracy_m > self._high_accuracy_max_m:
            return False
        if cached and self._clock_ms() - position.captured_at_ms > options.max_cache_age_ms:
            return False
        return True

    async def current_position(self, options: PositionOptions) -> Position:
        if self.latest is not None and self._acceptable(self.latest, options, cached=True):
            return self.latest
        future: asyncio.Future[Position] = asyncio.get_running_loop().create_future()
        entry = (options, future)
        self._pending.append(entry)
        try:
            return await future
        finally:
            if entry in self._pending:
                self._pending.remove(entry)

    def watch(self, options: PositionOptions, on_position: PositionCallback, on_error: ErrorCallback) -> int:
        handle = next(self._ids)
        self._watches[handle] = (on_position, on_error)
        return handle

    def clear_watch(self, handle: int) -> None:
        self._watches.pop(handle, None)

    @property
    def watch_count(self) -> int:
        return len(self._watches)

    def report(self, position: Position) -> None:
        self.latest = position
        for options, future in list(self._pending):
            if not future.done() and self._acceptable(position, options, cached=False):
                future.set_result(position)
        for on_position, _ in list(self._watches.values()):
            on_position(position)

    def report_error(self, error: GeolocationError) -> None:
        logging.info(f"Device reported location failure: {error.kind}")
        for _, future in list(self._pending):
            if not future.done():
                future.set_exception(error)
        for _, on_error in list(self._watches.values()):
            on_error(error)
