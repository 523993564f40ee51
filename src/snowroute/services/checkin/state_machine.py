"""Persisted check-in state for one worker in one work category.

A worker is either NOT_CHECKED_IN or CHECKED_IN at a site. The plow crew and
shovel crew sessions of the same worker are independent machines stored under
separate keys. The in-memory state is authoritative for the running process;
the store is written after every transition so the session survives restarts.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from ...models.domain import (
    DEFAULT_CHECK_IN_STATE,
    WORK_LOG_SERVICE_TYPES,
    CheckInState,
    WorkCategory,
)
from ...persistence.keyvalue import KeyValueStore

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def storage_key(worker_id: str, category: WorkCategory) -> str:
    return f"check_in_state:{worker_id}:{category.value}"


def parse_timestamp(value: str) -> datetime:
    # fromisoformat only accepts a trailing "Z" from Python 3.11
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_duration(elapsed_ms: int) -> str:
    """Render milliseconds as ``H:MM:SS`` with unbounded, unpadded hours."""
    total_seconds = max(0, elapsed_ms) // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def _decode_state(raw: str) -> CheckInState:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("stored check-in state is not an object")
    state = CheckInState(
        is_checked_in=bool(data.get("is_checked_in", False)),
        site_id=data.get("site_id"),
        site_name=data.get("site_name"),
        check_in_time=data.get("check_in_time"),
        service_type=data.get("service_type"),
    )
    if not state.is_consistent():
        raise ValueError("stored check-in state violates the checked-in invariant")
    if state.check_in_time is not None:
        parse_timestamp(state.check_in_time)
    return state


class CheckInStateMachine:
    def __init__(
        self,
        store: KeyValueStore,
        worker_id: str,
        category: WorkCategory,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self.worker_id = worker_id
        self.category = category
        self.key = storage_key(worker_id, category)
        self._clock = clock or _utc_now
        self._state = self._load()

    @property
    def state(self) -> CheckInState:
        return self._state

    @property
    def is_checked_in(self) -> bool:
        return self._state.is_checked_in

    def _load(self) -> CheckInState:
        try:
            raw = self._store.get(self.key)
        except Exception as exc:
            logging.warning(f"Failed to read check-in state '{self.key}': {exc}")
            return DEFAULT_CHECK_IN_STATE
        if raw is None:
            return DEFAULT_CHECK_IN_STATE
        try:
            return _decode_state(raw)
        except (ValueError, TypeError, AttributeError) as exc:
            logging.warning(f"Discarding corrupt check-in state '{self.key}': {exc}")
            return DEFAULT_CHECK_IN_STATE

    def _commit(self, state: CheckInState) -> None:
        self._state = state
        try:
            self._store.set(self.key, json.dumps(asdict(state)))
        except Exception as exc:
            logging.error(f"Failed to persist check-in state '{self.key}': {exc}")

    def _validate_service_type(self, service_type: Optional[str]) -> Optional[str]:
        if service_type is None:
            return None
        allowed = WORK_LOG_SERVICE_TYPES[self.category]
        if service_type not in allowed:
            raise ValueError(
                f"Service type '{service_type}' is not valid for {self.category.value} work; "
                f"expected one of {', '.join(allowed)}."
            )
        return service_type

    def check_in(
        self,
        site_id: str,
        site_name: str,
        service_type: Optional[str] = None,
    ) -> Optional[CheckInState]:
        """Start a session at a site.

        A check-in while already checked in replaces the running session. The
        replaced session is logged and returned so the caller can recover the
        lost time; otherwise the return value is None.
        """
        service_type = self._validate_service_type(service_type)
        discarded = self._state if self._state.is_checked_in else None
        if discarded is not None:
            logging.warning(
                f"Worker {self.worker_id} checked in to {site_id} while still checked in to "
                f"{discarded.site_id} since {discarded.check_in_time}; previous session replaced"
            )
        self._commit(
            CheckInState(
                is_checked_in=True,
                site_id=site_id,
                site_name=site_name,
                check_in_time=self._clock().isoformat(),
                service_type=service_type,
            )
        )
        logging.info(f"Worker {self.worker_id} checked in to {site_id} ({self.category.value})")
        return discarded

    def check_out(self) -> CheckInState:
        """Reset to the default state and return the session that was active."""
        previous = self._state
        self._commit(DEFAULT_CHECK_IN_STATE)
        if previous.is_checked_in:
            logging.info(f"Worker {self.worker_id} checked out of {previous.site_id} ({self.category.value})")
        return previous

    def update_service_type(self, service_type: str) -> CheckInState:
        service_type = self._validate_service_type(service_type)
        if not self._state.is_checked_in:
            logging.warning(f"Ignoring service type change for worker {self.worker_id}: not checked in")
            return self._state
        self._commit(replace(self._state, service_type=service_type))
        return self._state

    def elapsed_millis(self) -> int:
        if not self._state.is_checked_in or self._state.check_in_time is None:
            return 0
        started = parse_timestamp(self._state.check_in_time)
        elapsed = self._clock() - started
        return max(0, elapsed // timedelta(milliseconds=1))

    def format_elapsed(self) -> str:
        return format_duration(self.elapsed_millis())
