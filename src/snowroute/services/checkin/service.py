"""Check-in orchestration: per-worker machines, GPS stamps and work-log hand-off."""

from __future__ import annotations

import functools
import logging
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from ...config import settings
from ...models.domain import (
    CheckInState,
    Coordinate,
    GeofenceEvent,
    Position,
    WorkCategory,
    WorkLogRecord,
)
from ...persistence.database import save_geofence_event, save_work_log
from ...persistence.filesystem import JsonFileStore
from ...persistence.keyvalue import KeyValueStore
from ..geospatial import distance_meters, is_within_radius
from .state_machine import CheckInStateMachine, Clock, parse_timestamp


@dataclass(slots=True)
class WorkLogDetails:
    """Optional observations captured on the check-out form."""

    notes: Optional[str] = None
    snow_depth: Optional[float] = None
    salt_used: Optional[float] = None
    temperature: Optional[float] = None
    weather_description: Optional[str] = None


@dataclass(slots=True)
class CheckInOutcome:
    state: CheckInState
    replaced: Optional[CheckInState] = None
    event: Optional[GeofenceEvent] = None


@dataclass(slots=True)
class CheckOutOutcome:
    state: CheckInState
    record: Optional[WorkLogRecord] = None
    event: Optional[GeofenceEvent] = None
    work_log_id: Optional[str] = None
    warnings: list[str] = field(default_factory=list)


def duration_minutes(check_in_time: str, check_out: datetime) -> int:
    elapsed = check_out - parse_timestamp(check_in_time)
    return max(0, math.floor(elapsed.total_seconds() / 60 + 0.5))


class CheckInService:
    def __init__(
        self,
        store: KeyValueStore | None = None,
        *,
        clock: Clock | None = None,
        radius_m: float | None = None,
    ) -> None:
        self._store = store if store is not None else JsonFileStore()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._radius_m = settings.check_in_radius_meters if radius_m is None else radius_m
        self._machines: dict[tuple[str, WorkCategory], CheckInStateMachine] = {}
        self._machines_lock = threading.Lock()

    def machine(self, worker_id: str, category: WorkCategory) -> CheckInStateMachine:
        key = (worker_id, category)
        with self._machines_lock:
            machine = self._machines.get(key)
            if machine is None:
                machine = CheckInStateMachine(self._store, worker_id, category, clock=self._clock)
                self._machines[key] = machine
        return machine

    def _stamp(
        self,
        worker_id: str,
        site_id: str,
        event_type: str,
        position: Optional[Position],
        site_coordinate: Optional[Coordinate],
    ) -> Optional[GeofenceEvent]:
        if position is None:
            return None
        distance = within = None
        if site_coordinate is not None:
            distance = distance_meters(position.coordinate, site_coordinate)
            within = is_within_radius(position.coordinate, site_coordinate, self._radius_m)
            if not within:
                logging.warning(
                    f"Worker {worker_id} {event_type} at {site_id} is {distance:.0f}m from the site "
                    f"(radius {self._radius_m:.0f}m)"
                )
        return GeofenceEvent(
            worker_id=worker_id,
            site_id=site_id,
            event_type=event_type,
            latitude=position.latitude,
            longitude=position.longitude,
            accuracy_m=position.accuracy_m,
            timestamp=self._clock().isoformat(),
            distance_from_site_m=distance,
            within_radius=within,
        )

    def check_in(
        self,
        worker_id: str,
        category: WorkCategory,
        site_id: str,
        site_name: str,
        service_type: Optional[str] = None,
        *,
        position: Optional[Position] = None,
        site_coordinate: Optional[Coordinate] = None,
        employee_id: Optional[str] = None,
    ) -> CheckInOutcome:
        machine = self.machine(worker_id, category)
        replaced = machine.check_in(site_id, site_name, service_type)
        event = self._stamp(worker_id, site_id, "check_in", position, site_coordinate)
        if event is not None:
            save_geofence_event(event, employee_id=employee_id)
        return CheckInOutcome(state=machine.state, replaced=replaced, event=event)

    def check_out(
        self,
        worker_id: str,
        category: WorkCategory,
        *,
        details: WorkLogDetails | None = None,
        position: Optional[Position] = None,
        site_coordinate: Optional[Coordinate] = None,
        employee_id: Optional[str] = None,
        created_by: Optional[str] = None,
        persist: bool = True,
    ) -> CheckOutOutcome:
        """End the active session and hand the visit to the work-log flow.

        The state resets even when nothing was active; in that case no record
        is produced.
        """
        machine = self.machine(worker_id, category)
        checked_out_at = self._clock()
        previous = machine.check_out()
        outcome = CheckOutOutcome(state=machine.state)
        if not previous.is_checked_in:
            outcome.warnings.append("Not checked in; nothing to log.")
            return outcome

        details = details or WorkLogDetails()
        outcome.record = WorkLogRecord(
            site_id=previous.site_id,
            site_name=previous.site_name,
            category=category,
            service_type=previous.service_type,
            check_in_time=previous.check_in_time,
            check_out_time=checked_out_at.isoformat(),
            duration_minutes=duration_minutes(previous.check_in_time, checked_out_at),
            notes=details.notes,
            snow_depth=details.snow_depth,
            salt_used=details.salt_used,
            temperature=details.temperature,
            weather_description=details.weather_description,
        )
        outcome.event = self._stamp(worker_id, previous.site_id, "check_out", position, site_coordinate)
        if outcome.event is not None:
            save_geofence_event(outcome.event, employee_id=employee_id)
        if persist:
            outcome.work_log_id = save_work_log(outcome.record, employee_id=employee_id, created_by=created_by)
            if outcome.work_log_id is None:
                outcome.warnings.append("Work log was not saved to the database.")
        return outcome


@functools.lru_cache(maxsize=1)
def get_check_in_service() -> CheckInService:
    return CheckInService()
