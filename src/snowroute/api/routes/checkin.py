"""Check-in/check-out endpoints."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, HTTPException, status

from ...models.domain import CheckInState, GeofenceEvent, Position, WorkCategory
from ...schemas.checkin import (
    CheckInRequest,
    CheckInResponse,
    CheckInStateModel,
    CheckOutRequest,
    CheckOutResponse,
    GeofenceEventModel,
    ReplacedSessionModel,
    ServiceTypeUpdate,
    WorkLogModel,
)
from ...schemas.common import PositionModel
from ...services.checkin.service import WorkLogDetails, get_check_in_service
from ...services.geolocation.registry import worker_locations

router = APIRouter(prefix="/check-in", tags=["check-in"])


def _state_model(worker_id: str, category: WorkCategory) -> CheckInStateModel:
    machine = get_check_in_service().machine(worker_id, category)
    state = machine.state
    return CheckInStateModel(
        worker_id=worker_id,
        category=category,
        is_checked_in=state.is_checked_in,
        site_id=state.site_id,
        site_name=state.site_name,
        check_in_time=state.check_in_time,
        service_type=state.service_type,
        elapsed_ms=machine.elapsed_millis(),
        elapsed_label=machine.format_elapsed(),
    )


def _event_model(event: Optional[GeofenceEvent]) -> Optional[GeofenceEventModel]:
    if event is None:
        return None
    return GeofenceEventModel(
        site_id=event.site_id,
        event_type=event.event_type,
        latitude=event.latitude,
        longitude=event.longitude,
        accuracy_m=event.accuracy_m,
        timestamp=event.timestamp,
        distance_from_site_m=event.distance_from_site_m,
        within_radius=event.within_radius,
    )


def _replaced_model(state: Optional[CheckInState]) -> Optional[ReplacedSessionModel]:
    if state is None:
        return None
    return ReplacedSessionModel(
        site_id=state.site_id,
        site_name=state.site_name,
        check_in_time=state.check_in_time,
        service_type=state.service_type,
    )


def _stamp_position(worker_id: str, position: Optional[PositionModel], use_reported: bool) -> Optional[Position]:
    if position is not None:
        return position.to_domain()
    if use_reported:
        return worker_locations.last_known(worker_id)
    return None


@router.get("/{worker_id}/{category}", response_model=CheckInStateModel, status_code=status.HTTP_200_OK)
def get_state(worker_id: str, category: WorkCategory) -> CheckInStateModel:
    return _state_model(worker_id, category)


@router.post("/{worker_id}/{category}/check-in", response_model=CheckInResponse, status_code=status.HTTP_200_OK)
def check_in(worker_id: str, category: WorkCategory, payload: CheckInRequest) -> CheckInResponse:
    try:
        outcome = get_check_in_service().check_in(
            worker_id,
            category,
            payload.site_id,
            payload.site_name,
            payload.service_type,
            position=_stamp_position(worker_id, payload.position, payload.use_reported_position),
            site_coordinate=payload.site_coordinate(),
            employee_id=payload.employee_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return CheckInResponse(
        state=_state_model(worker_id, category),
        replaced=_replaced_model(outcome.replaced),
        event=_event_model(outcome.event),
    )


@router.post("/{worker_id}/{category}/check-out", response_model=CheckOutResponse, status_code=status.HTTP_200_OK)
def check_out(worker_id: str, category: WorkCategory, payload: CheckOutRequest) -> CheckOutResponse:
    details = WorkLogDetails(
        notes=payload.notes,
        snow_depth=payload.snow_depth,
        salt_used=payload.salt_used,
        temperature=payload.temperature,
        weather_description=payload.weather_description,
    )
    try:
        outcome = get_check_in_service().check_out(
            worker_id,
            category,
            details=details,
            position=_stamp_position(worker_id, payload.position, payload.use_reported_position),
            site_coordinate=payload.site_coordinate(),
            employee_id=payload.employee_id,
            created_by=payload.created_by,
            persist=payload.persist,
        )
    except Exception as exc:
        logging.exception(f"Error checking out worker {worker_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to check out: {str(exc)}"
        ) from exc
    return CheckOutResponse(
        state=_state_model(worker_id, category),
        record=WorkLogModel(**asdict(outcome.record)) if outcome.record else None,
        event=_event_model(outcome.event),
        work_log_id=outcome.work_log_id,
        warnings=outcome.warnings,
    )


@router.patch("/{worker_id}/{category}/service-type", response_model=CheckInStateModel, status_code=status.HTTP_200_OK)
def update_service_type(worker_id: str, category: WorkCategory, payload: ServiceTypeUpdate) -> CheckInStateModel:
    machine = get_check_in_service().machine(worker_id, category)
    if not machine.is_checked_in:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Worker {worker_id} is not checked in for {category.value} work"
        )
    try:
        machine.update_service_type(payload.service_type)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _state_model(worker_id, category)
