"""Device location endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...schemas.common import PositionModel
from ...schemas.location import LocationReport, LocationStateModel
from ...services.geolocation.provider import GeolocationProvider
from ...services.geolocation.registry import worker_locations

router = APIRouter(prefix="/location", tags=["location"])


def _state(worker_id: str, provider: GeolocationProvider) -> LocationStateModel:
    return LocationStateModel(
        worker_id=worker_id,
        position=PositionModel.from_domain(provider.position) if provider.position else None,
        error=provider.error.message if provider.error else None,
        error_kind=provider.error.kind if provider.error else None,
        loading=provider.loading,
        is_watching=provider.is_watching,
    )


# async so reports are delivered on the event loop that owns pending requests
@router.post("/{worker_id}", response_model=LocationStateModel, status_code=status.HTTP_200_OK)
async def report_location(worker_id: str, payload: LocationReport) -> LocationStateModel:
    if payload.position is not None:
        provider = worker_locations.report(worker_id, payload.position.to_domain())
    else:
        provider = worker_locations.report_error(worker_id, payload.error, payload.message)
    return _state(worker_id, provider)


@router.get("/{worker_id}", response_model=LocationStateModel, status_code=status.HTTP_200_OK)
async def get_location(worker_id: str) -> LocationStateModel:
    return _state(worker_id, worker_locations.provider(worker_id))
