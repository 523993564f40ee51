"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.routing import RouteResponse, RoutingRequest
from ...services.routing.optimizer import NoPositionAvailableError
from ...services.routing.service import build_route_response, optimize_for_worker, reset_route, toggle_stop

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("/optimize", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def optimize(payload: RoutingRequest) -> RouteResponse:
    try:
        return optimize_for_worker(payload)
    except NoPositionAvailableError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing route: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize route: {str(exc)}"
        ) from exc


@router.get("/{worker_id}", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def get_route(worker_id: str) -> RouteResponse:
    return build_route_response(worker_id)


@router.post("/{worker_id}/stops/{site_id}/toggle", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def toggle(worker_id: str, site_id: str) -> RouteResponse:
    """Flip the local completion mark of a stop in the worker's active route."""
    try:
        return toggle_stop(worker_id, site_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Site {site_id} is not a stop in the active route for worker {worker_id}"
        ) from exc


@router.post("/{worker_id}/reset", response_model=RouteResponse, status_code=status.HTTP_200_OK)
def reset(worker_id: str) -> RouteResponse:
    return reset_route(worker_id)
