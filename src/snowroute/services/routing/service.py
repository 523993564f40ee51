"""Routing orchestration service."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence

from ...config import settings
from ...data.sites_repository import load_active_sites
from ...models.domain import Position, RouteStop, Site
from ...persistence.filesystem import FileStorage
from ...schemas.routing import RouteResponse, RouteStopModel, RoutingRequest, SiteModel
from ..export.geojson import route_to_feature_collection, save_geojson
from ..geolocation.registry import worker_locations
from ..geospatial import format_distance
from ..outputs.routing_formatter import route_stops_to_csv, route_stops_to_json
from .optimizer import NoPositionAvailableError, optimize_route, total_route_distance
from .progress import RouteSession


@dataclass(slots=True)
class RouteContext:
    """What the last optimization of a worker's route started from and reported."""

    start: Position
    completed_sites: list[Site] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)


_sessions: dict[str, RouteSession] = {}
_route_contexts: dict[str, RouteContext] = {}


def _now_ms() -> int:
    return int(time.time() * 1000)


def get_route_session(worker_id: str) -> RouteSession:
    session = _sessions.get(worker_id)
    if session is None:
        session = RouteSession()
        _sessions[worker_id] = session
    return session


def clear_route_sessions() -> None:
    _sessions.clear()
    _route_contexts.clear()


def _resolve_start(payload: RoutingRequest, clock_ms: Callable[[], int] = _now_ms) -> Position:
    if payload.position is not None:
        return payload.position.to_domain()
    reported = worker_locations.last_known(payload.worker_id)
    if reported is None:
        raise NoPositionAvailableError(
            f"No position available for worker '{payload.worker_id}'. Enable location and try again."
        )
    age_ms = clock_ms() - reported.captured_at_ms
    if age_ms > settings.route_start_max_age_ms:
        raise NoPositionAvailableError(
            f"Last reported position for worker '{payload.worker_id}' is {age_ms // 1000}s old. "
            "Report a fresh location and try again."
        )
    return reported


def _resolve_sites(payload: RoutingRequest) -> list[Site]:
    if payload.sites is not None:
        sites = [model.to_domain() for model in payload.sites]
        return [
            site
            for site in sites
            if site.service.matches(payload.service_type)
            and (payload.priority is None or site.priority is payload.priority)
        ]
    return load_active_sites(payload.service_type, payload.priority)


def _stop_model(session: RouteSession, stop: RouteStop) -> RouteStopModel:
    leg = stop.distance_from_previous_m
    return RouteStopModel(
        site=SiteModel.from_domain(stop.site),
        sequence_index=stop.sequence_index,
        distance_from_previous_m=leg,
        distance_label=format_distance(leg) if leg is not None else None,
        completed=session.is_completed(stop),
    )


def build_route_response(worker_id: str) -> RouteResponse:
    session = get_route_session(worker_id)
    context = _route_contexts.get(worker_id)
    total: Optional[float] = None
    if session.is_active:
        total = total_route_distance(session.stops, context.start if context else None)
    next_stop = session.next_stop()
    return RouteResponse(
        worker_id=worker_id,
        active=session.is_active,
        stops=[_stop_model(session, stop) for stop in session.stops],
        completed_sites=[SiteModel.from_domain(site) for site in context.completed_sites] if context else [],
        completed_count=session.completed_count,
        next_site_id=next_stop.site_id if next_stop else None,
        total_distance_m=total,
        total_distance_label=format_distance(total) if total is not None else None,
        estimated_minutes=session.estimated_minutes_remaining(),
        metadata=dict(context.metadata) if context else {},
    )


def optimize_for_worker(payload: RoutingRequest) -> RouteResponse:
    start = _resolve_start(payload)
    sites = _resolve_sites(payload)
    stops = optimize_route(start, sites)

    completed_sites = [site for site in sites if site.completed_today]
    unlocated = sum(1 for stop in stops if stop.site.coordinate is None)
    metadata = {
        "status": "optimized",
        "algorithm": "priority_nearest_neighbor",
        "candidate_sites": len(sites),
        "unlocated_stops": unlocated,
        "start": {"latitude": start.latitude, "longitude": start.longitude, "accuracy_m": start.accuracy_m},
    }
    logging.info(
        f"Optimized route for worker {payload.worker_id}: {len(stops)} stops, "
        f"{len(completed_sites)} already completed today, {unlocated} without coordinates"
    )

    persist = settings.persist_route_outputs if payload.persist is None else payload.persist
    if persist and stops:
        try:
            metadata["output_dir"] = str(_write_outputs(payload.worker_id, stops, start, metadata))
        except OSError as exc:
            logging.warning(f"Failed to write route outputs for worker {payload.worker_id}: {exc}")

    get_route_session(payload.worker_id).activate(stops)
    _route_contexts[payload.worker_id] = RouteContext(start=start, completed_sites=completed_sites, metadata=metadata)
    return build_route_response(payload.worker_id)


def _write_outputs(worker_id: str, stops: Sequence[RouteStop], start: Position, metadata: dict) -> Path:
    storage = FileStorage()
    run_dir = storage.make_run_directory(prefix=f"route_{worker_id}")
    storage.write_json(run_dir / "summary.json", route_stops_to_json(worker_id, stops, metadata))
    storage.write_csv(run_dir / "stops.csv", route_stops_to_csv(stops))
    save_geojson(route_to_feature_collection(stops, start.coordinate), run_dir / "route.geojson")
    return run_dir


def toggle_stop(worker_id: str, site_id: str) -> RouteResponse:
    session = get_route_session(worker_id)
    marked = session.toggle_complete(site_id)
    logging.info(f"Worker {worker_id} marked stop {site_id} {'complete' if marked else 'incomplete'}")
    return build_route_response(worker_id)


def reset_route(worker_id: str) -> RouteResponse:
    get_route_session(worker_id).reset()
    _route_contexts.pop(worker_id, None)
    return build_route_response(worker_id)
