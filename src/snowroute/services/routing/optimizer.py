"""Priority-first nearest-neighbour ordering of field stops.

High-priority sites are all visited before any other site; within each tier
the next stop is the one closest to the current point. The distance chain is
continuous across the tier boundary. This is a greedy O(n^2) heuristic, not a
TSP solver; stop counts are in the tens.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Coordinate, Position, PriorityTier, RouteStop, Site
from ..geospatial import distance_meters


class NoPositionAvailableError(ValueError):
    def __init__(self, message: str = "Current position is required to optimize a route.") -> None:
        super().__init__(message)


def _as_coordinate(point: Coordinate | Position) -> Coordinate:
    if isinstance(point, Position):
        return point.coordinate
    return point


def _nearest_first(
    candidates: Sequence[Site],
    current: Coordinate,
) -> tuple[list[tuple[Site, Optional[float]]], Coordinate]:
    """Greedy nearest-neighbour walk over one tier.

    Returns the visited sites with their leg distance and the coordinate the
    walk ended on. Sites without a coordinate follow every located site, in
    input order, and do not move the current point.
    """
    remaining = [site for site in candidates if site.coordinate is not None]
    unlocated = [site for site in candidates if site.coordinate is None]
    ordered: list[tuple[Site, Optional[float]]] = []

    while remaining:
        best_index = 0
        best_distance = distance_meters(current, remaining[0].coordinate)
        for index in range(1, len(remaining)):
            candidate_distance = distance_meters(current, remaining[index].coordinate)
            # strict comparison keeps the earliest input on ties
            if candidate_distance < best_distance:
                best_index = index
                best_distance = candidate_distance
        nearest = remaining.pop(best_index)
        ordered.append((nearest, best_distance))
        current = nearest.coordinate

    ordered.extend((site, None) for site in unlocated)
    return ordered, current


def optimize_route(
    start: Coordinate | Position | None,
    sites: Sequence[Site],
) -> list[RouteStop]:
    """Order the incomplete ``sites`` into a visiting sequence from ``start``.

    Sites already completed today are left out. Raises
    ``NoPositionAvailableError`` when ``start`` is missing rather than
    returning an unordered list.
    """
    if start is None:
        raise NoPositionAvailableError()

    current = _as_coordinate(start)
    incomplete = [site for site in sites if not site.completed_today]
    high_priority = [site for site in incomplete if site.priority is PriorityTier.HIGH]
    others = [site for site in incomplete if site.priority is not PriorityTier.HIGH]

    high_legs, current = _nearest_first(high_priority, current)
    other_legs, _ = _nearest_first(others, current)

    return [
        RouteStop(site=site, sequence_index=index, distance_from_previous_m=leg)
        for index, (site, leg) in enumerate([*high_legs, *other_legs])
    ]


def total_route_distance(
    stops: Sequence[RouteStop],
    start: Coordinate | Position | None = None,
) -> float:
    """Sum of consecutive leg distances, beginning at ``start`` when given.

    Stops without a coordinate contribute nothing and are skipped over.
    """
    previous = _as_coordinate(start) if start is not None else None
    total = 0.0
    for stop in stops:
        coordinate = stop.site.coordinate
        if coordinate is None:
            continue
        if previous is not None:
            total += distance_meters(previous, coordinate)
        previous = coordinate
    return total


def estimate_minutes(stop_count: int, minutes_per_stop: int | None = None) -> int:
    per_stop = settings.minutes_per_stop if minutes_per_stop is None else minutes_per_stop
    return max(0, stop_count) * per_stop
