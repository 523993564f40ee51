import pytest

from src.snowroute.models.domain import Coordinate, Position, PriorityTier, Site
from src.snowroute.services.geospatial import distance_meters
from src.snowroute.services.routing.optimizer import (
    NoPositionAvailableError,
    estimate_minutes,
    optimize_route,
    total_route_distance,
)


def _site(
    sid: str,
    lat: float | None,
    lon: float | None,
    priority: PriorityTier = PriorityTier.NORMAL,
    completed: bool = False,
) -> Site:
    coordinate = Coordinate(lat, lon) if lat is not None and lon is not None else None
    return Site(
        id=sid,
        name=f"Site {sid}",
        address=f"{sid} Main St",
        priority=priority,
        coordinate=coordinate,
        completed_today=completed,
    )


ORIGIN = Position(latitude=0.0, longitude=0.0, accuracy_m=5.0, captured_at_ms=0)


def _ids(stops) -> list[str]:
    return [stop.site_id for stop in stops]


def test_high_priority_sites_precede_closer_normal_sites():
    sites = [
        _site("A", 0, 1, PriorityTier.HIGH),
        _site("B", 0, 0.1, PriorityTier.NORMAL),
        _site("C", 0, 2, PriorityTier.HIGH),
    ]

    stops = optimize_route(ORIGIN, sites)

    assert _ids(stops) == ["A", "C", "B"]
    assert [stop.sequence_index for stop in stops] == [0, 1, 2]


def test_leg_distances_chain_across_tier_boundary():
    sites = [
        _site("A", 0, 1, PriorityTier.HIGH),
        _site("B", 0, 0.1, PriorityTier.NORMAL),
        _site("C", 0, 2, PriorityTier.HIGH),
    ]

    stops = optimize_route(ORIGIN, sites)

    assert stops[0].distance_from_previous_m == pytest.approx(distance_meters(Coordinate(0, 0), Coordinate(0, 1)))
    assert stops[1].distance_from_previous_m == pytest.approx(distance_meters(Coordinate(0, 1), Coordinate(0, 2)))
    # B is reached from C, where the high-priority pass ended
    assert stops[2].distance_from_previous_m == pytest.approx(distance_meters(Coordinate(0, 2), Coordinate(0, 0.1)))


def test_nearest_neighbor_follows_current_point_not_start():
    # From the origin, X is nearest. From X, Z is nearer than Y even though Y
    # is nearer to the origin.
    sites = [
        _site("Y", 0, -1.5),
        _site("X", 0, 1),
        _site("Z", 0, 2),
    ]

    assert _ids(optimize_route(ORIGIN, sites)) == ["X", "Z", "Y"]


def test_normal_and_low_share_one_nearest_neighbor_pass():
    sites = [
        _site("far-normal", 0, 3, PriorityTier.NORMAL),
        _site("near-low", 0, 1, PriorityTier.LOW),
    ]

    assert _ids(optimize_route(ORIGIN, sites)) == ["near-low", "far-normal"]


def test_completed_sites_are_excluded():
    sites = [
        _site("done-high", 0, 0.01, PriorityTier.HIGH, completed=True),
        _site("open", 0, 1),
        _site("done-normal", 0, 0.5, completed=True),
    ]

    stops = optimize_route(ORIGIN, sites)

    assert _ids(stops) == ["open"]


def test_ties_keep_input_order():
    sites = [
        _site("east", 0, 1),
        _site("west", 0, -1),
        _site("north", 1, 0),
    ]

    stops = optimize_route(ORIGIN, sites)

    assert stops[0].site_id == "east"


def test_unlocated_site_alone_in_tier_is_kept_last():
    sites = [
        _site("nowhere", None, None, PriorityTier.HIGH),
        _site("normal", 0, 1),
    ]

    stops = optimize_route(ORIGIN, sites)

    assert _ids(stops) == ["nowhere", "normal"]
    assert stops[0].distance_from_previous_m is None
    # the unlocated stop does not move the current point
    assert stops[1].distance_from_previous_m == pytest.approx(distance_meters(Coordinate(0, 0), Coordinate(0, 1)))


def test_unlocated_sites_follow_located_sites_in_same_tier():
    sites = [
        _site("unlocated-1", None, None),
        _site("far", 0, 5),
        _site("unlocated-2", None, None),
        _site("near", 0, 1),
    ]

    stops = optimize_route(ORIGIN, sites)

    assert _ids(stops) == ["near", "far", "unlocated-1", "unlocated-2"]


def test_no_position_raises():
    with pytest.raises(NoPositionAvailableError):
        optimize_route(None, [_site("A", 0, 1)])


def test_empty_site_list_returns_empty_route():
    assert optimize_route(ORIGIN, []) == []
    assert optimize_route(ORIGIN, [_site("done", 0, 1, completed=True)]) == []


def test_reoptimizing_returns_new_list():
    sites = [_site("A", 0, 1), _site("B", 0, 2)]

    first = optimize_route(ORIGIN, sites)
    second = optimize_route(Coordinate(0, 3), sites)

    assert _ids(first) == ["A", "B"]
    assert _ids(second) == ["B", "A"]
    assert _ids(first) == ["A", "B"]


def test_total_route_distance():
    single = optimize_route(ORIGIN, [_site("A", 0, 1)])

    assert total_route_distance([], ORIGIN) == 0
    assert total_route_distance(single, ORIGIN) == pytest.approx(
        distance_meters(ORIGIN.coordinate, Coordinate(0, 1))
    )
    assert total_route_distance(single) == 0


def test_total_route_distance_sums_legs_and_skips_unlocated():
    sites = [_site("A", 0, 1), _site("ghost", None, None), _site("B", 0, 2)]
    stops = optimize_route(ORIGIN, sites)

    expected = distance_meters(Coordinate(0, 0), Coordinate(0, 1)) + distance_meters(Coordinate(0, 1), Coordinate(0, 2))
    assert total_route_distance(stops, ORIGIN) == pytest.approx(expected)


def test_estimate_minutes():
    assert estimate_minutes(3, minutes_per_stop=15) == 45
    assert estimate_minutes(0, minutes_per_stop=15) == 0


def test_priority_parse_maps_urgent_and_unknown():
    assert PriorityTier.parse("urgent") is PriorityTier.HIGH
    assert PriorityTier.parse("HIGH") is PriorityTier.HIGH
    assert PriorityTier.parse(None) is PriorityTier.NORMAL
    assert PriorityTier.parse("whenever") is PriorityTier.NORMAL
