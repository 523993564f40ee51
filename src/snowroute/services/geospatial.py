"""Geospatial helper functions."""

from __future__ import annotations

import math

from ..models.domain import Coordinate

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance in meters between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates.

    Inputs are assumed to be within valid latitude/longitude ranges; callers
    validate upstream.
    """

    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)


def format_distance(meters: float) -> str:
    """Render a distance as ``"412m"`` below one kilometer, else ``"1.2km"``."""

    if meters < 1000:
        # half-up rounding, round() would round 412.5 down
        return f"{math.floor(meters + 0.5)}m"
    return f"{meters / 1000:.1f}km"


def is_within_radius(a: Coordinate, b: Coordinate, radius_m: float) -> bool:
    """Return True if ``a`` lies inside or on a circle of ``radius_m`` around ``b``."""

    return distance_meters(a, b) <= radius_m
