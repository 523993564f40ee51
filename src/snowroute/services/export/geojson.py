"""GeoJSON export of optimized routes for map overlays."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from shapely.geometry import LineString, Point, mapping

from ...models.domain import Coordinate, RouteStop

PRIORITY_COLORS = {
    "high": "#e0003e",
    "normal": "#13aae0",
    "low": "#a4d819",
}


def route_to_feature_collection(
    stops: Sequence[RouteStop],
    start: Optional[Coordinate] = None,
) -> Dict[str, Any]:
    """Build a FeatureCollection with one point per located stop and the route line.

    GeoJSON uses lon,lat order (x,y). Stops without coordinates are left out
    of the geometry.
    """
    features: List[Dict[str, Any]] = []
    path: List[tuple[float, float]] = []
    if start is not None:
        path.append((start.longitude, start.latitude))
        features.append(
            {
                "type": "Feature",
                "geometry": mapping(Point(start.longitude, start.latitude)),
                "properties": {"kind": "start"},
            }
        )

    for stop in stops:
        coordinate = stop.site.coordinate
        if coordinate is None:
            continue
        path.append((coordinate.longitude, coordinate.latitude))
        features.append(
            {
                "type": "Feature",
                "geometry": mapping(Point(coordinate.longitude, coordinate.latitude)),
                "properties": {
                    "kind": "stop",
                    "site_id": stop.site.id,
                    "name": stop.site.name,
                    "sequence_index": stop.sequence_index,
                    "priority": stop.site.priority.value,
                    "color": PRIORITY_COLORS.get(stop.site.priority.value, "#13aae0"),
                },
            }
        )

    if len(path) >= 2:
        features.append(
            {
                "type": "Feature",
                "geometry": mapping(LineString(path)),
                "properties": {"kind": "route", "stop_count": len(stops)},
            }
        )

    return {"type": "FeatureCollection", "features": features}


def save_geojson(collection: Dict[str, Any], output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(collection, f, indent=2, ensure_ascii=False)
