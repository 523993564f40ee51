"""Serializers for optimized route outputs."""

from __future__ import annotations

import csv
import io
from typing import Sequence

from ...models.domain import RouteStop


def route_stops_to_json(worker_id: str, stops: Sequence[RouteStop], metadata: dict) -> dict:
    return {
        "worker_id": worker_id,
        "metadata": metadata,
        "stops": [
            {
                "sequence_index": stop.sequence_index,
                "site_id": stop.site.id,
                "name": stop.site.name,
                "address": stop.site.address,
                "priority": stop.site.priority.value,
                "service_type": stop.site.service.value,
                "latitude": stop.site.coordinate.latitude if stop.site.coordinate else None,
                "longitude": stop.site.coordinate.longitude if stop.site.coordinate else None,
                "distance_from_previous_m": stop.distance_from_previous_m,
            }
            for stop in stops
        ],
    }


def route_stops_to_csv(stops: Sequence[RouteStop]) -> str:
    buffer = io.StringIO()
    fieldnames = [
        "sequence_index",
        "site_id",
        "name",
        "address",
        "priority",
        "latitude",
        "longitude",
        "distance_from_previous_m",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for stop in stops:
        coordinate = stop.site.coordinate
        writer.writerow(
            {
                "sequence_index": stop.sequence_index,
                "site_id": stop.site.id,
                "name": stop.site.name,
                "address": stop.site.address,
                "priority": stop.site.priority.value,
                "latitude": coordinate.latitude if coordinate else "",
                "longitude": coordinate.longitude if coordinate else "",
                "distance_from_previous_m": (
                    "" if stop.distance_from_previous_m is None else round(stop.distance_from_previous_m, 1)
                ),
            }
        )
    return buffer.getvalue()
