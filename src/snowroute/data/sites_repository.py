"""Data access helpers for the site (account) directory."""

from __future__ import annotations

import logging
from datetime import datetime, time
from typing import Any, Collection, Iterable, Optional

from ..db.supabase import get_supabase_client
from ..models.domain import Coordinate, PriorityTier, ServiceCapability, Site

WORK_LOG_TABLES = ("work_logs", "shovel_work_logs")


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        logging.warning(f"Ignoring unparseable coordinate value '{value}'")
        return None


def site_from_row(row: dict[str, Any], completed_ids: Collection[str] = frozenset()) -> Site:
    """Build a Site from an ``accounts`` row."""
    lat = _coerce_float(row.get("latitude"))
    lon = _coerce_float(row.get("longitude"))
    coordinate = None
    # zero latitude or longitude counts as not geocoded
    if lat and lon and -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0:
        coordinate = Coordinate(lat, lon)
    site_id = str(row["id"])
    return Site(
        id=site_id,
        name=(row.get("name") or "").strip(),
        address=(row.get("address") or "").strip(),
        priority=PriorityTier.parse(row.get("priority")),
        service=ServiceCapability.parse(row.get("service_type")),
        coordinate=coordinate,
        completed_today=site_id in completed_ids,
    )


def get_completed_site_ids_today(now: datetime | None = None) -> set[str]:
    """Site ids with a plow or shovel log checked in since local midnight."""

    supabase = get_supabase_client()
    if not supabase:
        return set()

    now = now or datetime.now().astimezone()
    midnight = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    completed: set[str] = set()
    for table in WORK_LOG_TABLES:
        try:
            response = (
                supabase.table(table)
                .select("account_id")
                .gte("check_in_time", midnight.isoformat())
                .execute()
            )
        except Exception as e:
            logging.warning(f"Failed to load today's entries from {table}: {e}")
            continue
        completed.update(str(row["account_id"]) for row in (response.data or []) if row.get("account_id"))
    return completed


def load_active_sites(
    service: ServiceCapability | None = None,
    priority: PriorityTier | None = None,
    completed_ids: Iterable[str] | None = None,
) -> list[Site]:
    """Active sites matching the service and priority filters.

    A site whose service is ``both`` matches every service filter.
    """
    supabase = get_supabase_client()
    if not supabase:
        logging.info("Supabase not configured - no sites available from the directory")
        return []

    response = supabase.table("accounts").select("*").eq("status", "active").execute()
    rows = response.data or []
    done = set(completed_ids) if completed_ids is not None else get_completed_site_ids_today()

    sites: list[Site] = []
    for row in rows:
        if not row.get("id"):
            continue
        site = site_from_row(row, done)
        if not site.service.matches(service):
            continue
        if priority is not None and site.priority is not priority:
            continue
        sites.append(site)
    logging.info(f"Loaded {len(sites)} of {len(rows)} active sites from the directory")
    return sites
