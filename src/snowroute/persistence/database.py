"""Database persistence for completed work logs and geofence events."""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..db.supabase import get_supabase_client
from ..models.domain import GeofenceEvent, WorkCategory, WorkLogRecord

WORK_LOG_TABLES: dict[WorkCategory, tuple[str, str, str]] = {
    # category -> (log table, employee link table, link column)
    WorkCategory.PLOW: ("work_logs", "work_log_employees", "work_log_id"),
    WorkCategory.SHOVEL: ("shovel_work_logs", "shovel_work_log_employees", "shovel_work_log_id"),
}


def work_log_row(record: WorkLogRecord, created_by: Optional[str] = None) -> dict[str, Any]:
    return {
        "account_id": record.site_id,
        "service_type": record.service_type or "both",
        "check_in_time": record.check_in_time,
        "check_out_time": record.check_out_time,
        "duration_minutes": record.duration_minutes,
        "snow_depth": record.snow_depth,
        "salt_used": record.salt_used,
        "temperature": record.temperature,
        "weather_description": record.weather_description,
        "notes": record.notes,
        "created_by": created_by,
    }


def save_work_log(
    record: WorkLogRecord,
    *,
    employee_id: Optional[str] = None,
    created_by: Optional[str] = None,
) -> Optional[str]:
    """Insert a completed visit into the category's work log table.

    Returns:
        The new work log id, or None when the database is not configured or
        the insert failed. Failures are logged, never raised.
    """
    supabase = get_supabase_client()
    if not supabase:
        logging.info("Supabase not configured - work log was not saved")
        return None

    table, link_table, link_column = WORK_LOG_TABLES[record.category]
    try:
        response = supabase.table(table).insert(work_log_row(record, created_by)).execute()
        rows = response.data or []
        work_log_id = str(rows[0]["id"]) if rows else None
    except Exception as e:
        logging.error(f"Failed to save {table} entry for site {record.site_id}: {e}")
        return None

    if employee_id and work_log_id:
        try:
            supabase.table(link_table).insert({link_column: work_log_id, "employee_id": employee_id}).execute()
        except Exception as e:
            logging.warning(f"Failed to link employee {employee_id} to {table} {work_log_id}: {e}")
    return work_log_id


def save_geofence_event(event: GeofenceEvent, *, employee_id: Optional[str] = None) -> Optional[str]:
    """Record a GPS-stamped check-in or check-out; best effort."""
    supabase = get_supabase_client()
    if not supabase or not employee_id:
        return None

    try:
        response = supabase.table("geofence_events").insert(
            {
                "employee_id": employee_id,
                "account_id": event.site_id,
                "event_type": event.event_type,
                "latitude": event.latitude,
                "longitude": event.longitude,
                "accuracy": event.accuracy_m,
                "timestamp": event.timestamp,
            }
        ).execute()
    except Exception as e:
        logging.warning(f"Failed to save geofence event for site {event.site_id}: {e}")
        return None
    rows = response.data or []
    return str(rows[0]["id"]) if rows else None
