"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check database connection and site directory status."""
    from ...db.supabase import get_supabase_client

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set SNOWROUTE_SUPABASE_URL and SNOWROUTE_SUPABASE_KEY environment variables.",
        }

    try:
        response = supabase.table("accounts").select("id", count="exact").eq("status", "active").limit(1).execute()
        return {
            "configured": True,
            "connected": True,
            "active_sites": response.count,
            "message": f"Database connected. Found {response.count} active sites.",
        }
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }


@router.get("/health/storage", status_code=status.HTTP_200_OK)
def check_storage() -> dict:
    """Report where device-local check-in state is kept."""
    path = settings.check_in_state_file
    return {
        "check_in_state_file": str(path),
        "exists": path.exists(),
        "writable_dir": path.parent.exists(),
    }
