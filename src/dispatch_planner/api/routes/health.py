"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/config", status_code=status.HTTP_200_OK)
def health_config() -> dict:
    """Report which submission sink and planning defaults are active."""
    return {
        "sink": "supabase" if settings.supabase_configured else "filesystem",
        "sequencing_strategy": settings.sequencing_strategy,
        "workflow_order": settings.workflow_order,
        "assumed_speed_kmh": settings.assumed_speed_kmh,
        "dwell_minutes_per_stop": settings.dwell_minutes_per_stop,
    }


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check the database connection and the batch table."""
    from ...db.supabase import get_supabase_client

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set DP_SUPABASE_URL and DP_SUPABASE_KEY environment variables.",
        }

    try:
        response = supabase.table(settings.batches_table).select("id", count="exact").limit(1).execute()
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
    return {
        "configured": True,
        "connected": True,
        "batches_count": response.count,
        "message": f"Database connected. Table '{settings.batches_table}' is reachable.",
    }
