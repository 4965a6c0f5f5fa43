"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_geo_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.routing.geo_client import check_health as geo_health_check
    return geo_health_check


@router.get("/health/geo", status_code=status.HTTP_200_OK)
async def health_geo() -> dict:
    """Check routing provider health."""
    try:
        geo_health_check = _get_geo_health_check()
        status_flag = await geo_health_check()
        return {"service": "mapbox", "healthy": status_flag}
    except Exception as e:
        return {"service": "mapbox", "healthy": False, "error": str(e)}


@router.get("/health/database", status_code=status.HTTP_200_OK)
async def check_database() -> dict:
    """Check record store connection."""
    from ...db.supabase import get_supabase_client

    supabase = await get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set SWEEPER_SUPABASE_URL and SWEEPER_SUPABASE_KEY environment variables.",
        }

    try:
        response = await supabase.table("bookings").select("id", count="exact").limit(1).execute()
        return {
            "configured": True,
            "connected": True,
            "bookings_count": response.count or 0,
            "message": "Database connected.",
        }
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
