"""Human-readable rendering of route plans."""

from __future__ import annotations

import math
from datetime import datetime
from typing import TYPE_CHECKING
from urllib.parse import quote

from ...config import settings

if TYPE_CHECKING:
    from ..routing.models import RoutePlan, RouteStop

MILES_PER_METER = 0.000621371


def format_distance(meters: float) -> str:
    miles = meters * MILES_PER_METER
    return f"{miles:.1f} mi"


def format_duration(seconds: float) -> str:
    minutes = math.floor(seconds / 60 + 0.5)
    hours, remaining_minutes = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {remaining_minutes}m"
    return f"{minutes}m"


def format_eta(eta: datetime, time_format: str | None = None) -> str:
    """Render an ETA as local clock time."""
    return eta.astimezone().strftime(time_format or settings.eta_time_format)


def format_service_type(service_type: str) -> str:
    return service_type.replace("_", " ").upper()


def google_maps_url(plan: RoutePlan) -> str:
    """Directions link covering every stop address, in stop order."""
    addresses = " to ".join(stop.booking.address for stop in plan.stops)
    return f"{settings.google_maps_base_url}?q={quote(addresses, safe='')}"


def route_stop_to_json(stop: RouteStop, sequence: int) -> dict:
    return {
        "sequence": sequence,
        "booking_id": stop.booking.id,
        "service_type": stop.booking.service_type.value,
        "address": stop.booking.address,
        "distance_meters": stop.distance_meters,
        "duration_seconds": stop.duration_seconds,
        "eta": stop.eta.isoformat(),
    }


def route_plan_to_json(plan: RoutePlan) -> dict:
    return {
        "total_distance_meters": plan.total_distance_meters,
        "total_duration_seconds": plan.total_duration_seconds,
        "optimized": plan.optimized,
        "stops": [route_stop_to_json(stop, index + 1) for index, stop in enumerate(plan.stops)],
    }
