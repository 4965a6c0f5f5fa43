"""Route planning services."""

from .geo_client import GeoClient
from .live_view import LiveRouteView, RouteSummary, ViewStatus
from .models import OptimizedRoute, RouteLeg, RoutePlan, RouteStop
from .planner import RoutePlanner, active_bookings

__all__ = [
    "GeoClient",
    "LiveRouteView",
    "OptimizedRoute",
    "RouteLeg",
    "RoutePlan",
    "RoutePlanner",
    "RouteStop",
    "RouteSummary",
    "ViewStatus",
    "active_bookings",
]
