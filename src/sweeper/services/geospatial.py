"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

from shapely.geometry import LineString, Point, Polygon, mapping

from ..config import settings
from ..models.domain import Coordinate

EARTH_RADIUS_MILES = 3959.0
METERS_PER_MILE = 1609.344


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def calculate_distance_miles(point1: Coordinate, point2: Coordinate) -> float:
    return haversine_miles(point1.lat, point1.lng, point2.lat, point2.lng)


def service_area_center() -> Coordinate:
    lat, lng = settings.service_area_center
    return Coordinate(lat=lat, lng=lng)


def is_within_service_area(
    point: Coordinate,
    center: Coordinate | None = None,
    radius_miles: float | None = None,
) -> bool:
    """Return True if the point lies within the circular service area."""

    center = center or service_area_center()
    radius = radius_miles if radius_miles is not None else settings.service_area_radius_miles
    return calculate_distance_miles(center, point) <= radius


def destination_point(origin: Coordinate, bearing: float, distance_miles: float) -> Coordinate:
    """Point reached from origin after travelling distance_miles on the given bearing."""

    angular = distance_miles / EARTH_RADIUS_MILES
    theta = math.radians(bearing)
    phi1 = math.radians(origin.lat)
    lambda1 = math.radians(origin.lng)

    phi2 = math.asin(
        math.sin(phi1) * math.cos(angular) + math.cos(phi1) * math.sin(angular) * math.cos(theta)
    )
    lambda2 = lambda1 + math.atan2(
        math.sin(theta) * math.sin(angular) * math.cos(phi1),
        math.cos(angular) - math.sin(phi1) * math.sin(phi2),
    )
    lng = (math.degrees(lambda2) + 540) % 360 - 180
    return Coordinate(lat=math.degrees(phi2), lng=lng)


def service_area_polygon(
    center: Coordinate | None = None,
    radius_miles: float | None = None,
    segments: int = 64,
) -> Polygon:
    """Approximate the service area circle as a polygon in (lng, lat) order."""

    center = center or service_area_center()
    radius = radius_miles if radius_miles is not None else settings.service_area_radius_miles
    ring = []
    for step in range(segments):
        point = destination_point(center, 360.0 * step / segments, radius)
        ring.append((point.lng, point.lat))
    return Polygon(ring)


def route_line(path: Sequence[tuple[float, float]]) -> LineString:
    """Build a LineString from (lat, lng) pairs."""

    if len(path) < 2:
        raise ValueError("LineString must have at least 2 coordinates")
    return LineString([(lng, lat) for lat, lng in path])


def point_feature(point: Coordinate, properties: dict) -> dict:
    return {
        "type": "Feature",
        "geometry": mapping(Point(point.lng, point.lat)),
        "properties": properties,
    }
