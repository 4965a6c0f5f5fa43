"""HTTP client for the Mapbox directions, optimization and geocoding services."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence
from urllib.parse import quote

import httpx

from ...config import settings
from ...models.domain import Coordinate
from .models import OptimizedRoute, RouteLeg

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GeocodeResult:
    coordinate: Coordinate
    place_name: str


class GeoClient:
    """Translate coordinate sequences into route geometry and metrics.

    Every call issues exactly one request and returns ``None`` when the
    provider cannot produce a result (transport error, non-2xx status,
    malformed body or an empty ``routes``/``trips`` array). Nothing is
    retried here and no state is kept between calls.
    """

    def __init__(
        self,
        access_token: str | None = None,
        base_url: str | None = None,
        profile: str | None = None,
        geometries: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.access_token = access_token or settings.mapbox_access_token
        if not self.access_token:
            raise ValueError("Mapbox access token is not configured.")
        self.base_url = (base_url or settings.mapbox_base_url).rstrip("/")
        self.profile = profile or settings.routing_profile
        self.geometries = geometries or settings.routing_geometries
        self.timeout = timeout if timeout is not None else settings.routing_timeout_seconds
        # Injected clients are owned by the caller and never closed here
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0))

    async def _get_json(self, path: str, params: dict[str, Any]) -> dict | None:
        url = f"{self.base_url}{path}"
        query = {**params, "access_token": self.access_token}
        client = self._get_client()
        try:
            response = await client.get(url, params=query)
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError("Provider response is not a JSON object.")
            return data
        except httpx.HTTPStatusError as e:
            logger.warning(f"Routing provider returned HTTP {e.response.status_code} for {path}")
            return None
        except httpx.HTTPError as e:
            logger.warning(f"Routing provider request failed for {path}: {e}")
            return None
        except ValueError as e:
            logger.warning(f"Routing provider returned an unreadable body for {path}: {e}")
            return None
        finally:
            if client is not self._client:
                await client.aclose()

    def _route_params(self) -> dict[str, str]:
        return {
            "geometries": self.geometries,
            "overview": "full",
            "steps": "false",
        }

    def _decode_geometry(self, geometry: Any) -> list[tuple[float, float]]:
        """Normalize provider geometry to a list of (lat, lng) pairs."""
        if isinstance(geometry, str):
            return decode_polyline(geometry)
        if isinstance(geometry, dict):
            return [(float(lat), float(lng)) for lng, lat, *_ in geometry.get("coordinates", [])]
        return []

    async def get_route(self, origin: Coordinate, destination: Coordinate) -> RouteLeg | None:
        """Get the driving route between two points."""
        coordinate_str = f"{origin.as_lng_lat()};{destination.as_lng_lat()}"
        data = await self._get_json(
            f"/directions/v5/mapbox/{self.profile}/{coordinate_str}", self._route_params()
        )
        if not data or not data.get("routes"):
            return None

        route = data["routes"][0]
        try:
            return RouteLeg(
                distance_meters=max(float(route["distance"]), 0.0),
                duration_seconds=max(float(route["duration"]), 0.0),
                geometry=self._decode_geometry(route.get("geometry")),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Malformed directions route: {e}")
            return None

    async def get_optimized_route(self, points: Sequence[Coordinate]) -> OptimizedRoute | None:
        """Get the optimized visiting order for ``points[1:]`` starting from ``points[0]``.

        ``order`` lists indices into ``points`` in visiting order; index 0
        (the fixed start) always comes first.
        """
        if len(points) < 2:
            raise ValueError("At least two coordinates are required for route optimization.")

        coordinate_str = ";".join(point.as_lng_lat() for point in points)
        params = {**self._route_params(), "source": "first", "destination": "last"}
        data = await self._get_json(
            f"/optimized-trips/v1/mapbox/{self.profile}/{coordinate_str}", params
        )
        if not data or not data.get("trips"):
            return None

        trip = data["trips"][0]
        try:
            return OptimizedRoute(
                distance_meters=max(float(trip["distance"]), 0.0),
                duration_seconds=max(float(trip["duration"]), 0.0),
                order=_visiting_order(data.get("waypoints"), len(points)),
                geometry=self._decode_geometry(trip.get("geometry")),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Malformed optimized trip: {e}")
            return None

    async def geocode_address(self, address: str) -> GeocodeResult | None:
        """Forward-geocode an address, biased towards the service area."""
        if not address.strip():
            return None
        center_lat, center_lng = settings.service_area_center
        data = await self._get_json(
            f"/geocoding/v5/mapbox.places/{quote(address, safe='')}.json",
            {"country": "US", "proximity": f"{center_lng},{center_lat}"},
        )
        if not data or not data.get("features"):
            return None

        feature = data["features"][0]
        try:
            lng, lat = feature["center"][:2]
            return GeocodeResult(
                coordinate=Coordinate(lat=float(lat), lng=float(lng)),
                place_name=str(feature.get("place_name", address)),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Malformed geocoding feature: {e}")
            return None

    async def reverse_geocode(self, point: Coordinate) -> str | None:
        data = await self._get_json(f"/geocoding/v5/mapbox.places/{point.as_lng_lat()}.json", {})
        if not data or not data.get("features"):
            return None
        return data["features"][0].get("place_name")

    async def check_health(self) -> bool:
        """Check provider reachability with a short directions request inside the service area."""
        from ..geospatial import destination_point, service_area_center

        origin = service_area_center()
        return await self.get_route(origin, destination_point(origin, 90.0, 1.0)) is not None


def _visiting_order(waypoints: Any, count: int) -> list[int]:
    """Derive visiting order from each input waypoint's position in the trip."""
    default = list(range(count))
    if not isinstance(waypoints, list) or len(waypoints) != count:
        return default
    try:
        positions = [int(waypoint["waypoint_index"]) for waypoint in waypoints]
    except (KeyError, TypeError, ValueError):
        return default
    if sorted(positions) != default:
        return default
    order = sorted(range(count), key=lambda index: positions[index])
    if order[0] != 0:
        # The start is fixed; keep it first even if the provider rotated the trip
        order.remove(0)
        order.insert(0, 0)
    return order


def decode_polyline(polyline: str, precision: int = 5) -> list[tuple[float, float]]:
    """Decode Google polyline string to list of (lat, lon) coordinates."""
    coordinates = []
    index = 0
    lat = 0
    lon = 0
    factor = 10 ** precision

    while index < len(polyline):
        deltas = []
        for _ in range(2):
            shift = 0
            result = 0
            while True:
                b = ord(polyline[index]) - 63
                index += 1
                result |= (b & 0x1f) << shift
                shift += 5
                if b < 0x20:
                    break
            deltas.append(~(result >> 1) if (result & 1) else (result >> 1))
        lat += deltas[0]
        lon += deltas[1]
        coordinates.append((lat / factor, lon / factor))

    return coordinates


async def check_health() -> bool:
    """Check routing provider health with the configured credentials."""
    if not settings.mapbox_access_token:
        return False
    try:
        return await GeoClient().check_health()
    except Exception:
        return False
