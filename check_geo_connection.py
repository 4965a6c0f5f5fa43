#!/usr/bin/env python3
"""Script to verify Mapbox routing connectivity."""

import asyncio
import sys
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from sweeper.config import settings
from sweeper.services.geospatial import destination_point, service_area_center
from sweeper.services.outputs.route_formatter import format_distance, format_duration
from sweeper.services.routing.geo_client import GeoClient


async def run() -> int:
    print("=" * 60)
    print("Routing Provider Connection Test")
    print("=" * 60)
    print()

    print("1. Checking routing configuration...")
    if not settings.mapbox_access_token:
        print("   [ERROR] Mapbox access token is not configured")
        print("   Please set SWEEPER_MAPBOX_ACCESS_TOKEN in your .env file")
        return 1
    print(f"   [OK] Base URL: {settings.mapbox_base_url}")
    print(f"   [OK] Profile: {settings.routing_profile}")
    print()

    client = GeoClient()
    origin = service_area_center()
    stops = [destination_point(origin, 45.0, 2.0), destination_point(origin, 200.0, 3.0)]

    print("2. Testing directions request...")
    leg = await client.get_route(origin, stops[0])
    if leg is None:
        print("   [ERROR] Directions request returned no route")
        return 1
    print(f"   [OK] {format_distance(leg.distance_meters)}, {format_duration(leg.duration_seconds)}")
    print()

    print("3. Testing optimization request...")
    trip = await client.get_optimized_route([origin, *stops])
    if trip is None:
        print("   [ERROR] Optimization request returned no trip")
        return 1
    print(f"   [OK] Visiting order: {trip.order}")
    print(f"   [OK] {format_distance(trip.distance_meters)}, {format_duration(trip.duration_seconds)}")
    print()

    print("=" * 60)
    print("[SUCCESS] Routing provider is connected and working!")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(run()))
