"""Service-area address validation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from ..config import settings
from ..models.domain import Coordinate
from .geospatial import calculate_distance_miles, service_area_center
from .routing.geo_client import GeoClient

MIN_ADDRESS_LENGTH = 5


@dataclass(slots=True)
class AddressValidation:
    is_valid: bool
    is_in_service_area: bool
    coordinate: Optional[Coordinate] = None
    formatted_address: Optional[str] = None
    distance_miles: Optional[float] = None
    error: Optional[str] = None


async def validate_service_address(address: str, geo_client: GeoClient) -> AddressValidation:
    """Geocode an address and check it against the service area radius."""
    if not address or len(address.strip()) < MIN_ADDRESS_LENGTH:
        return AddressValidation(False, False, error="Please enter a valid address")
    if not re.search(r"\d", address):
        return AddressValidation(False, False, error="Please include a street number")

    result = await geo_client.geocode_address(address)
    if result is None:
        return AddressValidation(False, False, error="Unable to validate address. Please try again.")

    radius = settings.service_area_radius_miles
    distance = calculate_distance_miles(service_area_center(), result.coordinate)
    in_area = distance <= radius
    return AddressValidation(
        is_valid=True,
        is_in_service_area=in_area,
        coordinate=result.coordinate,
        formatted_address=result.place_name,
        distance_miles=distance,
        error=None if in_area else f"Address is outside our service area ({radius:g} mile radius)",
    )
