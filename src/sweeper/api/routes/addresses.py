"""Address validation endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.dispatch import AddressValidationRequest, AddressValidationResponse
from ...schemas.routing import CoordinateModel
from ...services.addresses import validate_service_address
from ...services.routing.geo_client import GeoClient

router = APIRouter(prefix="/addresses", tags=["addresses"])


@router.post("/validate", response_model=AddressValidationResponse, status_code=status.HTTP_200_OK)
async def validate_address(payload: AddressValidationRequest) -> AddressValidationResponse:
    """Geocode an address and check it lies within the service area."""
    try:
        geo_client = GeoClient()
    except ValueError as exc:
        logging.error(f"Routing client initialization failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Geocoding provider is not configured.",
        ) from exc

    result = await validate_service_address(payload.address, geo_client)
    return AddressValidationResponse(
        is_valid=result.is_valid,
        is_in_service_area=result.is_in_service_area,
        coordinate=CoordinateModel(lat=result.coordinate.lat, lng=result.coordinate.lng)
        if result.coordinate
        else None,
        formatted_address=result.formatted_address,
        distance_miles=result.distance_miles,
        error=result.error,
    )
