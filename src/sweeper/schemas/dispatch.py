"""Dispatch request/response schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..models.domain import BookingStatus
from .routing import CoordinateModel


class AssignBookingRequest(BaseModel):
    booking_id: str
    worker_id: str
    only_pending: bool = Field(
        default=False,
        description="Drag-and-drop semantics: only assign when the booking is still pending.",
    )


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class WorkerLocationReport(BaseModel):
    location: CoordinateModel
    heading: Optional[float] = None
    speed: Optional[float] = Field(default=None, ge=0)


class AddressValidationRequest(BaseModel):
    address: str


class AddressValidationResponse(BaseModel):
    is_valid: bool
    is_in_service_area: bool
    coordinate: Optional[CoordinateModel] = None
    formatted_address: Optional[str] = None
    distance_miles: Optional[float] = None
    error: Optional[str] = None


class MutationResult(BaseModel):
    success: bool
    message: str
