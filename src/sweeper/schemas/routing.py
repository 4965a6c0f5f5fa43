"""Routing request/response schemas."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import (
    Booking,
    BookingStatus,
    Coordinate,
    ServiceType,
    Worker,
    WorkerStatus,
)
from ..services.routing.live_view import RouteSummary


class CoordinateModel(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_domain(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)


class WorkerModel(BaseModel):
    id: str
    status: WorkerStatus = WorkerStatus.AVAILABLE
    full_name: Optional[str] = None
    current_location: Optional[CoordinateModel] = None
    last_location_update: Optional[datetime] = None
    assigned_bookings_count: int = Field(default=0, ge=0)

    def to_domain(self) -> Worker:
        return Worker(
            id=self.id,
            status=self.status,
            full_name=self.full_name,
            current_location=self.current_location.to_domain() if self.current_location else None,
            last_location_update=self.last_location_update,
            assigned_bookings_count=self.assigned_bookings_count,
        )


class BookingModel(BaseModel):
    id: str
    user_id: str = ""
    worker_id: Optional[str] = None
    service_type: ServiceType = ServiceType.REGULAR
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = None
    address: str
    location: Optional[CoordinateModel] = None
    status: BookingStatus
    price: float = Field(default=0.0, ge=0)

    def to_domain(self) -> Booking:
        return Booking(
            id=self.id,
            user_id=self.user_id,
            service_type=self.service_type,
            address=self.address,
            status=self.status,
            location=self.location.to_domain() if self.location else None,
            worker_id=self.worker_id,
            scheduled_date=self.scheduled_date,
            scheduled_time=self.scheduled_time,
            price=self.price,
        )


class RoutePlanRequest(BaseModel):
    worker: WorkerModel
    bookings: List[BookingModel] = Field(default_factory=list)
    optimize: bool = True


class RouteStopModel(BaseModel):
    sequence: int
    booking_id: str
    service_type: str
    address: str
    distance: str
    duration: str
    eta: str


class RoutePlanResponse(BaseModel):
    worker_id: str
    status: str
    message: Optional[str] = None
    total_distance: Optional[str] = None
    total_duration: Optional[str] = None
    optimized: bool = False
    stops: List[RouteStopModel] = Field(default_factory=list)
    maps_url: Optional[str] = None
    plan: Optional[dict] = Field(default=None, description="Raw plan metrics in meters/seconds.")

    @classmethod
    def from_summary(cls, worker_id: str, summary: RouteSummary, plan: Optional[dict]) -> "RoutePlanResponse":
        return cls(
            worker_id=worker_id,
            status=summary.status.value,
            message=summary.message,
            total_distance=summary.total_distance,
            total_duration=summary.total_duration,
            optimized=summary.optimized,
            stops=[RouteStopModel(**asdict(row)) for row in summary.stops],
            maps_url=summary.maps_url,
            plan=plan,
        )
