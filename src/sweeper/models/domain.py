"""Domain models for workers, bookings and coordinates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional


class WorkerStatus(str, Enum):
    AVAILABLE = "available"
    EN_ROUTE = "en_route"
    ON_JOB = "on_job"
    BREAK = "break"
    OFFLINE = "offline"


class BookingStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    CONFIRMED = "confirmed"
    EN_ROUTE = "en_route"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ServiceType(str, Enum):
    REGULAR = "regular"
    DEEP = "deep"
    MOVE_IN_OUT = "move_in_out"
    AIRBNB = "airbnb"
    OFFICE = "office"
    COMMERCIAL = "commercial"


INACTIVE_BOOKING_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS84 latitude/longitude pair."""

    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude {self.lat} is outside [-90, 90].")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"Longitude {self.lng} is outside [-180, 180].")

    def as_lng_lat(self) -> str:
        """Provider URL form ("lng,lat")."""
        return f"{self.lng},{self.lat}"


@dataclass(slots=True)
class Worker:
    """A field worker as seen by dispatch."""

    id: str
    status: WorkerStatus
    full_name: Optional[str] = None
    current_location: Optional[Coordinate] = None
    last_location_update: Optional[datetime] = None
    assigned_bookings_count: int = 0


@dataclass(slots=True)
class Booking:
    """A customer booking with its service address and destination."""

    id: str
    user_id: str
    service_type: ServiceType
    address: str
    status: BookingStatus
    location: Optional[Coordinate] = None
    worker_id: Optional[str] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = None
    price: float = 0.0
    notes: Optional[str] = None
    customer_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_active_for(self, worker_id: str) -> bool:
        return self.worker_id == worker_id and self.status not in INACTIVE_BOOKING_STATUSES
