"""Decode record-store rows into typed domain objects."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional, TypeVar

from ..models.domain import (
    Booking,
    BookingStatus,
    Coordinate,
    ServiceType,
    Worker,
    WorkerStatus,
)

T = TypeVar("T")


def parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    # Postgres timestamps may end with "Z"
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def parse_coordinate(lat: Any, lng: Any) -> Optional[Coordinate]:
    """Absent or zero coordinates mean "no location"; anything else must be valid."""
    if lat is None or lng is None:
        return None
    lat_value, lng_value = float(lat), float(lng)
    if lat_value == 0 and lng_value == 0:
        return None
    return Coordinate(lat=lat_value, lng=lng_value)


def _profile_name(row: dict[str, Any]) -> Optional[str]:
    profile = row.get("profiles") or row.get("profile")
    if isinstance(profile, list):
        profile = profile[0] if profile else None
    if isinstance(profile, dict) and profile.get("full_name"):
        return str(profile["full_name"])
    return row.get("full_name")


def booking_from_row(row: dict[str, Any]) -> Booking:
    """Build a Booking from a ``bookings`` row. Raises ValueError on malformed rows."""
    try:
        booking_id = row["id"]
        if not booking_id:
            raise ValueError("Booking row has an empty id.")
        return Booking(
            id=str(booking_id),
            user_id=str(row.get("user_id") or ""),
            service_type=ServiceType(row.get("service_type") or ServiceType.REGULAR.value),
            address=str(row.get("address") or ""),
            status=BookingStatus(row["status"]),
            location=parse_coordinate(row.get("location_lat"), row.get("location_lng")),
            worker_id=str(row["worker_id"]) if row.get("worker_id") else None,
            scheduled_date=_parse_date(row.get("scheduled_date")),
            scheduled_time=row.get("scheduled_time"),
            price=float(row.get("price") or 0.0),
            notes=row.get("notes"),
            customer_name=_profile_name(row),
            created_at=parse_datetime(row.get("created_at")),
            updated_at=parse_datetime(row.get("updated_at")),
        )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid booking row: {e}") from e


def worker_from_row(row: dict[str, Any]) -> Worker:
    """Build a Worker from a ``workers`` row. Raises ValueError on malformed rows."""
    try:
        worker_id = row["id"]
        if not worker_id:
            raise ValueError("Worker row has an empty id.")
        location = row.get("current_location")
        if isinstance(location, dict):
            coordinate = parse_coordinate(location.get("lat"), location.get("lng"))
        else:
            coordinate = parse_coordinate(
                row.get("current_location_lat"), row.get("current_location_lng")
            )
        return Worker(
            id=str(worker_id),
            status=WorkerStatus(row.get("status") or WorkerStatus.OFFLINE.value),
            full_name=_profile_name(row),
            current_location=coordinate,
            last_location_update=parse_datetime(row.get("last_location_update")),
            assigned_bookings_count=int(row.get("assigned_bookings_count") or 0),
        )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid worker row: {e}") from e


def decode_rows(rows: Iterable[dict[str, Any]], decoder: Callable[[dict[str, Any]], T]) -> list[T]:
    """Decode rows, skipping (and logging) the ones that fail validation."""
    decoded: list[T] = []
    for row in rows:
        try:
            decoded.append(decoder(row))
        except ValueError as e:
            logging.warning(f"Skipping invalid row {row.get('id')!r}: {e}")
            continue
    return decoded
