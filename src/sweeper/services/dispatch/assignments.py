"""Booking mutations shared by the dispatch board and the HTTP API."""

from __future__ import annotations

from datetime import datetime

from ...data.record_store import RecordStore
from ...models.domain import BookingStatus


async def assign_booking(
    store: RecordStore,
    booking_id: str,
    worker_id: str,
    assigned_bookings_count: int,
    now: datetime,
) -> None:
    """Set the booking's worker and ``assigned`` status, then bump the worker's job count."""
    timestamp = now.isoformat()
    await store.update_booking(
        booking_id,
        {"worker_id": worker_id, "status": BookingStatus.ASSIGNED.value, "updated_at": timestamp},
    )
    await store.update_worker(
        worker_id,
        {"assigned_bookings_count": assigned_bookings_count + 1, "updated_at": timestamp},
    )


async def set_booking_status(
    store: RecordStore, booking_id: str, status: BookingStatus, now: datetime
) -> None:
    await store.update_booking(booking_id, {"status": status.value, "updated_at": now.isoformat()})
