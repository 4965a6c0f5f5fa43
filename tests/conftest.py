from __future__ import annotations

from typing import Any, Iterable

import pytest

from src.sweeper.data.record_store import ChangeEvent, RecordStoreError, Subscription


class FakeRecordStore:
    """In-memory record store that records every call made against it."""

    def __init__(self, bookings=None, workers=None) -> None:
        self.bookings: list[dict[str, Any]] = list(bookings or [])
        self.workers: list[dict[str, Any]] = list(workers or [])
        self.booking_updates: list[tuple[str, dict]] = []
        self.worker_updates: list[tuple[str, dict]] = []
        self.location_rows: list[dict] = []
        self.subscribers: dict[str, list] = {}
        self.released: list[str] = []
        self.fail_on: set[str] = set()

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise RecordStoreError(f"{operation} failed")

    async def list_bookings(
        self,
        worker_id: str | None = None,
        statuses: Iterable[str] | None = None,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> list[dict[str, Any]]:
        self._check("list_bookings")
        rows = self.bookings
        if worker_id:
            rows = [row for row in rows if row.get("worker_id") == worker_id]
        if statuses:
            allowed = set(statuses)
            rows = [row for row in rows if row.get("status") in allowed]
        return list(rows)

    async def list_workers(self, status=None, order_by="created_at", descending=True):
        self._check("list_workers")
        return [row for row in self.workers if status is None or row.get("status") == status]

    async def get_worker(self, worker_id: str):
        self._check("get_worker")
        return next((row for row in self.workers if row["id"] == worker_id), None)

    async def get_booking(self, booking_id: str):
        self._check("get_booking")
        return next((row for row in self.bookings if row["id"] == booking_id), None)

    async def update_booking(self, booking_id: str, fields: dict) -> None:
        self._check("update_booking")
        self.booking_updates.append((booking_id, fields))

    async def update_worker(self, worker_id: str, fields: dict) -> None:
        self._check("update_worker")
        self.worker_updates.append((worker_id, fields))

    async def insert_worker_location(self, row: dict) -> None:
        self._check("insert_worker_location")
        self.location_rows.append(row)

    async def subscribe(self, table, callback, event="*", filter=None) -> Subscription:
        self._check("subscribe")
        self.subscribers.setdefault(table, []).append((event, callback))

        async def _release() -> None:
            self.released.append(table)

        return Subscription(table, _release)

    def emit(self, table: str, event_type: str, record=None, old_record=None) -> None:
        payload = {"data": {"table": table, "type": event_type, "record": record, "old_record": old_record}}
        for _, callback in self.subscribers.get(table, []):
            callback(ChangeEvent.from_payload(table, payload))


def booking_row(
    booking_id: str,
    status: str = "pending",
    worker_id: str | None = None,
    lat: float | None = 27.52,
    lng: float | None = -99.46,
    address: str | None = None,
    service_type: str = "regular",
) -> dict[str, Any]:
    return {
        "id": booking_id,
        "user_id": "U1",
        "worker_id": worker_id,
        "service_type": service_type,
        "scheduled_date": "2026-10-19",
        "scheduled_time": "09:00",
        "address": address or f"{booking_id[-1]}00 Main St, Laredo, TX",
        "location_lat": lat,
        "location_lng": lng,
        "status": status,
        "price": 120,
        "created_at": "2026-10-18T12:00:00Z",
        "updated_at": "2026-10-18T12:00:00Z",
        "profiles": {"full_name": "Dana Customer", "phone": "555-0100"},
    }


def worker_row(
    worker_id: str,
    status: str = "available",
    lat: float | None = 27.50,
    lng: float | None = -99.48,
    assigned: int = 0,
) -> dict[str, Any]:
    return {
        "id": worker_id,
        "profile_id": f"P-{worker_id}",
        "status": status,
        "current_location_lat": lat,
        "current_location_lng": lng,
        "last_location_update": "2026-10-19T08:00:00Z",
        "assigned_bookings_count": assigned,
        "profiles": {"full_name": f"Worker {worker_id}", "phone": None, "email": None},
    }


@pytest.fixture
def fake_store() -> FakeRecordStore:
    return FakeRecordStore(
        bookings=[
            booking_row("B1", status="assigned", worker_id="W1", lat=27.52, lng=-99.46),
            booking_row("B2", status="assigned", worker_id="W1", lat=27.48, lng=-99.50),
            booking_row("B3", status="pending"),
        ],
        workers=[worker_row("W1", assigned=2), worker_row("W2", status="offline")],
    )
