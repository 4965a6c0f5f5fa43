"""Record store contract consumed by dispatch and routing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Optional, Protocol

logger = logging.getLogger(__name__)

BOOKINGS_TABLE = "bookings"
WORKERS_TABLE = "workers"
WORKER_LOCATIONS_TABLE = "worker_locations"


class RecordStoreError(RuntimeError):
    """Raised when the backing store rejects or fails a query or mutation."""


@dataclass(slots=True)
class ChangeEvent:
    """One insert/update/delete delivered by a change feed."""

    table: str
    type: str
    record: dict[str, Any] = field(default_factory=dict)
    old_record: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, table: str, payload: dict[str, Any]) -> "ChangeEvent":
        """Decode a realtime postgres_changes payload."""
        data = payload.get("data", payload)
        event_type = data.get("type") or data.get("eventType") or ""
        record = data.get("record") or data.get("new") or {}
        old_record = data.get("old_record") or data.get("old") or {}
        return cls(
            table=data.get("table") or table,
            type=str(event_type).upper(),
            record=dict(record),
            old_record=dict(old_record),
        )

    @property
    def row_id(self) -> Optional[str]:
        row_id = self.record.get("id") or self.old_record.get("id")
        return str(row_id) if row_id is not None else None


ChangeCallback = Callable[[ChangeEvent], None]


class Subscription:
    """Handle for one change-feed subscription; release it on teardown."""

    def __init__(self, table: str, release: Callable[[], Awaitable[None]]) -> None:
        self.table = table
        self._release = release
        self.active = True

    async def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        await self._release()
        logger.info(f"Unsubscribed from {self.table} changes")


class RecordStore(Protocol):
    async def list_bookings(
        self,
        worker_id: str | None = None,
        statuses: Iterable[str] | None = None,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> list[dict[str, Any]]: ...

    async def list_workers(
        self,
        status: str | None = None,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> list[dict[str, Any]]: ...

    async def get_worker(self, worker_id: str) -> dict[str, Any] | None: ...

    async def get_booking(self, booking_id: str) -> dict[str, Any] | None: ...

    async def update_booking(self, booking_id: str, fields: dict[str, Any]) -> None: ...

    async def update_worker(self, worker_id: str, fields: dict[str, Any]) -> None: ...

    async def insert_worker_location(self, row: dict[str, Any]) -> None: ...

    async def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        event: str = "*",
        filter: str | None = None,
    ) -> Subscription: ...
