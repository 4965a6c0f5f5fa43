"""Supabase-backed record store."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable

from supabase import AsyncClient

from ..data.record_store import (
    BOOKINGS_TABLE,
    WORKER_LOCATIONS_TABLE,
    WORKERS_TABLE,
    ChangeCallback,
    ChangeEvent,
    RecordStoreError,
    Subscription,
)
from ..db.supabase import get_supabase_client

logger = logging.getLogger(__name__)

BOOKING_COLUMNS = "*, profiles!bookings_user_id_fkey(full_name, phone)"
WORKER_COLUMNS = "*, profiles!workers_profile_id_fkey(full_name, phone, email)"


class SupabaseRecordStore:
    """Query, mutate and subscribe to bookings and workers in Supabase."""

    def __init__(self, client: AsyncClient) -> None:
        self.client = client

    async def list_bookings(
        self,
        worker_id: str | None = None,
        statuses: Iterable[str] | None = None,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> list[dict[str, Any]]:
        query = self.client.table(BOOKINGS_TABLE).select(BOOKING_COLUMNS)
        if worker_id:
            query = query.eq("worker_id", worker_id)
        if statuses:
            query = query.in_("status", list(statuses))
        try:
            response = await query.order(order_by, desc=descending).execute()
        except Exception as e:
            raise RecordStoreError(f"Failed to fetch bookings: {e}") from e
        return list(response.data or [])

    async def list_workers(
        self,
        status: str | None = None,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> list[dict[str, Any]]:
        query = self.client.table(WORKERS_TABLE).select(WORKER_COLUMNS)
        if status:
            query = query.eq("status", status)
        try:
            response = await query.order(order_by, desc=descending).execute()
        except Exception as e:
            raise RecordStoreError(f"Failed to fetch workers: {e}") from e
        return list(response.data or [])

    async def _get_one(self, table: str, columns: str, row_id: str) -> dict[str, Any] | None:
        try:
            response = await (
                self.client.table(table).select(columns).eq("id", row_id).limit(1).execute()
            )
        except Exception as e:
            raise RecordStoreError(f"Failed to fetch {table} row {row_id}: {e}") from e
        return response.data[0] if response.data else None

    async def get_worker(self, worker_id: str) -> dict[str, Any] | None:
        return await self._get_one(WORKERS_TABLE, WORKER_COLUMNS, worker_id)

    async def get_booking(self, booking_id: str) -> dict[str, Any] | None:
        return await self._get_one(BOOKINGS_TABLE, BOOKING_COLUMNS, booking_id)

    async def _update(self, table: str, row_id: str, fields: dict[str, Any]) -> None:
        try:
            await self.client.table(table).update(fields).eq("id", row_id).execute()
        except Exception as e:
            raise RecordStoreError(f"Failed to update {table} row {row_id}: {e}") from e

    async def update_booking(self, booking_id: str, fields: dict[str, Any]) -> None:
        await self._update(BOOKINGS_TABLE, booking_id, fields)

    async def update_worker(self, worker_id: str, fields: dict[str, Any]) -> None:
        await self._update(WORKERS_TABLE, worker_id, fields)

    async def insert_worker_location(self, row: dict[str, Any]) -> None:
        try:
            await self.client.table(WORKER_LOCATIONS_TABLE).insert(row).execute()
        except Exception as e:
            raise RecordStoreError(f"Failed to insert worker location: {e}") from e

    async def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        event: str = "*",
        filter: str | None = None,
    ) -> Subscription:
        channel = self.client.channel(f"{table}-{uuid.uuid4().hex[:8]}")

        def _deliver(payload: dict[str, Any]) -> None:
            callback(ChangeEvent.from_payload(table, payload))

        channel.on_postgres_changes(
            event,
            schema="public",
            table=table,
            filter=filter,
            callback=_deliver,
        )
        try:
            await channel.subscribe()
        except Exception as e:
            raise RecordStoreError(f"Failed to subscribe to {table} changes: {e}") from e
        logger.info(f"Subscribed to {table} changes ({event})")

        async def _release() -> None:
            await self.client.remove_channel(channel)

        return Subscription(table, _release)


async def get_record_store() -> SupabaseRecordStore:
    client = await get_supabase_client()
    if client is None:
        raise RecordStoreError(
            "Supabase not configured. Set SWEEPER_SUPABASE_URL and SWEEPER_SUPABASE_KEY environment variables."
        )
    return SupabaseRecordStore(client)
