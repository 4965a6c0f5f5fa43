"""Dispatch board: live collections, operator selection and booking assignment."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime
from typing import AsyncIterator, Callable, Literal

from shapely.geometry import mapping

from ...data.record_store import (
    BOOKINGS_TABLE,
    WORKER_LOCATIONS_TABLE,
    WORKERS_TABLE,
    ChangeEvent,
    RecordStore,
    Subscription,
)
from ...data.rows import (
    booking_from_row,
    decode_rows,
    parse_coordinate,
    parse_datetime,
    worker_from_row,
)
from ...models.domain import Booking, BookingStatus, Worker, WorkerStatus
from ..geospatial import point_feature, route_line, service_area_polygon
from ..routing.live_view import LiveRouteView, ViewStatus
from ..routing.planner import utc_now
from . import assignments
from .notifications import Notifier

logger = logging.getLogger(__name__)


class DispatchBoard:
    """Screen-level orchestrator feeding the selected worker's route into LiveRouteView.

    Collections are only written by :meth:`load` and by change-feed events;
    mutations go to the record store and come back through the feed.
    """

    def __init__(
        self,
        store: RecordStore,
        route_view: LiveRouteView,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.route_view = route_view
        self.notifier = notifier or Notifier()
        self.clock = clock

        self.workers: dict[str, Worker] = {}
        self.bookings: dict[str, Booking] = {}
        self.selected_worker_id: str | None = None
        self.selected_booking_id: str | None = None

        self.view_mode: Literal["map", "list"] = "map"
        self.show_traffic = False
        self.show_service_area = True
        self.show_routes = False
        self.optimize_routes = True

        self._subscriptions: list[Subscription] = []
        self._pending: set[asyncio.Task] = set()

    # Collections

    @property
    def booking_list(self) -> list[Booking]:
        return list(self.bookings.values())

    @property
    def pending_bookings(self) -> list[Booking]:
        return [b for b in self.bookings.values() if b.status is BookingStatus.PENDING]

    @property
    def assigned_bookings(self) -> list[Booking]:
        return [b for b in self.bookings.values() if b.status is not BookingStatus.PENDING]

    @property
    def available_workers(self) -> list[Worker]:
        return [w for w in self.workers.values() if w.status is WorkerStatus.AVAILABLE]

    @property
    def selected_worker(self) -> Worker | None:
        if self.selected_worker_id is None:
            return None
        return self.workers.get(self.selected_worker_id)

    @property
    def selected_booking(self) -> Booking | None:
        if self.selected_booking_id is None:
            return None
        return self.bookings.get(self.selected_booking_id)

    async def refresh_bookings(self) -> None:
        try:
            rows = await self.store.list_bookings(order_by="created_at", descending=True)
        except Exception as e:
            logger.error(f"Error fetching bookings: {e}")
            self.notifier.error("Failed to fetch bookings")
            return
        self.bookings = {b.id: b for b in decode_rows(rows, booking_from_row)}

    async def refresh_workers(self) -> None:
        try:
            rows = await self.store.list_workers(order_by="created_at", descending=True)
        except Exception as e:
            logger.error(f"Error fetching workers: {e}")
            self.notifier.error("Failed to fetch workers")
            return
        self.workers = {w.id: w for w in decode_rows(rows, worker_from_row)}

    async def load(self) -> None:
        await asyncio.gather(self.refresh_bookings(), self.refresh_workers())
        await self.refresh_route()

    # Live subscriptions

    async def start(self) -> None:
        """Load collections and subscribe to the bookings/workers change feeds."""
        await self.load()
        self._subscriptions = [
            await self.store.subscribe(BOOKINGS_TABLE, self._on_booking_change),
            await self.store.subscribe(WORKERS_TABLE, self._on_worker_change),
            await self.store.subscribe(
                WORKER_LOCATIONS_TABLE, self._on_location_insert, event="INSERT"
            ),
        ]

    async def stop(self) -> None:
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            await subscription.unsubscribe()
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        self._pending.clear()

    @asynccontextmanager
    async def live(self) -> AsyncIterator["DispatchBoard"]:
        await self.start()
        try:
            yield self
        finally:
            await self.stop()

    @property
    def subscriptions(self) -> list[Subscription]:
        return list(self._subscriptions)

    async def settle(self) -> None:
        """Wait for route refreshes scheduled by change events."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def _on_booking_change(self, event: ChangeEvent) -> None:
        if event.type == "DELETE":
            if event.row_id:
                self.bookings.pop(event.row_id, None)
        else:
            decoded = decode_rows([event.record], booking_from_row)
            if not decoded:
                return
            booking = decoded[0]
            if booking.id in self.bookings:
                self.bookings[booking.id] = booking
            else:
                # Newest first, matching the created_at desc load order
                self.bookings = {booking.id: booking, **self.bookings}
        self._schedule_route_refresh()

    def _on_worker_change(self, event: ChangeEvent) -> None:
        if event.type == "DELETE":
            if event.row_id:
                self.workers.pop(event.row_id, None)
                if event.row_id == self.selected_worker_id:
                    self.selected_worker_id = None
        else:
            decoded = decode_rows([event.record], worker_from_row)
            if not decoded:
                return
            worker = decoded[0]
            self.workers[worker.id] = worker
        self._schedule_route_refresh()

    def _on_location_insert(self, event: ChangeEvent) -> None:
        record = event.record
        worker = self.workers.get(str(record.get("worker_id")))
        if worker is None:
            return
        try:
            coordinate = parse_coordinate(record.get("lat"), record.get("lng"))
            timestamp = parse_datetime(record.get("timestamp"))
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring invalid location update for worker {worker.id}: {e}")
            return
        self.workers[worker.id] = replace(
            worker,
            current_location=coordinate or worker.current_location,
            last_location_update=timestamp or worker.last_location_update,
        )
        if worker.id == self.selected_worker_id:
            self._schedule_route_refresh()

    def _schedule_route_refresh(self) -> None:
        if not self.show_routes or self.selected_worker is None:
            self.route_view.reset()
            return
        task = asyncio.get_running_loop().create_task(self.refresh_route())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    # Selection and toggles

    async def refresh_route(self, force: bool = False) -> None:
        worker = self.selected_worker
        if not self.show_routes or worker is None:
            self.route_view.reset()
            return
        await self.route_view.refresh(worker, self.booking_list, self.optimize_routes, force=force)

    async def select_worker(self, worker_id: str | None) -> None:
        """Select a worker; selecting the already-selected worker clears the selection."""
        if worker_id is not None and worker_id not in self.workers:
            raise LookupError(f"Worker '{worker_id}' not found.")
        self.selected_worker_id = None if worker_id == self.selected_worker_id else worker_id
        await self.refresh_route()

    def select_booking(self, booking_id: str | None) -> None:
        if booking_id is not None and booking_id not in self.bookings:
            raise LookupError(f"Booking '{booking_id}' not found.")
        self.selected_booking_id = None if booking_id == self.selected_booking_id else booking_id

    async def set_show_routes(self, enabled: bool) -> None:
        self.show_routes = enabled
        await self.refresh_route()

    async def set_optimize_routes(self, enabled: bool) -> None:
        self.optimize_routes = enabled
        await self.refresh_route()

    def set_view_mode(self, mode: Literal["map", "list"]) -> None:
        if mode not in ("map", "list"):
            raise ValueError(f"Unknown view mode '{mode}'.")
        self.view_mode = mode

    def set_show_traffic(self, enabled: bool) -> None:
        self.show_traffic = enabled

    def set_show_service_area(self, enabled: bool) -> None:
        self.show_service_area = enabled

    # Mutations

    async def assign_booking(self, booking_id: str, worker_id: str) -> bool:
        """Assign a booking to a worker. Failures are reported, never raised."""
        worker = self.workers.get(worker_id)
        try:
            await assignments.assign_booking(
                self.store,
                booking_id,
                worker_id,
                assigned_bookings_count=worker.assigned_bookings_count if worker else 0,
                now=self.clock(),
            )
        except Exception as e:
            logger.error(f"Error assigning worker {worker_id} to booking {booking_id}: {e}")
            self.notifier.error("Failed to assign worker")
            return False

        self.notifier.success("Worker assigned successfully!")
        return True

    async def drop_booking_on_worker(self, booking_id: str, worker_id: str) -> bool:
        """Drag-and-drop assignment; only pending bookings can be dropped."""
        booking = self.bookings.get(booking_id)
        if booking is None or booking.status is not BookingStatus.PENDING:
            return False
        return await self.assign_booking(booking_id, worker_id)

    async def update_booking_status(self, booking_id: str, status: BookingStatus) -> bool:
        try:
            await assignments.set_booking_status(self.store, booking_id, status, now=self.clock())
        except Exception as e:
            logger.error(f"Error updating booking {booking_id} status: {e}")
            self.notifier.error("Failed to update booking status")
            return False

        self.notifier.success("Booking status updated!")
        return True

    # Map overlays

    def service_area_overlay(self) -> dict | None:
        if not self.show_service_area:
            return None
        return {
            "type": "Feature",
            "geometry": mapping(service_area_polygon()),
            "properties": {"kind": "service_area"},
        }

    def route_overlay(self) -> dict | None:
        plan = self.route_view.plan
        worker = self.selected_worker
        if not self.show_routes or worker is None or plan is None:
            return None
        if self.route_view.status is not ViewStatus.SUCCESS:
            return None

        features = []
        if len(plan.geometry) >= 2:
            features.append(
                {
                    "type": "Feature",
                    "geometry": mapping(route_line(plan.geometry)),
                    "properties": {"kind": "route", "worker_id": worker.id, "optimized": plan.optimized},
                }
            )
        for index, stop in enumerate(plan.stops):
            if stop.booking.location is None:
                continue
            features.append(
                point_feature(
                    stop.booking.location,
                    {"kind": "stop", "sequence": index + 1, "booking_id": stop.booking.id},
                )
            )
        return {"type": "FeatureCollection", "features": features}
