"""Route planning endpoints."""

from __future__ import annotations

import logging
from typing import Sequence

from fastapi import APIRouter, HTTPException, Query, status

from ...data.record_store import RecordStoreError
from ...data.rows import booking_from_row, decode_rows, worker_from_row
from ...models.domain import INACTIVE_BOOKING_STATUSES, Booking, BookingStatus, Worker
from ...persistence.supabase_store import get_record_store
from ...schemas.routing import RoutePlanRequest, RoutePlanResponse
from ...services.outputs.route_formatter import route_plan_to_json
from ...services.routing.geo_client import GeoClient
from ...services.routing.live_view import LiveRouteView, ViewStatus
from ...services.routing.planner import RoutePlanner

router = APIRouter(prefix="/routes", tags=["routes"])

ACTIVE_STATUSES = [s.value for s in BookingStatus if s not in INACTIVE_BOOKING_STATUSES]


async def _plan_for(worker: Worker, bookings: Sequence[Booking], optimize: bool) -> RoutePlanResponse:
    try:
        geo_client = GeoClient()
    except ValueError as exc:
        logging.error(f"Routing client initialization failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Routing provider is not configured. Please check SWEEPER_MAPBOX_ACCESS_TOKEN setting.",
        ) from exc

    view = LiveRouteView(RoutePlanner(geo_client))
    await view.refresh(worker, bookings, optimize)
    summary = view.render()
    if summary.status is ViewStatus.ERROR:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=summary.message)

    plan = route_plan_to_json(view.plan) if view.plan is not None else None
    return RoutePlanResponse.from_summary(worker.id, summary, plan)


@router.post("/plan", response_model=RoutePlanResponse, status_code=status.HTTP_200_OK)
async def plan_route(payload: RoutePlanRequest) -> RoutePlanResponse:
    """Plan a route for the posted worker and booking snapshot."""
    try:
        worker = payload.worker.to_domain()
        bookings = [booking.to_domain() for booking in payload.bookings]
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return await _plan_for(worker, bookings, payload.optimize)


@router.get("/workers/{worker_id}", response_model=RoutePlanResponse, status_code=status.HTTP_200_OK)
async def plan_worker_route(
    worker_id: str,
    optimize: bool = Query(default=True, description="Let the provider reorder stops."),
) -> RoutePlanResponse:
    """Plan the route for a worker's active bookings as stored in the record store."""
    try:
        store = await get_record_store()
        worker_row = await store.get_worker(worker_id)
        if worker_row is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Worker '{worker_id}' not found",
            )
        booking_rows = await store.list_bookings(worker_id=worker_id, statuses=ACTIVE_STATUSES)
    except RecordStoreError as exc:
        logging.error(f"Failed to load route inputs for worker {worker_id}: {exc}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    try:
        worker = worker_from_row(worker_row)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    bookings = decode_rows(booking_rows, booking_from_row)
    return await _plan_for(worker, bookings, optimize)
