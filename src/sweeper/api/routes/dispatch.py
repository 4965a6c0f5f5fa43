"""Dispatch mutation endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...data.record_store import RecordStoreError
from ...data.rows import booking_from_row, worker_from_row
from ...models.domain import BookingStatus
from ...persistence.supabase_store import get_record_store
from ...schemas.dispatch import (
    AssignBookingRequest,
    BookingStatusUpdate,
    MutationResult,
    WorkerLocationReport,
)
from ...services.dispatch.assignments import assign_booking, set_booking_status
from ...services.routing.planner import utc_now
from ...services.tracking import report_worker_location

router = APIRouter(prefix="/dispatch", tags=["dispatch"])


@router.post("/assign", response_model=MutationResult, status_code=status.HTTP_200_OK)
async def assign(payload: AssignBookingRequest) -> MutationResult:
    """Assign a booking to a worker."""
    try:
        store = await get_record_store()
        worker_row = await store.get_worker(payload.worker_id)
        if worker_row is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Worker '{payload.worker_id}' not found",
            )
        worker = worker_from_row(worker_row)

        if payload.only_pending:
            booking_row = await store.get_booking(payload.booking_id)
            booking = booking_from_row(booking_row) if booking_row else None
            if booking is None or booking.status is not BookingStatus.PENDING:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Booking {payload.booking_id} is not pending",
                )

        await assign_booking(
            store,
            payload.booking_id,
            payload.worker_id,
            assigned_bookings_count=worker.assigned_bookings_count,
            now=utc_now(),
        )
    except HTTPException:
        raise
    except (RecordStoreError, ValueError) as exc:
        logging.error(f"Error assigning worker: {exc}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to assign worker",
        ) from exc

    return MutationResult(success=True, message="Worker assigned successfully!")


@router.patch("/bookings/{booking_id}/status", response_model=MutationResult, status_code=status.HTTP_200_OK)
async def update_status(booking_id: str, payload: BookingStatusUpdate) -> MutationResult:
    try:
        store = await get_record_store()
        await set_booking_status(store, booking_id, payload.status, now=utc_now())
    except RecordStoreError as exc:
        logging.error(f"Error updating booking status: {exc}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to update booking status",
        ) from exc
    return MutationResult(success=True, message="Booking status updated!")


@router.post("/workers/{worker_id}/location", response_model=MutationResult, status_code=status.HTTP_200_OK)
async def report_location(worker_id: str, payload: WorkerLocationReport) -> MutationResult:
    """Record a worker's current position (location-reporting loop)."""
    try:
        store = await get_record_store()
        reported_at = await report_worker_location(
            store,
            worker_id,
            payload.location.to_domain(),
            heading=payload.heading,
            speed=payload.speed,
        )
    except RecordStoreError as exc:
        logging.error(f"Failed to update worker location: {exc}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to update worker location: {exc}",
        ) from exc
    return MutationResult(success=True, message=f"Location updated at {reported_at.isoformat()}")
