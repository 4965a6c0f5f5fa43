"""Refreshing route presentation for the selected worker."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Hashable, List, Optional, Sequence

from ...models.domain import Booking, Worker
from ..outputs.route_formatter import (
    format_distance,
    format_duration,
    format_eta,
    format_service_type,
    google_maps_url,
)
from .models import RoutePlan
from .planner import RoutePlanner, active_bookings

logger = logging.getLogger(__name__)

ROUTE_ERROR_MESSAGE = "Failed to calculate route"
EMPTY_MESSAGE = "No active bookings"


class ViewStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    EMPTY = "empty"
    ERROR = "error"


@dataclass(slots=True)
class StopRow:
    sequence: int
    booking_id: str
    service_type: str
    address: str
    distance: str
    duration: str
    eta: str


@dataclass(slots=True)
class RouteSummary:
    status: ViewStatus
    message: Optional[str] = None
    total_distance: Optional[str] = None
    total_duration: Optional[str] = None
    optimized: bool = False
    stops: List[StopRow] = field(default_factory=list)
    maps_url: Optional[str] = None


def _signature(worker: Worker, bookings: Sequence[Booking], optimize: bool) -> Hashable:
    """Identity/content of the inputs that affect a planning run."""
    location = worker.current_location
    return (
        worker.id,
        (location.lat, location.lng) if location else None,
        tuple(
            (
                booking.id,
                booking.status.value,
                booking.service_type.value,
                booking.address,
                (booking.location.lat, booking.location.lng) if booking.location else None,
            )
            for booking in active_bookings(worker, bookings)
        ),
        optimize,
    )


class LiveRouteView:
    """Own the loading/error/success lifecycle around RoutePlanner.

    Each run is tagged with an increasing token; a run that resolves after a
    newer one has started is discarded instead of overwriting the newer state.
    """

    def __init__(self, planner: RoutePlanner) -> None:
        self.planner = planner
        self.status = ViewStatus.IDLE
        self.plan: RoutePlan | None = None
        self.error: str | None = None
        self.runs = 0
        self._token = 0
        self._signature: Hashable | None = None

    async def refresh(
        self,
        worker: Worker,
        bookings: Sequence[Booking],
        optimize: bool,
        force: bool = False,
    ) -> bool:
        """Re-plan when the inputs changed. Returns True if a run was started."""
        signature = _signature(worker, bookings, optimize)
        if not force and signature == self._signature:
            return False
        self._signature = signature

        self._token += 1
        token = self._token
        self.runs += 1
        self.status = ViewStatus.LOADING
        self.plan = None
        self.error = None
        snapshot = list(bookings)

        try:
            plan = await self.planner.plan(worker, snapshot, optimize)
        except Exception:
            if token != self._token:
                logger.debug(f"Discarding failed stale route run {token}")
                return True
            logger.exception(f"Route calculation error for worker {worker.id}")
            self._signature = None
            self.plan = None
            self.error = ROUTE_ERROR_MESSAGE
            self.status = ViewStatus.ERROR
            return True

        if token != self._token:
            logger.debug(f"Discarding stale route run {token}")
            return True
        self.plan = plan
        self.status = ViewStatus.EMPTY if plan is None else ViewStatus.SUCCESS
        return True

    def reset(self) -> None:
        """Return to idle, e.g. when the worker is deselected or routes are hidden."""
        self._token += 1
        self._signature = None
        self.plan = None
        self.error = None
        self.status = ViewStatus.IDLE

    def render(self) -> RouteSummary:
        if self.status is ViewStatus.ERROR:
            return RouteSummary(status=self.status, message=self.error)
        if self.status is ViewStatus.EMPTY:
            return RouteSummary(status=self.status, message=EMPTY_MESSAGE)
        if self.status is not ViewStatus.SUCCESS or self.plan is None:
            return RouteSummary(status=self.status)

        plan = self.plan
        return RouteSummary(
            status=self.status,
            total_distance=format_distance(plan.total_distance_meters),
            total_duration=format_duration(plan.total_duration_seconds),
            optimized=plan.optimized,
            stops=[
                StopRow(
                    sequence=index + 1,
                    booking_id=stop.booking.id,
                    service_type=format_service_type(stop.booking.service_type.value),
                    address=stop.booking.address,
                    distance=format_distance(stop.distance_meters),
                    duration=format_duration(stop.duration_seconds),
                    eta=format_eta(stop.eta),
                )
                for index, stop in enumerate(plan.stops)
            ],
            maps_url=google_maps_url(plan),
        )
