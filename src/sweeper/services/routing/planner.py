"""Route planning for a worker's active bookings."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Sequence

from ...models.domain import Booking, Coordinate, Worker
from .geo_client import GeoClient
from .models import RoutePlan, RouteStop

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def active_bookings(worker: Worker, bookings: Sequence[Booking]) -> list[Booking]:
    """Bookings assigned to the worker that are neither completed nor cancelled, in list order."""
    return [booking for booking in bookings if booking.is_active_for(worker.id)]


class RoutePlanner:
    """Decide which routing calls to make for a worker and shape the result into a RoutePlan."""

    def __init__(self, geo_client: GeoClient, clock: Callable[[], datetime] = utc_now) -> None:
        self.geo_client = geo_client
        self.clock = clock

    async def plan(
        self,
        worker: Worker,
        bookings: Sequence[Booking],
        optimize: bool,
        now: datetime | None = None,
    ) -> RoutePlan | None:
        """Compute the route plan, or ``None`` when there is nothing to route."""
        stops = active_bookings(worker, bookings)
        if not stops or worker.current_location is None:
            return None

        now = now or self.clock()
        origin = worker.current_location

        if len(stops) == 1:
            return await self._plan_single(origin, stops[0], now)
        if optimize:
            return await self._plan_optimized(origin, stops, now)
        return await self._plan_sequential(origin, stops, now)

    async def _plan_single(self, origin: Coordinate, booking: Booking, now: datetime) -> RoutePlan:
        if booking.location is None:
            logger.debug(f"Booking {booking.id} has no destination; skipping")
            return _empty_plan(optimized=False)

        leg = await self.geo_client.get_route(origin, booking.location)
        if leg is None:
            logger.debug(f"No route to booking {booking.id}; skipping")
            return _empty_plan(optimized=False)

        stop = RouteStop(
            booking=booking,
            distance_meters=leg.distance_meters,
            duration_seconds=leg.duration_seconds,
            eta=now + timedelta(seconds=leg.duration_seconds),
        )
        return RoutePlan(
            total_distance_meters=leg.distance_meters,
            total_duration_seconds=leg.duration_seconds,
            stops=[stop],
            optimized=False,
            geometry=list(leg.geometry),
        )

    async def _plan_optimized(
        self, origin: Coordinate, bookings: Sequence[Booking], now: datetime
    ) -> RoutePlan:
        located = [booking for booking in bookings if booking.location is not None]
        if not located:
            return _empty_plan(optimized=True)

        trip = await self.geo_client.get_optimized_route(
            [origin, *(booking.location for booking in located)]
        )
        if trip is None:
            logger.debug("Optimized trip unavailable; returning an empty plan")
            return _empty_plan(optimized=True)

        # Aggregate metrics only: split evenly across all active bookings
        segment_distance = trip.distance_meters / len(bookings)
        segment_duration = trip.duration_seconds / len(bookings)
        visiting = [located[index - 1] for index in trip.order if index != 0]

        stops = [
            RouteStop(
                booking=booking,
                distance_meters=segment_distance,
                duration_seconds=segment_duration,
                eta=now + timedelta(seconds=segment_duration * (position + 1)),
            )
            for position, booking in enumerate(visiting)
        ]
        return RoutePlan(
            total_distance_meters=trip.distance_meters,
            total_duration_seconds=trip.duration_seconds,
            stops=stops,
            optimized=True,
            geometry=list(trip.geometry),
        )

    async def _plan_sequential(
        self, origin: Coordinate, bookings: Sequence[Booking], now: datetime
    ) -> RoutePlan:
        current = origin
        total_distance = 0.0
        cumulative_duration = 0.0
        stops: list[RouteStop] = []
        geometry: list[tuple[float, float]] = []

        for booking in bookings:
            if booking.location is None:
                logger.debug(f"Booking {booking.id} has no destination; skipping")
                continue
            # Each leg starts where the previous one ended, so legs are awaited in order
            leg = await self.geo_client.get_route(current, booking.location)
            if leg is None:
                logger.debug(f"No route to booking {booking.id}; skipping leg")
                continue

            total_distance += leg.distance_meters
            cumulative_duration += leg.duration_seconds
            stops.append(
                RouteStop(
                    booking=booking,
                    distance_meters=leg.distance_meters,
                    duration_seconds=leg.duration_seconds,
                    eta=now + timedelta(seconds=cumulative_duration),
                )
            )
            geometry.extend(leg.geometry)
            current = booking.location

        return RoutePlan(
            total_distance_meters=total_distance,
            total_duration_seconds=cumulative_duration,
            stops=stops,
            optimized=False,
            geometry=geometry,
        )


def _empty_plan(optimized: bool) -> RoutePlan:
    return RoutePlan(
        total_distance_meters=0.0,
        total_duration_seconds=0.0,
        stops=[],
        optimized=optimized,
    )
