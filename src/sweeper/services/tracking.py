"""Worker location reporting."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from ..data.record_store import RecordStore
from ..models.domain import Coordinate

logger = logging.getLogger(__name__)


async def report_worker_location(
    store: RecordStore,
    worker_id: str,
    coordinate: Coordinate,
    heading: Optional[float] = None,
    speed: Optional[float] = None,
    timestamp: Optional[datetime] = None,
) -> datetime:
    """Record a worker's current position and append it to the location history.

    Updating the worker row is required; the history insert is best effort.
    """
    reported_at = (timestamp or datetime.now(timezone.utc)).isoformat()

    await store.update_worker(
        worker_id,
        {
            "current_location_lat": coordinate.lat,
            "current_location_lng": coordinate.lng,
            "last_location_update": reported_at,
        },
    )

    try:
        await store.insert_worker_location(
            {
                "worker_id": worker_id,
                "lat": coordinate.lat,
                "lng": coordinate.lng,
                "heading": heading,
                "speed": speed,
                "timestamp": reported_at,
            }
        )
    except Exception as e:
        logger.warning(f"Failed to insert location history for worker {worker_id}: {e}")

    return datetime.fromisoformat(reported_at)
