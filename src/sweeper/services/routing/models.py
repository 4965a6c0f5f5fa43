"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from ...models.domain import Booking


@dataclass(frozen=True, slots=True)
class RouteLeg:
    distance_meters: float
    duration_seconds: float
    geometry: List[tuple[float, float]] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class OptimizedRoute:
    distance_meters: float
    duration_seconds: float
    order: List[int]
    geometry: List[tuple[float, float]] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class RouteStop:
    booking: Booking
    distance_meters: float
    duration_seconds: float
    eta: datetime


@dataclass(frozen=True, slots=True)
class RoutePlan:
    total_distance_meters: float
    total_duration_seconds: float
    stops: List[RouteStop]
    optimized: bool
    geometry: List[tuple[float, float]] = field(default_factory=list)
