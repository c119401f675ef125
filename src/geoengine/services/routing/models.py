"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from ...errors import GeoEngineError
from ...models.domain import Coordinate, Destination


@dataclass(frozen=True, slots=True)
class FailedDestination:
    destination: Destination
    reason: GeoEngineError


@dataclass(frozen=True, slots=True)
class RouteEstimate:
    legs_meters: Tuple[float, ...]
    total_distance_meters: float
    total_duration_minutes: float


@dataclass(frozen=True, slots=True)
class RouteResult:
    ordered_destinations: Tuple[Destination, ...]
    waypoints: Tuple[Coordinate, ...]
    total_distance_meters: float
    total_duration_minutes: float
    failed_destinations: Tuple[FailedDestination, ...] = ()
    legs_meters: Tuple[float, ...] = field(default=())

    @property
    def total_distance_km(self) -> float:
        return self.total_distance_meters / 1000.0

    @property
    def stop_count(self) -> int:
        return len(self.ordered_destinations)
