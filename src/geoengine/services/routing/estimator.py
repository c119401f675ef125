"""Distance and duration totals for an ordered route.

Durations are a deliberately coarse straight-line estimate
(``distance_km * duration_factor``, about 40 km/h urban average with the
default factor of 1.5 min/km). They ignore the road network, traffic and stop
times and must not be presented as a navigation-grade ETA.
"""

from __future__ import annotations

from typing import Sequence

from ...config import settings
from ...models.domain import Coordinate
from ..geospatial import distance, path_distance_meters
from .models import RouteEstimate


class RouteEstimator:
    def __init__(self, duration_factor: float | None = None) -> None:
        self.duration_factor = duration_factor if duration_factor is not None else settings.duration_factor_min_per_km
        if self.duration_factor <= 0:
            raise ValueError("duration_factor must be positive.")

    def duration_minutes(self, distance_meters: float) -> float:
        return (distance_meters / 1000.0) * self.duration_factor

    def estimate(self, waypoints: Sequence[Coordinate]) -> RouteEstimate:
        """Sum consecutive legs of ``waypoints`` (origin first)."""

        legs = tuple(path_distance_meters(waypoints))
        total = sum(legs)
        return RouteEstimate(
            legs_meters=legs,
            total_distance_meters=total,
            total_duration_minutes=self.duration_minutes(total),
        )

    def eta_to(self, origin: Coordinate, target: Coordinate) -> float:
        """Coarse minutes from ``origin`` straight to ``target``."""
        return self.duration_minutes(distance(origin, target).meters)


def format_duration(minutes: float) -> str:
    """Render minutes as ``"45m"`` or ``"1h 5m"``."""

    total = max(0, round(minutes))
    if total > 60:
        return f"{total // 60}h {total % 60}m"
    return f"{total}m"
