"""Geospatial helper functions."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from ..errors import InvalidCoordinate
from ..models.domain import Coordinate, is_valid_coordinate

EARTH_RADIUS_M = 6_371_000.0
MILES_PER_METER = 0.000621371

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DistanceResult:
    meters: float
    kilometers: float
    miles: float
    error: Optional[InvalidCoordinate] = None

    @property
    def ok(self) -> bool:
        return self.error is None


ZERO_DISTANCE = DistanceResult(meters=0.0, kilometers=0.0, miles=0.0)


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Compute distance in metres between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def distance(a: Coordinate, b: Coordinate) -> DistanceResult:
    """Great-circle distance between two coordinates.

    Malformed input never raises: a zero distance is returned with the
    ``InvalidCoordinate`` diagnostic attached, so callers must check ``ok``
    before trusting a zero.
    """

    for point in (a, b):
        lat = getattr(point, "lat", None)
        lng = getattr(point, "lng", None)
        if not is_valid_coordinate(lat, lng):
            error = InvalidCoordinate(lat, lng)
            logger.warning(f"Distance requested for malformed input: {error}")
            return DistanceResult(meters=0.0, kilometers=0.0, miles=0.0, error=error)

    if a == b:
        return ZERO_DISTANCE
    meters = haversine_m(a.lat, a.lng, b.lat, b.lng)
    return DistanceResult(meters=meters, kilometers=meters / 1000.0, miles=meters * MILES_PER_METER)


def path_distance_meters(points: Sequence[Coordinate]) -> list[float]:
    """Return the length of each consecutive leg along ``points``."""

    return [distance(start, end).meters for start, end in zip(points, points[1:])]
