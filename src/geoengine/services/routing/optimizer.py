"""Nearest-neighbour ordering of delivery stops."""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence, Union

from ...config import settings
from ...errors import GeoEngineError, InvalidInput, NoDestinations
from ...models.domain import AddressText, Coordinate, Destination, ResolvedLocation
from ..geocoding.resolver import AddressResolver
from ..geospatial import distance
from .estimator import RouteEstimator
from .models import FailedDestination, RouteResult

logger = logging.getLogger(__name__)

Origin = Union[Coordinate, ResolvedLocation, AddressText, str]


class RouteOptimizer:
    """Greedy tour: always drive to the closest unvisited stop.

    Runs in O(n^2) distance evaluations, which is fine for the single-digit to
    low-tens stop counts of one delivery run. Destinations that cannot be
    resolved are reported in ``failed_destinations`` instead of aborting.
    """

    def __init__(
        self,
        resolver: AddressResolver,
        estimator: RouteEstimator | None = None,
        max_workers: int | None = None,
    ) -> None:
        self.resolver = resolver
        self.estimator = estimator or RouteEstimator()
        self.max_workers = max_workers if max_workers is not None else settings.max_parallel_geocodes

    def optimize(self, origin: Origin | None, destinations: Sequence[Destination]) -> RouteResult:
        start = self._resolve_origin(origin)

        candidates = [destination for destination in destinations if destination.has_location]
        skipped = len(destinations) - len(candidates)
        if skipped:
            logger.info(f"Skipping {skipped} destination(s) without an address or coordinate")
        if not candidates:
            raise NoDestinations()

        resolved: list[tuple[Destination, Coordinate]] = []
        failed: list[FailedDestination] = []
        for destination, outcome in zip(candidates, self._resolve_all(candidates)):
            if isinstance(outcome, Coordinate):
                resolved.append((destination, outcome))
            else:
                logger.warning(f"Destination {destination.id} could not be resolved: {outcome}")
                failed.append(FailedDestination(destination=destination, reason=outcome))

        ordered = self._nearest_neighbor(start, resolved)
        waypoints = (start, *(coordinate for _, coordinate in ordered))
        estimate = self.estimator.estimate(waypoints)

        logger.info(
            f"Optimized route: {len(ordered)} stop(s), {len(failed)} failed, "
            f"{estimate.total_distance_meters / 1000.0:.2f} km, ~{estimate.total_duration_minutes:.0f} min"
        )
        return RouteResult(
            ordered_destinations=tuple(destination for destination, _ in ordered),
            waypoints=waypoints,
            total_distance_meters=estimate.total_distance_meters,
            total_duration_minutes=estimate.total_duration_minutes,
            failed_destinations=tuple(failed),
            legs_meters=estimate.legs_meters,
        )

    def _resolve_origin(self, origin: Origin | None) -> Coordinate:
        if origin is None:
            raise InvalidInput("Route origin is required.")
        if isinstance(origin, ResolvedLocation):
            origin = origin.coordinate
        return self.resolver.resolve(origin)

    def _resolve_one(self, destination: Destination) -> Coordinate | GeoEngineError:
        try:
            return self.resolver.resolve(destination.location)
        except GeoEngineError as exc:
            return exc

    def _resolve_all(self, destinations: Sequence[Destination]) -> list[Coordinate | GeoEngineError]:
        """Resolve every destination, concurrently when allowed; results keep input order."""

        workers = min(self.max_workers, len(destinations))
        if workers <= 1:
            return [self._resolve_one(destination) for destination in destinations]
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self._resolve_one, destinations))

    def _nearest_neighbor(
        self,
        start: Coordinate,
        stops: Sequence[tuple[Destination, Coordinate]],
    ) -> list[tuple[Destination, Coordinate]]:
        unvisited = list(stops)
        ordered: list[tuple[Destination, Coordinate]] = []
        current = start

        while unvisited:
            nearest_index = -1
            nearest_distance = math.inf
            for index, (_, coordinate) in enumerate(unvisited):
                result = distance(current, coordinate)
                if not result.ok:
                    continue
                # Strict comparison: on ties the earliest stop in input order wins
                if result.meters < nearest_distance:
                    nearest_distance = result.meters
                    nearest_index = index

            if nearest_index < 0:
                logger.warning(
                    f"No reachable candidate among {len(unvisited)} remaining stop(s); appending in input order"
                )
                ordered.extend(unvisited)
                break

            chosen = unvisited.pop(nearest_index)
            ordered.append(chosen)
            current = chosen[1]

        return ordered
