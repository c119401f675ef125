"""Assembly of the geo engine components."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from ..config import Settings, settings as default_settings
from ..models.domain import Coordinate, Destination, destination_from_order
from .geocoding.cache import GeocodeCache
from .geocoding.nominatim_client import Geocoder, NominatimClient
from .geocoding.resolver import AddressResolver
from .location.ip_geolocation import IPGeolocationClient, providers_from_names
from .location.resolver import IPLocator, LocationResolver
from .location.sensor import LocationSensor, ReportedPositionSensor
from .routing.estimator import RouteEstimator
from .routing.models import RouteResult
from .routing.optimizer import Origin, RouteOptimizer
from .tracking.broadcaster import PositionBroadcaster
from .tracking.channels import LatestPositionChannel, RealtimeChannel
from .tracking.gate import TrackingGate


@dataclass
class GeoEngine:
    """Explicitly wired set of components shared by one delivery session."""

    cache: GeocodeCache
    address_resolver: AddressResolver
    location_resolver: LocationResolver
    estimator: RouteEstimator
    optimizer: RouteOptimizer
    gate: TrackingGate
    channel: RealtimeChannel
    broadcaster: PositionBroadcaster
    sensor: LocationSensor | None = None

    def optimize_orders(self, origin: Origin | None, orders: Iterable[Any]) -> RouteResult:
        """Convert order records to destinations once, then optimize."""
        destinations = [destination_from_order(order) for order in orders]
        return self.optimizer.optimize(origin, destinations)

    def optimize(self, origin: Origin | None, destinations: Sequence[Destination]) -> RouteResult:
        return self.optimizer.optimize(origin, destinations)


def build_engine(
    config: Settings | None = None,
    *,
    geocoder: Geocoder | None = None,
    sensor: LocationSensor | None = None,
    ip_services: Sequence[IPLocator] | None = None,
    channel: RealtimeChannel | None = None,
    cache: GeocodeCache | None = None,
) -> GeoEngine:
    """Build an engine from ``config``; any collaborator can be swapped for a test double."""

    config = config or default_settings
    cache = cache if cache is not None else GeocodeCache(max_entries=config.geocode_cache_max_entries)
    geocoder = geocoder or NominatimClient(
        base_url=config.nominatim_base_url,
        user_agent=config.geocoder_user_agent,
        timeout=config.geocoder_timeout_seconds,
        max_retries=config.geocoder_max_retries,
        backoff_seconds=config.geocoder_backoff_seconds,
    )
    if ip_services is None:
        ip_services = [
            IPGeolocationClient(
                providers=providers_from_names(config.ip_geolocation_providers),
                timeout=config.ip_geolocation_timeout_seconds,
                max_retries=config.ip_geolocation_max_retries,
                backoff_seconds=config.ip_geolocation_backoff_seconds,
            )
        ]
    sensor = sensor if sensor is not None else ReportedPositionSensor()
    channel = channel if channel is not None else LatestPositionChannel()

    address_resolver = AddressResolver(geocoder, cache=cache, min_address_length=config.min_address_length)
    location_resolver = LocationResolver(
        sensor=sensor,
        ip_services=ip_services,
        default_location=Coordinate(config.default_latitude, config.default_longitude),
        sensor_timeout_seconds=config.sensor_timeout_seconds,
        sensor_max_age_seconds=config.sensor_max_age_seconds,
        ip_accuracy_meters=config.ip_location_accuracy_meters,
    )
    estimator = RouteEstimator(duration_factor=config.duration_factor_min_per_km)
    optimizer = RouteOptimizer(address_resolver, estimator=estimator, max_workers=config.max_parallel_geocodes)
    gate = TrackingGate()
    broadcaster = PositionBroadcaster(
        location_resolver,
        gate,
        channel,
        interval_seconds=config.tracking_interval_seconds,
    )
    return GeoEngine(
        cache=cache,
        address_resolver=address_resolver,
        location_resolver=location_resolver,
        estimator=estimator,
        optimizer=optimizer,
        gate=gate,
        channel=channel,
        broadcaster=broadcaster,
        sensor=sensor,
    )


@functools.lru_cache(maxsize=1)
def get_engine() -> GeoEngine:
    """Engine for the running API process."""
    return build_engine()
