"""Current-position resolution through an ordered fallback chain."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from ...config import settings
from ...errors import SensorFailure, ServiceFailure
from ...models.domain import Confidence, Coordinate, ResolvedLocation, is_valid_coordinate
from .models import PositionRequest
from .sensor import LocationSensor

logger = logging.getLogger(__name__)


class IPLocator(Protocol):
    def lookup(self) -> Coordinate: ...


class LocationResolver:
    """Resolves where the courier is right now.

    Tiers, first success wins: precise sensor, approximate sensor, IP
    services in order, fixed default. Every failure cause falls through to the
    next tier, so ``resolve_current_location`` always returns.
    """

    def __init__(
        self,
        sensor: LocationSensor | None = None,
        ip_services: Sequence[IPLocator] = (),
        default_location: Coordinate | None = None,
        sensor_timeout_seconds: float | None = None,
        sensor_max_age_seconds: float | None = None,
        ip_accuracy_meters: float | None = None,
    ) -> None:
        self.sensor = sensor
        self.ip_services = list(ip_services)
        self.default_location = default_location or Coordinate(settings.default_latitude, settings.default_longitude)
        self.sensor_timeout_seconds = (
            sensor_timeout_seconds if sensor_timeout_seconds is not None else settings.sensor_timeout_seconds
        )
        self.sensor_max_age_seconds = (
            sensor_max_age_seconds if sensor_max_age_seconds is not None else settings.sensor_max_age_seconds
        )
        self.ip_accuracy_meters = ip_accuracy_meters if ip_accuracy_meters is not None else settings.ip_location_accuracy_meters
        # Most recent sensor failure, kept for caller-facing messaging only
        self.last_sensor_error: Optional[SensorFailure] = None

    def resolve_current_location(self) -> ResolvedLocation:
        location = self.resolve_precise_only()
        if location is not None:
            return location
        return self.resolve_fallback()

    def resolve_fallback(self) -> ResolvedLocation:
        """Resolve from the tiers below the precise sensor; never raises."""

        location = self._from_sensor(high_accuracy=False)
        if location is not None:
            return location

        location = self._from_ip_services()
        if location is not None:
            return location

        logger.warning(
            f"All location tiers failed; using default location "
            f"({self.default_location.lat}, {self.default_location.lng})"
        )
        return ResolvedLocation(coordinate=self.default_location, confidence=Confidence.DEFAULT, source="default")

    def resolve_precise_only(self) -> Optional[ResolvedLocation]:
        """Try only the high-accuracy sensor tier; None when it fails."""
        return self._from_sensor(high_accuracy=True)

    def _from_sensor(self, *, high_accuracy: bool) -> Optional[ResolvedLocation]:
        if self.sensor is None:
            return None
        request = PositionRequest(
            high_accuracy=high_accuracy,
            timeout_seconds=self.sensor_timeout_seconds,
            max_age_seconds=self.sensor_max_age_seconds,
        )
        tier = Confidence.PRECISE if high_accuracy else Confidence.APPROXIMATE
        try:
            reading = self.sensor.get_position(request)
        except SensorFailure as exc:
            self.last_sensor_error = exc
            logger.info(f"{tier.value} sensor tier failed ({exc.reason}): {exc}")
            return None
        except Exception as exc:
            logger.warning(f"{tier.value} sensor tier raised unexpectedly: {exc!r}")
            return None

        if not is_valid_coordinate(reading.lat, reading.lng):
            logger.warning(f"Sensor returned an invalid coordinate ({reading.lat}, {reading.lng})")
            return None
        self.last_sensor_error = None
        return ResolvedLocation(
            coordinate=Coordinate(reading.lat, reading.lng),
            confidence=tier,
            accuracy_meters=reading.accuracy_meters,
            source="sensor",
        )

    def _from_ip_services(self) -> Optional[ResolvedLocation]:
        for service in self.ip_services:
            name = type(service).__name__
            try:
                coordinate = service.lookup()
            except ServiceFailure as exc:
                logger.info(f"IP location tier {name} failed: {exc}")
                continue
            except Exception as exc:
                logger.warning(f"IP location tier {name} raised unexpectedly: {exc!r}")
                continue
            if not isinstance(coordinate, Coordinate) or not coordinate.is_valid:
                logger.warning(f"IP location tier {name} returned an unusable coordinate: {coordinate!r}")
                continue
            return ResolvedLocation(
                coordinate=coordinate,
                confidence=Confidence.IP_BASED,
                accuracy_meters=self.ip_accuracy_meters,
                source=getattr(service, "last_provider", None) or name,
            )
        return None
