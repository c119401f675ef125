"""Device location sensor fed by positions the courier device reports."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from ...errors import InvalidCoordinate, PermissionDenied, SensorTimeout, Unavailable
from ...models.domain import is_valid_coordinate
from .models import PositionRequest, SensorReading

logger = logging.getLogger(__name__)


class LocationSensor(Protocol):
    """Device position source.

    Raises ``PermissionDenied``, ``Unavailable`` or ``SensorTimeout`` when no
    acceptable reading can be produced.
    """

    def get_position(self, request: PositionRequest) -> SensorReading: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportedPositionSensor:
    """Serves the latest fix pushed by the device.

    A cached fix is used while it is younger than ``max_age_seconds``;
    otherwise the call waits up to ``timeout_seconds`` for a fresh report.
    A device that has never reported fails immediately with ``Unavailable``.
    Low-accuracy fixes (network/cell based) only satisfy requests that do not
    ask for high accuracy.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._reading: Optional[SensorReading] = None
        self._permission_denied = False
        self._condition = threading.Condition()

    @property
    def latest(self) -> Optional[SensorReading]:
        with self._condition:
            return self._reading

    def report(
        self,
        lat: float,
        lng: float,
        accuracy_meters: float | None = None,
        *,
        high_accuracy: bool = True,
        captured_at: datetime | None = None,
    ) -> SensorReading:
        if not is_valid_coordinate(lat, lng):
            raise InvalidCoordinate(lat, lng)
        if captured_at is not None and captured_at.tzinfo is None:
            captured_at = captured_at.replace(tzinfo=timezone.utc)
        reading = SensorReading(
            lat=float(lat),
            lng=float(lng),
            accuracy_meters=accuracy_meters,
            high_accuracy=high_accuracy,
            captured_at=captured_at or self._clock(),
        )
        with self._condition:
            self._reading = reading
            self._permission_denied = False
            self._condition.notify_all()
        return reading

    def deny(self) -> None:
        """Record that the device refused location access."""
        with self._condition:
            self._permission_denied = True
            self._reading = None
            self._condition.notify_all()

    def clear(self) -> None:
        with self._condition:
            self._reading = None
            self._permission_denied = False

    def get_position(self, request: PositionRequest) -> SensorReading:
        with self._condition:
            if self._permission_denied:
                raise PermissionDenied("Location permission denied by the device.")
            reading = self._acceptable(request)
            if reading is not None:
                return reading
            # A device that never reported is not going to answer within the timeout
            if self._reading is None:
                raise Unavailable("No position has been reported by the device.")

            self._condition.wait_for(
                lambda: self._permission_denied or self._acceptable(request) is not None,
                timeout=request.timeout_seconds,
            )
            if self._permission_denied:
                raise PermissionDenied("Location permission denied by the device.")
            reading = self._acceptable(request)
            if reading is not None:
                return reading
            if self._reading is None:
                raise Unavailable("No position has been reported by the device.")
            raise SensorTimeout(
                f"No acceptable position within {request.timeout_seconds:.1f}s "
                f"(high_accuracy={request.high_accuracy})."
            )

    def _acceptable(self, request: PositionRequest) -> Optional[SensorReading]:
        reading = self._reading
        if reading is None:
            return None
        if request.high_accuracy and not reading.high_accuracy:
            return None
        age = (self._clock() - reading.captured_at).total_seconds()
        if age > request.max_age_seconds:
            logger.debug(f"Discarding stale position ({age:.0f}s old, max {request.max_age_seconds:.0f}s)")
            return None
        return reading
