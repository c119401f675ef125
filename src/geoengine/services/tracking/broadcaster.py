"""Periodic push of the courier position for tracked orders."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from ...config import settings
from ...models.domain import Confidence, ResolvedLocation
from ..location.resolver import LocationResolver
from .channels import RealtimeChannel
from .gate import TrackingGate
from .models import PositionUpdate

logger = logging.getLogger(__name__)


class PositionBroadcaster:
    """Every interval: resolve the location once, push it for each tracked order.

    Nothing is pushed while the location comes from the default tier, so a
    fixed fallback point is never broadcast as the courier's position.
    """

    def __init__(
        self,
        resolver: LocationResolver,
        gate: TrackingGate,
        channel: RealtimeChannel,
        interval_seconds: float | None = None,
    ) -> None:
        self.resolver = resolver
        self.gate = gate
        self.channel = channel
        self.interval_seconds = interval_seconds if interval_seconds is not None else settings.tracking_interval_seconds
        self.last_location: Optional[ResolvedLocation] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _resolve(self) -> ResolvedLocation:
        previous = self.last_location
        # A courier with a working GPS fix only needs the precise tier re-read
        if previous is not None and previous.confidence is Confidence.PRECISE:
            location = self.resolver.resolve_precise_only()
            if location is not None:
                return location
            return self.resolver.resolve_fallback()
        return self.resolver.resolve_current_location()

    def tick(self) -> list[PositionUpdate]:
        """Run one cycle and return the updates that were published."""

        location = self._resolve()
        self.last_location = location
        if location.is_default:
            logger.debug("Skipping position push: only the default location is available")
            return []

        published: list[PositionUpdate] = []
        for order_id in sorted(self.gate.snapshot()):
            update = PositionUpdate(
                order_id=order_id,
                lat=location.lat,
                lng=location.lng,
                timestamp=location.resolved_at,
                confidence=location.confidence,
                accuracy_meters=location.accuracy_meters,
            )
            try:
                self.channel.publish(update)
            except Exception as exc:
                logger.warning(f"Failed to publish position for order {order_id}: {exc}")
                continue
            published.append(update)
        if published:
            logger.debug(f"Published {len(published)} position update(s) ({location.confidence.value})")
        return published

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("Position broadcast tick failed")
            self._stop_event.wait(self.interval_seconds)

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="position-broadcaster", daemon=True)
        self._thread.start()
        logger.info(f"Position broadcaster started (every {self.interval_seconds:.0f}s)")

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
        self._thread = None
        logger.info("Position broadcaster stopped")
