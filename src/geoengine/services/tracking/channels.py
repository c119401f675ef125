"""Outbound real-time channels for position updates."""

from __future__ import annotations

import threading
from typing import Optional, Protocol

from .models import PositionUpdate


class RealtimeChannel(Protocol):
    def publish(self, update: PositionUpdate) -> None: ...


class LatestPositionChannel:
    """Keeps the most recent update per order so it can be polled."""

    def __init__(self) -> None:
        self._latest: dict[str, PositionUpdate] = {}
        self._lock = threading.Lock()

    def publish(self, update: PositionUpdate) -> None:
        with self._lock:
            self._latest[update.order_id] = update

    def latest(self, order_id: str) -> Optional[PositionUpdate]:
        with self._lock:
            return self._latest.get(str(order_id))

    def forget(self, order_id: str) -> None:
        with self._lock:
            self._latest.pop(str(order_id), None)
