"""Membership of orders that receive courier-position pushes."""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)

START_STATUSES = frozenset({"picked-up", "picked_up"})
STOP_STATUSES = frozenset({"delivered", "cancelled"})


class TrackingGate:
    """Thread-safe set of order ids currently being tracked."""

    def __init__(self) -> None:
        self._orders: set[str] = set()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._orders)

    def start_tracking(self, order_id: str) -> None:
        with self._lock:
            self._orders.add(str(order_id))
        logger.info(f"Tracking started for order {order_id}")

    def stop_tracking(self, order_id: str) -> None:
        with self._lock:
            self._orders.discard(str(order_id))
        logger.info(f"Tracking stopped for order {order_id}")

    def is_tracking(self, order_id: str) -> bool:
        with self._lock:
            return str(order_id) in self._orders

    def snapshot(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._orders)

    def apply_status(self, order_id: str, status: str) -> bool:
        """Update membership from an order status transition.

        Returns True when the order is tracked after the transition.
        """
        normalized = (status or "").strip().lower()
        if normalized in START_STATUSES:
            self.start_tracking(order_id)
        elif normalized in STOP_STATUSES:
            self.stop_tracking(order_id)
        return self.is_tracking(order_id)
