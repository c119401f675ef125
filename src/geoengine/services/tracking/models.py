"""Tracking models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...models.domain import Confidence


@dataclass(frozen=True, slots=True)
class PositionUpdate:
    order_id: str
    lat: float
    lng: float
    timestamp: datetime
    confidence: Confidence
    accuracy_meters: Optional[float] = None
