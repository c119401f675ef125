"""Device position models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass(frozen=True, slots=True)
class PositionRequest:
    high_accuracy: bool = True
    timeout_seconds: float = 10.0
    max_age_seconds: float = 300.0


@dataclass(frozen=True, slots=True)
class SensorReading:
    lat: float
    lng: float
    accuracy_meters: Optional[float] = None
    high_accuracy: bool = True
    captured_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
