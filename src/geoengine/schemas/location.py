"""Device location request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..models.domain import ResolvedLocation


class PositionReport(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    accuracy_meters: Optional[float] = Field(default=None, ge=0)
    high_accuracy: bool = Field(default=True, description="False for network/cell based fixes.")
    captured_at: Optional[datetime] = None


class ResolvedLocationModel(BaseModel):
    lat: float
    lng: float
    confidence: str
    accuracy_meters: Optional[float] = None
    source: Optional[str] = None
    resolved_at: datetime
    is_default: bool
    sensor_error: Optional[str] = Field(
        default=None,
        description="Last device sensor failure (permission_denied, unavailable, timeout), if any.",
    )

    @classmethod
    def from_domain(cls, location: ResolvedLocation, sensor_error: str | None = None) -> "ResolvedLocationModel":
        return cls(
            lat=location.lat,
            lng=location.lng,
            confidence=location.confidence.value,
            accuracy_meters=location.accuracy_meters,
            source=location.source,
            resolved_at=location.resolved_at,
            is_default=location.is_default,
            sensor_error=sensor_error,
        )
