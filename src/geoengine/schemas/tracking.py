"""Tracking request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..services.tracking.models import PositionUpdate


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., description="Order status, e.g. 'picked-up' or 'delivered'.")


class TrackingStatusResponse(BaseModel):
    order_id: str
    tracking: bool


class TrackedOrdersResponse(BaseModel):
    order_ids: List[str]
    broadcaster_running: bool


class PositionUpdateModel(BaseModel):
    order_id: str
    lat: float
    lng: float
    timestamp: datetime
    confidence: str
    accuracy_meters: Optional[float] = None

    @classmethod
    def from_domain(cls, update: PositionUpdate) -> "PositionUpdateModel":
        return cls(
            order_id=update.order_id,
            lat=update.lat,
            lng=update.lng,
            timestamp=update.timestamp,
            confidence=update.confidence.value,
            accuracy_meters=update.accuracy_meters,
        )
