"""Routing request/response schemas."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .common import CoordinateModel


class OrderModel(BaseModel):
    """Order record as delivered by the order store; only address fields are read."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    mongo_id: Optional[str] = Field(default=None, alias="_id")
    drop_address: Optional[str] = Field(default=None, alias="dropAddress")
    delivery_address: Optional[str] = Field(default=None, alias="deliveryAddress")
    pickup_address: Optional[str] = Field(default=None, alias="pickupAddress")
    drop_coords: Optional[CoordinateModel] = Field(default=None, alias="dropCoords")
    delivery_coords: Optional[CoordinateModel] = Field(default=None, alias="deliveryCoords")
    customer_name: Optional[str] = Field(default=None, alias="customerName")
    status: Optional[str] = None

    @field_validator("id", "mongo_id", mode="before")
    @classmethod
    def _stringify_identifier(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @model_validator(mode="after")
    def _require_identifier(self) -> "OrderModel":
        if not (self.id or self.mongo_id):
            raise ValueError("Order requires 'id' or '_id'.")
        return self

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class RoutingRequest(BaseModel):
    origin: Optional[CoordinateModel] = Field(
        default=None,
        description="Start point. When omitted the courier's current location is resolved.",
    )
    origin_address: Optional[str] = Field(default=None, description="Start address, geocoded when given.")
    orders: List[OrderModel] = Field(..., description="Orders to visit.")
    include_navigation: bool = True


class RouteStopModel(BaseModel):
    sequence: int
    order_id: str
    display_name: str
    status: Optional[str] = None
    lat: float
    lng: float
    distance_from_prev_km: float


class FailedDestinationModel(BaseModel):
    order_id: str
    display_name: str
    reason: str
    error_type: str


class RoutingResponse(BaseModel):
    origin: CoordinateModel
    origin_confidence: Optional[str] = None
    stops: List[RouteStopModel]
    waypoints: List[CoordinateModel]
    total_distance_meters: float
    total_distance_km: float
    total_duration_minutes: float
    duration_text: str
    duration_is_estimate: bool = Field(
        default=True,
        description="Durations are straight-line estimates (~40 km/h), not navigation ETAs.",
    )
    failed_destinations: List[FailedDestinationModel]
    navigation: Dict[str, str] = Field(default_factory=dict)
