"""Shared request/response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..models.domain import Coordinate


class CoordinateModel(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_domain(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)

    @classmethod
    def from_domain(cls, coordinate: Coordinate) -> "CoordinateModel":
        return cls(lat=coordinate.lat, lng=coordinate.lng)
