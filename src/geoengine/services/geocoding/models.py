"""Geocoding result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ...models.domain import Coordinate


@dataclass(frozen=True, slots=True)
class GeocodeMatch:
    coordinate: Coordinate
    display_name: Optional[str] = None
    place_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ReverseGeocodeResult:
    formatted_address: str
    place_id: Optional[str] = None
    components: dict = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CachedGeocode:
    """Value stored in the geocode cache."""

    coordinate: Coordinate
    formatted_address: Optional[str] = None
