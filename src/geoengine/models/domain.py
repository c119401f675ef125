"""Domain models for coordinates, resolved locations and delivery destinations."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from ..errors import InvalidCoordinate

# Order fields consulted, in order, when choosing a destination address.
ADDRESS_PRECEDENCE: tuple[str, ...] = ("dropAddress", "deliveryAddress", "pickupAddress")
COORDINATE_FIELDS: tuple[str, ...] = ("dropCoords", "deliveryCoords")


def is_valid_coordinate(lat: Any, lng: Any) -> bool:
    """Return True when lat/lng are finite numbers inside the WGS84 ranges."""

    if isinstance(lat, bool) or isinstance(lng, bool):
        return False
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return False
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS84 point. Equality is exact."""

    lat: float
    lng: float

    @classmethod
    def validated(cls, lat: Any, lng: Any) -> "Coordinate":
        """Build a coordinate, coercing numeric strings and rejecting out-of-range values."""

        try:
            lat_value = float(lat)
            lng_value = float(lng)
        except (TypeError, ValueError) as exc:
            raise InvalidCoordinate(lat, lng, "not numeric") from exc
        if not is_valid_coordinate(lat_value, lng_value):
            raise InvalidCoordinate(lat, lng, "out of range")
        return cls(lat=lat_value, lng=lng_value)

    @property
    def is_valid(self) -> bool:
        return is_valid_coordinate(self.lat, self.lng)

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lng)


@dataclass(frozen=True, slots=True)
class AddressText:
    """Free-text address awaiting geocoding."""

    text: str

    @property
    def is_blank(self) -> bool:
        return not self.text or not self.text.strip()


Location = Union[Coordinate, AddressText]


class Confidence(str, Enum):
    """Provenance tier of a resolved location, best first."""

    PRECISE = "precise"
    APPROXIMATE = "approximate"
    IP_BASED = "ip-based"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class ResolvedLocation:
    """Result of one current-location resolution attempt."""

    coordinate: Coordinate
    confidence: Confidence
    accuracy_meters: Optional[float] = None
    source: Optional[str] = None
    resolved_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def lat(self) -> float:
        return self.coordinate.lat

    @property
    def lng(self) -> float:
        return self.coordinate.lng

    @property
    def is_default(self) -> bool:
        return self.confidence is Confidence.DEFAULT

    @property
    def is_approximate(self) -> bool:
        return self.confidence in (Confidence.APPROXIMATE, Confidence.IP_BASED)


@dataclass(frozen=True, slots=True)
class Destination:
    """A stop to visit. Identity is ``id``; ``status`` is carried through untouched."""

    id: str
    location: Optional[Location]
    display_name: str = ""
    status: Optional[str] = None

    @property
    def has_location(self) -> bool:
        if self.location is None:
            return False
        if isinstance(self.location, AddressText):
            return not self.location.is_blank
        return True


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _coordinate_field(value: Any) -> Optional[Coordinate]:
    if value is None:
        return None
    if isinstance(value, Coordinate):
        return value
    lat = _field(value, "lat")
    lng = _field(value, "lng")
    if lng is None:
        lng = _field(value, "lon")
    if lat is None or lng is None:
        return None
    try:
        return Coordinate.validated(lat, lng)
    except InvalidCoordinate:
        return None


def destination_from_order(order: Any) -> Destination:
    """Convert an order record (mapping or object) into a Destination.

    Coordinates already attached to the order win; otherwise the first
    non-blank field of ``ADDRESS_PRECEDENCE`` is used.
    """

    order_id = _field(order, "id") or _field(order, "_id")
    if order_id is None or str(order_id).strip() == "":
        raise ValueError("Order record has no id.")

    location: Optional[Location] = None
    for name in COORDINATE_FIELDS:
        coordinate = _coordinate_field(_field(order, name))
        if coordinate is not None:
            location = coordinate
            break

    address_text: Optional[str] = None
    for name in ADDRESS_PRECEDENCE:
        value = _field(order, name)
        if isinstance(value, str) and value.strip():
            address_text = value.strip()
            break
    if location is None and address_text is not None:
        location = AddressText(address_text)

    customer = _field(order, "customer")
    display_name = (
        _field(order, "customerName")
        or (_field(customer, "name") if customer is not None else None)
        or address_text
        or str(order_id)
    )
    return Destination(
        id=str(order_id),
        location=location,
        display_name=str(display_name),
        status=_field(order, "status"),
    )
