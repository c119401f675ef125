"""Hand-off links for external turn-by-turn navigation apps."""

from __future__ import annotations

from typing import Sequence
from urllib.parse import quote, urlencode

from ...models.domain import Coordinate


def _pair(point: Coordinate) -> str:
    return f"{point.lat},{point.lng}"


def google_maps_directions_url(origin: Coordinate, stops: Sequence[Coordinate]) -> str:
    """Multi-stop Google Maps directions, visiting ``stops`` in the given order."""

    if not stops:
        raise ValueError("At least one stop is required for directions.")
    path = "/".join(_pair(point) for point in (origin, *stops))
    return f"https://www.google.com/maps/dir/{path}"


def apple_maps_url(origin: Coordinate, target: Coordinate) -> str:
    return f"https://maps.apple.com/?{urlencode({'daddr': _pair(target), 'saddr': _pair(origin)})}"


def waze_url(target: Coordinate) -> str:
    return f"https://www.waze.com/ul?ll={quote(_pair(target))}&navigate=yes"


def osm_directions_url(origin: Coordinate, target: Coordinate) -> str:
    route = quote(f"{_pair(origin)};{_pair(target)}")
    return f"https://www.openstreetmap.org/directions?engine=fossgis_osrm_car&route={route}"


def navigation_links(origin: Coordinate, stops: Sequence[Coordinate]) -> dict[str, str]:
    """All supported links; single-target apps point at the first stop."""

    first = stops[0] if stops else None
    if first is None:
        raise ValueError("At least one stop is required for directions.")
    return {
        "google": google_maps_directions_url(origin, stops),
        "apple": apple_maps_url(origin, first),
        "waze": waze_url(first),
        "osm": osm_directions_url(origin, first),
    }
