"""Resolve addresses or coordinates to coordinates."""

from __future__ import annotations

import logging

from ...config import settings
from ...errors import (
    AddressNotFound,
    AddressTooShort,
    EmptyAddress,
    GeocodeFailed,
    InvalidCoordinate,
    ServiceFailure,
)
from ...models.domain import AddressText, Coordinate, Location
from .cache import GeocodeCache
from .models import CachedGeocode, GeocodeMatch, ReverseGeocodeResult
from .nominatim_client import Geocoder

logger = logging.getLogger(__name__)


class AddressResolver:
    """Turns a ``Coordinate | AddressText`` into a Coordinate.

    Failures are always typed; a default coordinate is never substituted.
    """

    def __init__(
        self,
        geocoder: Geocoder,
        cache: GeocodeCache | None = None,
        min_address_length: int | None = None,
    ) -> None:
        self.geocoder = geocoder
        self.cache = cache if cache is not None else GeocodeCache()
        self.min_address_length = (
            min_address_length if min_address_length is not None else settings.min_address_length
        )

    def resolve(self, location: Location | str) -> Coordinate:
        if isinstance(location, Coordinate):
            if not location.is_valid:
                raise InvalidCoordinate(location.lat, location.lng)
            return location
        if isinstance(location, AddressText):
            return self.resolve_text(location.text)
        if isinstance(location, str):
            return self.resolve_text(location)
        raise TypeError(f"Cannot resolve location of type {type(location).__name__}")

    def resolve_text(self, address: str) -> Coordinate:
        return self._resolve_entry(address).coordinate

    def resolve_match(self, address: str) -> GeocodeMatch:
        """Resolve ``address`` keeping the formatted address reported by the geocoder."""

        entry = self._resolve_entry(address)
        return GeocodeMatch(coordinate=entry.coordinate, display_name=entry.formatted_address)

    def reverse(self, coordinate: Coordinate) -> ReverseGeocodeResult:
        if not coordinate.is_valid:
            raise InvalidCoordinate(coordinate.lat, coordinate.lng)
        return self.geocoder.reverse(coordinate.lat, coordinate.lng)

    def suggest(self, query: str, limit: int | None = None) -> list[GeocodeMatch]:
        """Autocomplete candidates for a partially typed address."""

        text = (query or "").strip()
        if len(text) < self.min_address_length:
            return []
        return self.geocoder.search(text, limit=limit or settings.suggestion_limit)

    def _validate_text(self, address: str | None) -> str:
        text = (address or "").strip()
        if not text:
            raise EmptyAddress()
        if len(text) < self.min_address_length:
            raise AddressTooShort(text, self.min_address_length)
        return text

    def _resolve_entry(self, address: str) -> CachedGeocode:
        text = self._validate_text(address)
        return self.cache.get_or_load(text, lambda: self._geocode(text))

    def _geocode(self, text: str) -> CachedGeocode:
        try:
            matches = self.geocoder.search(text, limit=1)
        except ServiceFailure as exc:
            logger.warning(f"Geocoding service failure for '{text}': {exc}")
            raise GeocodeFailed(text, exc) from exc
        except Exception as exc:
            logger.warning(f"Geocoder raised unexpectedly for '{text}': {exc!r}")
            raise GeocodeFailed(text, exc) from exc

        if not matches:
            raise GeocodeFailed(text, AddressNotFound(text))

        best = matches[0]
        if not best.coordinate.is_valid:
            error = InvalidCoordinate(best.coordinate.lat, best.coordinate.lng, "returned by geocoder")
            raise GeocodeFailed(text, error)

        logger.info(f"Geocoded '{text}' to ({best.coordinate.lat:.6f}, {best.coordinate.lng:.6f})")
        return CachedGeocode(coordinate=best.coordinate, formatted_address=best.display_name)
