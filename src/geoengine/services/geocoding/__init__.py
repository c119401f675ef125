"""Geocoding services."""

from .cache import GeocodeCache, normalize_address
from .nominatim_client import Geocoder, NominatimClient
from .resolver import AddressResolver

__all__ = [
    "AddressResolver",
    "GeocodeCache",
    "Geocoder",
    "NominatimClient",
    "normalize_address",
]
