"""Current-location services."""

from .ip_geolocation import IPGeolocationClient, IPProvider, providers_from_names
from .models import PositionRequest, SensorReading
from .resolver import LocationResolver
from .sensor import LocationSensor, ReportedPositionSensor

__all__ = [
    "IPGeolocationClient",
    "IPProvider",
    "LocationResolver",
    "LocationSensor",
    "PositionRequest",
    "ReportedPositionSensor",
    "SensorReading",
    "providers_from_names",
]
