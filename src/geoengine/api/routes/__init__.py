"""Route group exports."""

from . import geocoding, health, location, routes, tracking

__all__ = ["geocoding", "routes", "health", "location", "tracking"]
