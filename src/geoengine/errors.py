"""Typed failures raised by the geo engine."""

from __future__ import annotations


class GeoEngineError(Exception):
    """Base class for every failure the engine raises."""


# Invalid input: rejected before any network call, never retried.


class InvalidInput(GeoEngineError, ValueError):
    pass


class InvalidCoordinate(InvalidInput):
    def __init__(self, lat: object, lng: object, detail: str | None = None) -> None:
        self.lat = lat
        self.lng = lng
        message = f"Invalid coordinate lat={lat!r}, lng={lng!r}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class EmptyAddress(InvalidInput):
    def __init__(self) -> None:
        super().__init__("Address is empty.")


class AddressTooShort(InvalidInput):
    def __init__(self, address: str, min_length: int) -> None:
        self.address = address
        self.min_length = min_length
        super().__init__(f"Address '{address}' is shorter than {min_length} characters.")


class NoDestinations(InvalidInput):
    def __init__(self) -> None:
        super().__init__("No destinations with a usable address or coordinate were provided.")


# Service failures: surfaced to the immediate caller, which decides the policy.


class ServiceFailure(GeoEngineError):
    pass


class GeocodingServiceError(ServiceFailure):
    """The geocoding service could not be reached or answered with an error."""


class AddressNotFound(ServiceFailure):
    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"Address not found: '{address}'")


class GeocodeFailed(ServiceFailure):
    """Resolution of an address failed; ``cause`` holds the underlying failure."""

    def __init__(self, address: str, cause: BaseException) -> None:
        self.address = address
        self.cause = cause
        super().__init__(f"Geocoding failed for '{address}': {cause}")


class IPGeolocationError(ServiceFailure):
    pass


# Sensor failures: always fall through to the next location tier.


class SensorFailure(GeoEngineError):
    reason = "sensor_failure"


class PermissionDenied(SensorFailure):
    reason = "permission_denied"


class Unavailable(SensorFailure):
    reason = "unavailable"


class SensorTimeout(SensorFailure):
    reason = "timeout"
