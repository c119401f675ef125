import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from src.geoengine.errors import (
    IPGeolocationError,
    PermissionDenied,
    SensorTimeout,
    Unavailable,
)
from src.geoengine.models.domain import Confidence, Coordinate
from src.geoengine.services.location.models import PositionRequest, SensorReading
from src.geoengine.services.location.resolver import LocationResolver
from src.geoengine.services.location.sensor import ReportedPositionSensor

DEFAULT = Coordinate(40.7128, -74.006)


class DummySensor:
    def __init__(self, precise=None, approximate=None, error=None):
        self.precise = precise
        self.approximate = approximate
        self.error = error
        self.requests = []

    def get_position(self, request):
        self.requests.append(request)
        reading = self.precise if request.high_accuracy else self.approximate
        if reading is None:
            raise self.error or Unavailable("no fix")
        return reading


class DummyIP:
    def __init__(self, coordinate=None, error=None):
        self.coordinate = coordinate
        self.error = error
        self.calls = 0

    def lookup(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.coordinate


def _resolver(sensor=None, ip_services=()):
    return LocationResolver(
        sensor=sensor,
        ip_services=ip_services,
        default_location=DEFAULT,
        sensor_timeout_seconds=10.0,
        sensor_max_age_seconds=300.0,
        ip_accuracy_meters=50_000.0,
    )


def test_precise_tier_wins():
    sensor = DummySensor(precise=SensorReading(lat=1.0, lng=2.0, accuracy_meters=8.0))
    ip = DummyIP(Coordinate(5.0, 5.0))

    location = _resolver(sensor, [ip]).resolve_current_location()

    assert location.confidence is Confidence.PRECISE
    assert location.coordinate == Coordinate(1.0, 2.0)
    assert location.accuracy_meters == 8.0
    assert ip.calls == 0
    assert sensor.requests[0] == PositionRequest(high_accuracy=True, timeout_seconds=10.0, max_age_seconds=300.0)


def test_approximate_tier_after_precise_failure():
    sensor = DummySensor(
        approximate=SensorReading(lat=3.0, lng=4.0, accuracy_meters=900.0, high_accuracy=False),
        error=SensorTimeout("slow"),
    )

    location = _resolver(sensor).resolve_current_location()

    assert location.confidence is Confidence.APPROXIMATE
    assert location.accuracy_meters == 900.0


def test_degrades_precise_to_ip_to_default():
    ip = DummyIP(Coordinate(48.85, 2.35))
    sensor = DummySensor(error=PermissionDenied("denied"))
    resolver = _resolver(sensor, [ip])

    location = resolver.resolve_current_location()
    assert location.confidence is Confidence.IP_BASED
    assert location.accuracy_meters == 50_000.0
    assert isinstance(resolver.last_sensor_error, PermissionDenied)

    ip.error = IPGeolocationError("down")
    location = resolver.resolve_current_location()
    assert location.confidence is Confidence.DEFAULT
    assert location.coordinate == DEFAULT
    assert location.is_default


def test_ip_services_are_tried_in_order():
    first = DummyIP(error=IPGeolocationError("first down"))
    second = DummyIP(Coordinate(10.0, 10.0))
    third = DummyIP(Coordinate(20.0, 20.0))

    location = _resolver(None, [first, second, third]).resolve_current_location()

    assert location.coordinate == Coordinate(10.0, 10.0)
    assert (first.calls, second.calls, third.calls) == (1, 1, 0)


def test_never_raises_on_unexpected_collaborator_errors():
    class ExplodingSensor:
        def get_position(self, request):
            raise RuntimeError("driver crashed")

    ip = DummyIP(error=KeyError("lat"))

    location = _resolver(ExplodingSensor(), [ip]).resolve_current_location()

    assert location.confidence is Confidence.DEFAULT


def test_each_resolution_is_a_fresh_instance():
    resolver = _resolver()

    first = resolver.resolve_current_location()
    second = resolver.resolve_current_location()

    assert first is not second
    assert first.coordinate == second.coordinate


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now


def test_reported_sensor_serves_fresh_fix():
    clock = FakeClock()
    sensor = ReportedPositionSensor(clock=clock)
    sensor.report(1.0, 2.0, 5.0)

    reading = sensor.get_position(PositionRequest(timeout_seconds=0.01))

    assert (reading.lat, reading.lng, reading.accuracy_meters) == (1.0, 2.0, 5.0)


def test_reported_sensor_failure_causes():
    clock = FakeClock()
    sensor = ReportedPositionSensor(clock=clock)

    with pytest.raises(Unavailable):
        sensor.get_position(PositionRequest(timeout_seconds=0.01))

    sensor.report(1.0, 2.0)
    clock.now += timedelta(minutes=6)
    with pytest.raises(SensorTimeout):
        sensor.get_position(PositionRequest(timeout_seconds=0.01, max_age_seconds=300))

    sensor.deny()
    with pytest.raises(PermissionDenied):
        sensor.get_position(PositionRequest(timeout_seconds=0.01))


def test_reported_sensor_low_accuracy_fix_only_serves_approximate_requests():
    sensor = ReportedPositionSensor(clock=FakeClock())
    sensor.report(1.0, 2.0, 2_000.0, high_accuracy=False)

    with pytest.raises(SensorTimeout):
        sensor.get_position(PositionRequest(high_accuracy=True, timeout_seconds=0.01))
    assert sensor.get_position(PositionRequest(high_accuracy=False, timeout_seconds=0.01)).lat == 1.0


def test_reported_sensor_waits_for_fresh_report():
    clock = FakeClock()
    sensor = ReportedPositionSensor(clock=clock)
    sensor.report(1.0, 2.0)
    clock.now += timedelta(minutes=10)

    def report_later():
        time.sleep(0.05)
        sensor.report(3.0, 4.0)

    thread = threading.Thread(target=report_later)
    thread.start()
    reading = sensor.get_position(PositionRequest(timeout_seconds=2.0, max_age_seconds=300))
    thread.join()

    assert (reading.lat, reading.lng) == (3.0, 4.0)
