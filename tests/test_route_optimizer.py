import pytest

from src.geoengine.errors import (
    AddressNotFound,
    GeocodeFailed,
    GeocodingServiceError,
    InvalidInput,
    NoDestinations,
)
from src.geoengine.models.domain import AddressText, Coordinate, Destination
from src.geoengine.services.geocoding.models import GeocodeMatch
from src.geoengine.services.geocoding.resolver import AddressResolver
from src.geoengine.services.geospatial import haversine_m
from src.geoengine.services.routing.estimator import RouteEstimator
from src.geoengine.services.routing.optimizer import RouteOptimizer

ORIGIN = Coordinate(0.0, 0.0)


class DummyGeocoder:
    def __init__(self, coordinates=None, failing=()):
        self.coordinates = coordinates or {}
        self.failing = set(failing)
        self.calls = []

    def search(self, text, limit=1):
        self.calls.append(text)
        if text in self.failing:
            raise GeocodingServiceError("503 Service Unavailable")
        coordinate = self.coordinates.get(text)
        return [GeocodeMatch(coordinate=coordinate)] if coordinate else []

    def reverse(self, lat, lng):
        raise NotImplementedError


def _optimizer(geocoder=None, max_workers=1):
    resolver = AddressResolver(geocoder or DummyGeocoder())
    return RouteOptimizer(resolver, estimator=RouteEstimator(duration_factor=1.5), max_workers=max_workers)


def _stop(stop_id, location):
    return Destination(id=stop_id, location=location, display_name=f"Stop {stop_id}")


def test_nearest_neighbor_order_for_preresolved_stops():
    destinations = [
        _stop("A", Coordinate(0, 1)),
        _stop("C", Coordinate(0, 3)),
        _stop("B", Coordinate(0, 2)),
    ]
    geocoder = DummyGeocoder()

    result = _optimizer(geocoder).optimize(ORIGIN, destinations)

    assert [d.id for d in result.ordered_destinations] == ["A", "B", "C"]
    assert result.waypoints == (ORIGIN, Coordinate(0, 1), Coordinate(0, 2), Coordinate(0, 3))
    expected = haversine_m(0, 0, 0, 1) + haversine_m(0, 1, 0, 2) + haversine_m(0, 2, 0, 3)
    assert result.total_distance_meters == pytest.approx(expected)
    assert result.total_duration_minutes == pytest.approx(expected / 1000 * 1.5)
    assert result.failed_destinations == ()
    assert geocoder.calls == []


def test_ties_keep_input_order():
    destinations = [
        _stop("east", Coordinate(0, 1)),
        _stop("west", Coordinate(0, -1)),
        _stop("north", Coordinate(1, 0)),
    ]

    result = _optimizer().optimize(ORIGIN, destinations)

    assert result.ordered_destinations[0].id == "east"


def test_service_failure_is_recorded_not_fatal():
    geocoder = DummyGeocoder(
        coordinates={"1 First St": Coordinate(0, 1), "3 Third St": Coordinate(0, 3)},
        failing={"2 Second St"},
    )
    destinations = [
        _stop("1", AddressText("1 First St")),
        _stop("2", AddressText("2 Second St")),
        _stop("3", AddressText("3 Third St")),
    ]

    result = _optimizer(geocoder).optimize(ORIGIN, destinations)

    assert [d.id for d in result.ordered_destinations] == ["1", "3"]
    assert len(result.failed_destinations) == 1
    failure = result.failed_destinations[0]
    assert failure.destination.id == "2"
    assert isinstance(failure.reason, GeocodeFailed)
    assert isinstance(failure.reason.cause, GeocodingServiceError)


def test_single_unresolvable_destination():
    result = _optimizer().optimize(ORIGIN, [_stop("x", AddressText("Nowhere Lane"))])

    assert result.ordered_destinations == ()
    assert len(result.failed_destinations) == 1
    assert isinstance(result.failed_destinations[0].reason.cause, AddressNotFound)
    assert result.waypoints == (ORIGIN,)
    assert result.total_distance_meters == 0


def test_empty_destinations_is_invalid_input():
    with pytest.raises(InvalidInput):
        _optimizer().optimize(ORIGIN, [])


def test_blank_addresses_are_filtered_not_failed():
    destinations = [
        _stop("blank", AddressText("   ")),
        _stop("none", None),
        _stop("real", Coordinate(0, 1)),
    ]

    result = _optimizer().optimize(ORIGIN, destinations)

    assert [d.id for d in result.ordered_destinations] == ["real"]
    assert result.failed_destinations == ()


def test_only_blank_addresses_is_no_destinations():
    with pytest.raises(NoDestinations):
        _optimizer().optimize(ORIGIN, [_stop("blank", AddressText(""))])


def test_missing_origin_is_invalid_input():
    with pytest.raises(InvalidInput):
        _optimizer().optimize(None, [_stop("a", Coordinate(0, 1))])


def test_invariants_hold_with_mixed_input():
    geocoder = DummyGeocoder(coordinates={"Good Road": Coordinate(1, 1)}, failing={"Bad Road"})
    destinations = [
        _stop("1", AddressText("Good Road")),
        _stop("2", AddressText("Bad Road")),
        _stop("3", AddressText("ab")),
        _stop("4", Coordinate(2, 2)),
        _stop("5", None),
    ]

    result = _optimizer(geocoder).optimize(ORIGIN, destinations)

    assert len(result.ordered_destinations) + len(result.failed_destinations) == 4
    assert len(result.waypoints) == len(result.ordered_destinations) + 1
    assert result.total_distance_meters >= 0
    assert {f.destination.id for f in result.failed_destinations} == {"2", "3"}


def test_repeat_optimization_is_deterministic_and_uses_cache():
    coordinates = {f"{n} Loop Rd": Coordinate(0.5 * n, 0.25 * (n % 3)) for n in range(1, 7)}
    geocoder = DummyGeocoder(coordinates=coordinates)
    optimizer = _optimizer(geocoder, max_workers=4)
    destinations = [_stop(str(n), AddressText(address)) for n, address in enumerate(coordinates, start=1)]

    first = optimizer.optimize(ORIGIN, destinations)
    calls_after_first = len(geocoder.calls)
    second = optimizer.optimize(ORIGIN, destinations)

    assert [d.id for d in first.ordered_destinations] == [d.id for d in second.ordered_destinations]
    assert first.total_distance_meters == second.total_distance_meters
    assert first.total_duration_minutes == second.total_duration_minutes
    assert calls_after_first == len(coordinates)
    assert len(geocoder.calls) == calls_after_first


def test_destinations_are_not_mutated():
    destinations = [Destination(id="a", location=Coordinate(0, 1), status="assigned")]

    result = _optimizer().optimize(ORIGIN, destinations)

    assert result.ordered_destinations[0] is destinations[0]
    assert result.ordered_destinations[0].status == "assigned"


class ExplodingGeocoder(DummyGeocoder):
    def __init__(self, coordinates, exploding):
        super().__init__(coordinates=coordinates)
        self.exploding = set(exploding)

    def search(self, text, limit=1):
        if text in self.exploding:
            raise RuntimeError("boom")
        return super().search(text, limit=limit)


def test_unexpected_geocoder_error_is_recorded_not_fatal():
    geocoder = ExplodingGeocoder(coordinates={"1 First St": Coordinate(0, 1)}, exploding={"2 Second St"})
    destinations = [
        _stop("1", AddressText("1 First St")),
        _stop("2", AddressText("2 Second St")),
    ]

    result = _optimizer(geocoder, max_workers=2).optimize(ORIGIN, destinations)

    assert [d.id for d in result.ordered_destinations] == ["1"]
    assert len(result.failed_destinations) == 1
    failure = result.failed_destinations[0]
    assert failure.destination.id == "2"
    assert isinstance(failure.reason, GeocodeFailed)
    assert isinstance(failure.reason.cause, RuntimeError)


class PassthroughResolver:
    """Hands coordinates back untouched, including ones no distance can be computed for."""

    def resolve(self, location):
        return location


def test_unreachable_stops_are_appended_in_input_order():
    nan_a = Coordinate(float("nan"), 0.0)
    nan_b = Coordinate(0.0, float("nan"))
    stops = [
        (_stop("x", nan_a), nan_a),
        (_stop("near", Coordinate(0, 1)), Coordinate(0, 1)),
        (_stop("y", nan_b), nan_b),
    ]
    optimizer = RouteOptimizer(PassthroughResolver(), estimator=RouteEstimator(duration_factor=1.5), max_workers=1)

    ordered = optimizer._nearest_neighbor(ORIGIN, stops)

    assert [destination.id for destination, _ in ordered] == ["near", "x", "y"]


def test_unreachable_stops_keep_result_invariants():
    optimizer = RouteOptimizer(PassthroughResolver(), estimator=RouteEstimator(duration_factor=1.5), max_workers=1)
    destinations = [
        _stop("x", Coordinate(float("nan"), 0.0)),
        _stop("near", Coordinate(0, 1)),
        _stop("y", Coordinate(float("inf"), 0.0)),
        _stop("skip", None),
    ]

    result = optimizer.optimize(ORIGIN, destinations)

    assert [d.id for d in result.ordered_destinations] == ["near", "x", "y"]
    assert len(result.ordered_destinations) + len(result.failed_destinations) == 3
    assert len(result.waypoints) == len(result.ordered_destinations) + 1
    assert result.total_distance_meters == pytest.approx(haversine_m(0, 0, 0, 1))
