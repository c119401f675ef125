import httpx
import pytest

from src.geoengine.errors import GeocodingServiceError
from src.geoengine.models.domain import Coordinate
from src.geoengine.services.geocoding.nominatim_client import NominatimClient


def _client(handler, max_retries=0):
    return NominatimClient(
        base_url="https://geocoder.test",
        user_agent="TestAgent/1.0",
        max_retries=max_retries,
        backoff_seconds=0.0,
        transport=httpx.MockTransport(handler),
    )


def test_search_parses_matches_and_sends_user_agent():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["agent"] = request.headers["User-Agent"]
        return httpx.Response(
            200,
            json=[{"lat": "52.5163", "lon": "13.3777", "display_name": "Brandenburger Tor", "place_id": 99}],
        )

    matches = _client(handler).search("Brandenburger Tor", limit=1)

    assert matches[0].coordinate == Coordinate(52.5163, 13.3777)
    assert matches[0].display_name == "Brandenburger Tor"
    assert matches[0].place_id == "99"
    assert seen["path"] == "/search"
    assert seen["params"]["q"] == "Brandenburger Tor"
    assert seen["params"]["limit"] == "1"
    assert seen["agent"] == "TestAgent/1.0"


def test_search_empty_result_means_not_found():
    matches = _client(lambda request: httpx.Response(200, json=[])).search("nowhere at all")

    assert matches == []


def test_search_server_error_is_service_failure_after_retry():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503, text="busy")

    with pytest.raises(GeocodingServiceError):
        _client(handler, max_retries=1).search("1 Main St")

    assert len(calls) == 2


def test_search_recovers_on_retry():
    responses = iter([httpx.Response(502), httpx.Response(200, json=[{"lat": "1", "lon": "2"}])])

    matches = _client(lambda request: next(responses), max_retries=1).search("1 Main St")

    assert matches[0].coordinate == Coordinate(1.0, 2.0)


def test_search_malformed_payload_is_service_failure():
    with pytest.raises(GeocodingServiceError):
        _client(lambda request: httpx.Response(200, json={"unexpected": True})).search("1 Main St")

    with pytest.raises(GeocodingServiceError):
        _client(lambda request: httpx.Response(200, text="<html>")).search("1 Main St")

    with pytest.raises(GeocodingServiceError):
        _client(lambda request: httpx.Response(200, json=[{"lat": "abc", "lon": "2"}])).search("1 Main St")


def test_network_error_is_service_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GeocodingServiceError):
        _client(handler).search("1 Main St")


def test_reverse_returns_formatted_address():
    def handler(request):
        assert request.url.path == "/reverse"
        return httpx.Response(
            200,
            json={"display_name": "1 Main St, Town", "place_id": 5, "address": {"road": "Main St"}},
        )

    result = _client(handler).reverse(1.0, 2.0)

    assert result.formatted_address == "1 Main St, Town"
    assert result.place_id == "5"
    assert result.components == {"road": "Main St"}


def test_reverse_not_found_is_service_failure():
    with pytest.raises(GeocodingServiceError):
        _client(lambda request: httpx.Response(200, json={"error": "Unable to geocode"})).reverse(0.0, 0.0)
