import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from src.geoengine.models.domain import Coordinate
from src.geoengine.services.geocoding.cache import GeocodeCache, normalize_address
from src.geoengine.services.geocoding.models import CachedGeocode


def test_normalize_address_trims_and_casefolds():
    assert normalize_address("  123  Main   St ") == "123 main st"
    assert normalize_address("STRASSE") == normalize_address("straße")


def test_get_and_put_use_normalized_keys():
    cache = GeocodeCache()
    cache.put("123 Main St", Coordinate(10.0, 20.0), "123 Main Street, Springfield")

    assert cache.get("  123 main st") == Coordinate(10.0, 20.0)
    assert cache.get_entry("123 MAIN ST").formatted_address == "123 Main Street, Springfield"
    assert "123 main st" in cache
    assert cache.get("456 Elm St") is None
    assert len(cache) == 1


def test_get_or_load_calls_loader_once():
    cache = GeocodeCache()
    calls = []

    def loader():
        calls.append(1)
        return CachedGeocode(coordinate=Coordinate(1.0, 2.0))

    first = cache.get_or_load("Main St", loader)
    second = cache.get_or_load("main st", loader)

    assert first is second
    assert len(calls) == 1
    assert cache.stats()["hits"] == 1
    assert cache.stats()["misses"] == 1


def test_concurrent_loads_share_one_call():
    cache = GeocodeCache()
    calls = []
    release = threading.Event()

    def loader():
        calls.append(1)
        release.wait(timeout=5)
        return CachedGeocode(coordinate=Coordinate(3.0, 4.0))

    with ThreadPoolExecutor(max_workers=4) as executor:
        futures = [executor.submit(cache.get_or_load, "1 Shared Rd", loader) for _ in range(4)]
        time.sleep(0.1)
        release.set()
        results = [future.result(timeout=5) for future in futures]

    assert len(calls) == 1
    assert all(result.coordinate == Coordinate(3.0, 4.0) for result in results)


def test_failed_load_is_not_cached():
    cache = GeocodeCache()

    def failing():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        cache.get_or_load("Nowhere", failing)

    entry = cache.get_or_load("Nowhere", lambda: CachedGeocode(coordinate=Coordinate(5.0, 6.0)))
    assert entry.coordinate == Coordinate(5.0, 6.0)


def test_lru_bound_evicts_least_recently_used():
    cache = GeocodeCache(max_entries=2)
    cache.put("a street", Coordinate(1, 1))
    cache.put("b street", Coordinate(2, 2))
    assert cache.get("a street") is not None  # refresh "a"
    cache.put("c street", Coordinate(3, 3))

    assert cache.get("b street") is None
    assert cache.get("a street") == Coordinate(1, 1)
    assert cache.get("c street") == Coordinate(3, 3)


def test_clear_empties_cache():
    cache = GeocodeCache()
    cache.put("x road", Coordinate(0, 0))
    cache.clear()

    assert len(cache) == 0
