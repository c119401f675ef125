"""Process-wide memo of geocoded addresses."""

from __future__ import annotations

import logging
import re
import threading
from collections import OrderedDict
from concurrent.futures import Future
from typing import Callable, Optional

from ...models.domain import Coordinate
from .models import CachedGeocode

_WHITESPACE = re.compile(r"\s+")

logger = logging.getLogger(__name__)


def normalize_address(address: str) -> str:
    """Cache key for an address: trimmed, case-folded, inner whitespace collapsed."""

    return _WHITESPACE.sub(" ", address.strip()).casefold()


class GeocodeCache:
    """Thread-safe address -> coordinate cache.

    Entries never expire; addresses are assumed geocode-stable for the life of
    the process. ``max_entries`` turns on least-recently-used eviction.
    ``get_or_load`` is single-flight: concurrent loads of one key share a
    single loader call.
    """

    def __init__(self, max_entries: int | None = None) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1.")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, CachedGeocode] = OrderedDict()
        self._inflight: dict[str, Future] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, address: object) -> bool:
        if not isinstance(address, str):
            return False
        with self._lock:
            return normalize_address(address) in self._entries

    def get(self, address: str) -> Optional[Coordinate]:
        entry = self.get_entry(address)
        return entry.coordinate if entry else None

    def get_entry(self, address: str) -> Optional[CachedGeocode]:
        key = normalize_address(address)
        with self._lock:
            return self._lookup(key)

    def put(self, address: str, coordinate: Coordinate, formatted_address: str | None = None) -> None:
        key = normalize_address(address)
        with self._lock:
            self._store(key, CachedGeocode(coordinate=coordinate, formatted_address=formatted_address))

    def get_or_load(self, address: str, loader: Callable[[], CachedGeocode]) -> CachedGeocode:
        """Return the cached entry or run ``loader`` once to populate it.

        Failures are propagated to every waiting caller and are not cached.
        """

        key = normalize_address(address)
        with self._lock:
            cached = self._lookup(key)
            if cached is not None:
                self.hits += 1
                return cached
            pending = self._inflight.get(key)
            owner = pending is None
            if owner:
                pending = Future()
                self._inflight[key] = pending
                self.misses += 1

        if not owner:
            logger.debug(f"Waiting on in-flight geocode for '{key}'")
            return pending.result()

        try:
            entry = loader()
        except BaseException as exc:
            with self._lock:
                self._inflight.pop(key, None)
            pending.set_exception(exc)
            raise

        with self._lock:
            self._store(key, entry)
            self._inflight.pop(key, None)
        pending.set_result(entry)
        return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> dict:
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self.hits,
                "misses": self.misses,
                "in_flight": len(self._inflight),
                "max_entries": self.max_entries,
            }

    def _lookup(self, key: str) -> Optional[CachedGeocode]:
        entry = self._entries.get(key)
        if entry is not None and self.max_entries is not None:
            self._entries.move_to_end(key)
        return entry

    def _store(self, key: str, entry: CachedGeocode) -> None:
        self._entries[key] = entry
        self._entries.move_to_end(key)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted geocode cache entry '{evicted}'")
