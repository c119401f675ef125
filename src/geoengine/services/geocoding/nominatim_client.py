"""HTTP client for the OpenStreetMap Nominatim geocoding service."""

from __future__ import annotations

import logging
import time
from typing import Any, Protocol

import httpx

from ...config import settings
from ...errors import GeocodingServiceError, InvalidCoordinate
from ...models.domain import Coordinate
from .models import GeocodeMatch, ReverseGeocodeResult

logger = logging.getLogger(__name__)


class Geocoder(Protocol):
    """Geocoding collaborator.

    ``search`` returns an empty list when nothing matches and raises
    ``GeocodingServiceError`` when the service itself fails.
    """

    def search(self, text: str, limit: int = 1) -> list[GeocodeMatch]: ...

    def reverse(self, lat: float, lng: float) -> ReverseGeocodeResult: ...


class NominatimClient:
    def __init__(
        self,
        base_url: str | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.nominatim_base_url).rstrip("/")
        if not self.base_url:
            raise ValueError("Geocoding base URL is not configured.")
        self.user_agent = user_agent or settings.geocoder_user_agent
        self.timeout = timeout if timeout is not None else settings.geocoder_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.geocoder_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.geocoder_backoff_seconds
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
            headers={"User-Agent": self.user_agent, "Accept": "application/json"},
            transport=self._transport,
        )

    def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        """GET ``path`` with bounded retry; every failure ends as ``GeocodingServiceError``."""

        url = f"{self.base_url}/{path}"
        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(url, params=params)
                    response.raise_for_status()
                    return response.json()
                except httpx.HTTPStatusError as e:
                    status_code = e.response.status_code
                    # Client errors other than rate limiting will not improve on retry
                    if 400 <= status_code < 500 and status_code != 429:
                        raise GeocodingServiceError(
                            f"Geocoding service rejected request ({status_code}) for {url}"
                        ) from e
                    attempt += 1
                    if attempt > self.max_retries:
                        raise GeocodingServiceError(
                            f"Geocoding service unavailable ({status_code}) after {attempt} attempts"
                        ) from e
                    time.sleep(self.backoff_seconds * attempt)
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"Geocoding request timed out after {attempt} attempts: {e}")
                        raise GeocodingServiceError(f"Geocoding request timed out: {e}") from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Geocoding timeout, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
                except (httpx.NetworkError, OSError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise GeocodingServiceError(
                            f"Failed to connect to geocoding service at {self.base_url}: {e}"
                        ) from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Geocoding network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries}): {e}")
                    time.sleep(wait_time)
                except ValueError as e:
                    # Body was not JSON; retrying will not change it
                    raise GeocodingServiceError(f"Geocoding service returned a malformed payload: {e}") from e
                except httpx.HTTPError as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        raise GeocodingServiceError(f"Geocoding request failed: {e}") from e
                    time.sleep(self.backoff_seconds * attempt)
        finally:
            client.close()

    def search(self, text: str, limit: int = 1) -> list[GeocodeMatch]:
        """Forward-geocode ``text``; best match first, empty list when not found."""

        params = {
            "format": "json",
            "q": text,
            "limit": limit,
            "addressdetails": 1,
        }
        data = self._get_json("search", params)
        if not isinstance(data, list):
            raise GeocodingServiceError("Geocoding service returned a malformed payload (expected a list).")

        matches: list[GeocodeMatch] = []
        for item in data:
            try:
                coordinate = Coordinate.validated(item.get("lat"), item.get("lon"))
            except (AttributeError, InvalidCoordinate) as e:
                logger.warning(f"Skipping malformed geocoding match for '{text}': {e}")
                continue
            place_id = item.get("place_id")
            matches.append(
                GeocodeMatch(
                    coordinate=coordinate,
                    display_name=item.get("display_name"),
                    place_id=str(place_id) if place_id is not None else None,
                )
            )
        if data and not matches:
            raise GeocodingServiceError(f"Geocoding service returned no usable coordinates for '{text}'.")
        return matches

    def reverse(self, lat: float, lng: float) -> ReverseGeocodeResult:
        params = {
            "format": "json",
            "lat": lat,
            "lon": lng,
            "addressdetails": 1,
        }
        data = self._get_json("reverse", params)
        if not isinstance(data, dict) or not data.get("display_name"):
            message = data.get("error") if isinstance(data, dict) else None
            raise GeocodingServiceError(f"Reverse geocoding found no address: {message or 'location not found'}")
        place_id = data.get("place_id")
        return ReverseGeocodeResult(
            formatted_address=data["display_name"],
            place_id=str(place_id) if place_id is not None else None,
            components=dict(data.get("address") or {}),
        )


def check_health(base_url: str | None = None) -> bool:
    """Check the geocoding service by hitting its status endpoint."""
    base = (base_url or settings.nominatim_base_url).rstrip("/")
    if not base:
        return False
    try:
        response = httpx.get(
            f"{base}/status",
            params={"format": "json"},
            headers={"User-Agent": settings.geocoder_user_agent},
            timeout=5.0,
        )
        response.raise_for_status()
        return response.json().get("status") == 0
    except httpx.HTTPError:
        return False
    except (ValueError, AttributeError):
        return False
