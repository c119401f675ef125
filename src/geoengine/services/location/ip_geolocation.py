"""IP-based geolocation across several public providers."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

import httpx

from ...config import settings
from ...errors import InvalidCoordinate, IPGeolocationError
from ...models.domain import Coordinate

logger = logging.getLogger(__name__)


def _parse_ipapi(payload: dict) -> Coordinate:
    if payload.get("error"):
        raise IPGeolocationError(f"ipapi error: {payload.get('reason') or payload.get('message')}")
    return Coordinate.validated(payload.get("latitude"), payload.get("longitude"))


def _parse_ip_api(payload: dict) -> Coordinate:
    if payload.get("status") != "success":
        raise IPGeolocationError(f"ip-api error: {payload.get('message', 'unknown failure')}")
    return Coordinate.validated(payload.get("lat"), payload.get("lon"))


def _parse_ipinfo(payload: dict) -> Coordinate:
    loc = payload.get("loc")
    if not isinstance(loc, str) or "," not in loc:
        raise IPGeolocationError("ipinfo response has no 'loc' field")
    lat, lng = loc.split(",", 1)
    return Coordinate.validated(lat.strip(), lng.strip())


@dataclass(frozen=True, slots=True)
class IPProvider:
    name: str
    url: str
    parse: Callable[[dict], Coordinate]


KNOWN_PROVIDERS: dict[str, IPProvider] = {
    "ipapi": IPProvider("ipapi", "https://ipapi.co/json/", _parse_ipapi),
    "ip-api": IPProvider("ip-api", "http://ip-api.com/json/", _parse_ip_api),
    "ipinfo": IPProvider("ipinfo", "https://ipinfo.io/json", _parse_ipinfo),
}


def providers_from_names(names: Sequence[str]) -> list[IPProvider]:
    providers = []
    for name in names:
        provider = KNOWN_PROVIDERS.get(name.strip().lower())
        if provider is None:
            logger.warning(f"Ignoring unknown IP geolocation provider '{name}'")
            continue
        providers.append(provider)
    return providers


class IPGeolocationClient:
    """Queries providers in order; the first parsable coordinate wins."""

    def __init__(
        self,
        providers: Sequence[IPProvider] | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.providers = list(providers) if providers is not None else providers_from_names(settings.ip_geolocation_providers)
        self.timeout = timeout if timeout is not None else settings.ip_geolocation_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.ip_geolocation_max_retries
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.ip_geolocation_backoff_seconds
        )
        self._transport = transport
        self.last_provider: Optional[str] = None

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout),
            headers={"Accept": "application/json", "User-Agent": settings.geocoder_user_agent},
            transport=self._transport,
        )

    def _fetch(self, client: httpx.Client, provider: IPProvider) -> Any:
        attempt = 0
        while True:
            try:
                response = client.get(provider.url)
                response.raise_for_status()
                return response.json()
            except (httpx.TimeoutException, httpx.NetworkError, httpx.HTTPStatusError) as e:
                attempt += 1
                if attempt > self.max_retries:
                    raise IPGeolocationError(f"{provider.name} lookup failed: {e}") from e
                wait_time = self.backoff_seconds * attempt
                logger.debug(f"{provider.name} lookup failed, retrying in {wait_time:.1f}s: {e}")
                time.sleep(wait_time)
            except (httpx.HTTPError, ValueError) as e:
                raise IPGeolocationError(f"{provider.name} lookup failed: {e}") from e

    def lookup(self) -> Coordinate:
        if not self.providers:
            raise IPGeolocationError("No IP geolocation providers configured.")

        errors: list[str] = []
        client = self._get_client()
        try:
            for provider in self.providers:
                try:
                    payload = self._fetch(client, provider)
                    if not isinstance(payload, dict):
                        raise IPGeolocationError(f"{provider.name} returned a malformed payload")
                    coordinate = provider.parse(payload)
                except (IPGeolocationError, InvalidCoordinate) as e:
                    logger.warning(f"IP geolocation via {provider.name} failed: {e}")
                    errors.append(f"{provider.name}: {e}")
                    continue
                self.last_provider = provider.name
                logger.info(f"IP geolocation via {provider.name}: ({coordinate.lat:.4f}, {coordinate.lng:.4f})")
                return coordinate
        finally:
            client.close()

        raise IPGeolocationError(f"All IP geolocation providers failed: {'; '.join(errors)}")
