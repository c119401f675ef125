"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="GEO_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Delivery Geo Engine API"
    api_prefix: str = "/api"

    # Geocoding (OpenStreetMap Nominatim)
    nominatim_base_url: str = Field(
        default="https://nominatim.openstreetmap.org",
        description="Base URL for the Nominatim geocoding service.",
    )
    geocoder_user_agent: str = Field(
        default="DeliveryFlow/1.0",
        description="User-Agent sent to the geocoding service (required by the Nominatim usage policy).",
    )
    geocoder_timeout_seconds: float = Field(default=10.0, gt=0.0)
    geocoder_max_retries: int = Field(default=1, ge=0)
    geocoder_backoff_seconds: float = Field(default=0.5, ge=0.0)
    geocode_cache_max_entries: Optional[int] = Field(
        default=None,
        ge=1,
        description="Optional LRU bound for the geocode cache. Unbounded when unset.",
    )
    min_address_length: int = Field(default=3, ge=1)
    suggestion_limit: int = Field(default=5, ge=1, le=50)
    max_parallel_geocodes: int = Field(default=4, ge=1)

    # Device location sensor
    sensor_timeout_seconds: float = Field(default=10.0, gt=0.0)
    sensor_max_age_seconds: float = Field(default=300.0, ge=0.0)

    # IP geolocation
    ip_geolocation_providers: tuple[str, ...] = Field(
        default=("ipapi", "ip-api", "ipinfo"),
        description="IP geolocation providers tried in order.",
    )
    ip_geolocation_timeout_seconds: float = Field(default=5.0, gt=0.0)
    ip_geolocation_max_retries: int = Field(default=1, ge=0)
    ip_geolocation_backoff_seconds: float = Field(default=0.5, ge=0.0)
    ip_location_accuracy_meters: float = Field(
        default=50_000.0,
        gt=0.0,
        description="Coarse accuracy reported for IP-based locations.",
    )

    # Default location (last fallback tier)
    default_latitude: float = Field(default=40.7128, ge=-90.0, le=90.0)
    default_longitude: float = Field(default=-74.006, ge=-180.0, le=180.0)

    # Route estimation
    duration_factor_min_per_km: float = Field(
        default=1.5,
        gt=0.0,
        description="Minutes per kilometre used for coarse duration estimates (~40 km/h urban average).",
    )

    # Tracking
    tracking_interval_seconds: float = Field(default=10.0, gt=0.0)
    tracking_autostart: bool = Field(
        default=True,
        description="Start the periodic position broadcaster with the API process.",
    )

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", "ip_geolocation_providers", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            # Try comma-separated
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            # Single value
            if value.strip():
                return (value.strip(),)
        # Return empty tuple if value is None or empty
        return tuple()

    @field_validator("nominatim_base_url", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


settings = Settings()
