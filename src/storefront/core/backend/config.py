from __future__ import annotations

from dataclasses import dataclass

from storefront.core.config import Settings

_RETRY_BACKOFF_FACTOR = 1.0


@dataclass(frozen=True)
class BackendConfig:
    base_url: str
    request_timeout_seconds: float
    max_retries: int
    backoff_factor: float


@dataclass(frozen=True)
class GeocodingConfig:
    api_url: str
    api_key: str | None
    request_timeout_seconds: float


def load_backend_config(settings: Settings) -> BackendConfig:
    """Project the storefront backend settings into a client configuration."""
    return BackendConfig(
        base_url=settings.API_BASE_URL.rstrip("/"),
        request_timeout_seconds=settings.REQUEST_TIMEOUT_SECONDS,
        max_retries=max(0, settings.MAX_RETRIES),
        backoff_factor=_RETRY_BACKOFF_FACTOR,
    )


def load_geocoding_config(settings: Settings) -> GeocodingConfig:
    """Project the reverse geocoding settings; a blank key disables the remote lookup."""
    api_key = settings.GEOCODING_API_KEY.strip() or None
    return GeocodingConfig(
        api_url=settings.GEOCODING_API_URL,
        api_key=api_key,
        request_timeout_seconds=settings.REQUEST_TIMEOUT_SECONDS,
    )
