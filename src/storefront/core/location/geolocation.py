from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Protocol

from storefront.core.errors import ErrorType, StorefrontError
from storefront.core.location.models import Coordinates

# W3C GeolocationPositionError codes.
PERMISSION_DENIED_CODE = 1
POSITION_UNAVAILABLE_CODE = 2
TIMEOUT_CODE = 3

_PLATFORM_ERRORS: dict[int, tuple[ErrorType, str]] = {
    PERMISSION_DENIED_CODE: (
        ErrorType.PERMISSION_DENIED,
        "Location access was denied. Please enable location access or enter your pincode manually.",
    ),
    POSITION_UNAVAILABLE_CODE: (
        ErrorType.POSITION_UNAVAILABLE,
        "Unable to retrieve your location. Please check your device settings or enter your pincode manually.",
    ),
    TIMEOUT_CODE: (
        ErrorType.TIMEOUT,
        "Location request timed out. Please try again or enter your pincode manually.",
    ),
}


class PlatformGeolocationError(Exception):
    """Raised by a geolocation provider with the platform's own error code."""

    def __init__(self, code: int, message: str = "") -> None:
        super().__init__(message or f"geolocation error code {code}")
        self.code = code


class GeolocationUnsupportedError(Exception):
    """Raised when the platform offers no geolocation capability."""


class GeolocationProvider(Protocol):
    async def current_position(self, timeout_seconds: float) -> Coordinates: ...


@dataclass(frozen=True)
class ReportedPosition:
    """Geolocation outcome reported by a browser: coordinates or an error code."""

    coordinates: Coordinates | None = None
    error_code: int | None = None
    error_message: str = ""

    async def current_position(self, timeout_seconds: float) -> Coordinates:
        if self.error_code is not None:
            raise PlatformGeolocationError(self.error_code, self.error_message)
        if self.coordinates is None:
            raise GeolocationUnsupportedError("No position was reported")
        return self.coordinates


def map_platform_error(exc: Exception) -> StorefrontError:
    """Translate a platform failure into a recoverable geolocation error."""
    if isinstance(exc, GeolocationUnsupportedError):
        return StorefrontError.of(
            ErrorType.PERMISSION_DENIED,
            "Geolocation is not supported in your browser. Please enter your pincode manually.",
        )
    if isinstance(exc, asyncio.TimeoutError):
        return StorefrontError.of(ErrorType.TIMEOUT, _PLATFORM_ERRORS[TIMEOUT_CODE][1])
    if isinstance(exc, PlatformGeolocationError) and exc.code in _PLATFORM_ERRORS:
        error_type, message = _PLATFORM_ERRORS[exc.code]
        return StorefrontError.of(error_type, message)
    return StorefrontError.of(
        ErrorType.TIMEOUT,
        "An unknown error occurred while getting your location. Please try again or enter your pincode manually.",
    )


async def request_position(provider: GeolocationProvider, timeout_seconds: float) -> Coordinates:
    """Ask the provider for coordinates, bounded by the platform timeout."""
    try:
        return await asyncio.wait_for(provider.current_position(timeout_seconds), timeout=timeout_seconds)
    except (PlatformGeolocationError, GeolocationUnsupportedError, asyncio.TimeoutError) as exc:
        raise map_platform_error(exc) from exc
