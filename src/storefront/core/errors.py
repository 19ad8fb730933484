from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import requests

from storefront.core.backend.exceptions import BackendRequestError, BackendUnavailableError


class ErrorType(str, Enum):
    PERMISSION_DENIED = "PERMISSION_DENIED"
    POSITION_UNAVAILABLE = "POSITION_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"
    INVALID_PINCODE = "INVALID_PINCODE"
    API_ERROR = "API_ERROR"
    DEPOT_NOT_FOUND = "DEPOT_NOT_FOUND"
    NETWORK_ERROR = "NETWORK_ERROR"
    CACHE_ERROR = "CACHE_ERROR"


LOCATION_ERROR_TYPES = frozenset(
    {
        ErrorType.PERMISSION_DENIED,
        ErrorType.POSITION_UNAVAILABLE,
        ErrorType.TIMEOUT,
        ErrorType.INVALID_PINCODE,
        ErrorType.DEPOT_NOT_FOUND,
    }
)


@dataclass(frozen=True)
class PricingError:
    """Tagged error record surfaced to the presentation layer."""

    type: ErrorType
    message: str | None = None
    recoverable: bool = True


# Geolocation failures share the same record shape.
GeolocationError = PricingError


@dataclass(frozen=True)
class ErrorDescription:
    title: str
    description: str
    can_retry: bool


class StorefrontError(Exception):
    """Raised by engine operations; carries the error record in ``error``."""

    def __init__(self, error: PricingError) -> None:
        super().__init__(error.message or error.type.value)
        self.error = error

    @classmethod
    def of(cls, error_type: ErrorType, message: str | None = None, recoverable: bool = True) -> "StorefrontError":
        return cls(PricingError(type=error_type, message=message, recoverable=recoverable))

    @property
    def type(self) -> ErrorType:
        return self.error.type


_TITLES: dict[ErrorType, str] = {
    ErrorType.PERMISSION_DENIED: "Location Access Denied",
    ErrorType.POSITION_UNAVAILABLE: "Location Unavailable",
    ErrorType.TIMEOUT: "Location Request Timeout",
    ErrorType.INVALID_PINCODE: "Invalid Pincode",
    ErrorType.API_ERROR: "Connection Error",
    ErrorType.DEPOT_NOT_FOUND: "Service Unavailable",
    ErrorType.NETWORK_ERROR: "Network Error",
    ErrorType.CACHE_ERROR: "Cache Error",
}

_DESCRIPTIONS: dict[ErrorType, str] = {
    ErrorType.PERMISSION_DENIED: (
        "Please enable location access in your browser settings or enter your pincode manually "
        "to see products available in your area."
    ),
    ErrorType.POSITION_UNAVAILABLE: (
        "We couldn't determine your location. Please enter your pincode manually to continue."
    ),
    ErrorType.TIMEOUT: "Location request took too long. Please try again or enter your pincode manually.",
    ErrorType.INVALID_PINCODE: "The pincode you entered is not valid. Please check and try again.",
    ErrorType.API_ERROR: (
        "We're having trouble connecting to our servers. Please check your internet connection and try again."
    ),
    ErrorType.DEPOT_NOT_FOUND: (
        "We couldn't find a depot that serves your area. Please check your pincode or try a nearby location."
    ),
    ErrorType.NETWORK_ERROR: "Please check your internet connection and try again.",
    ErrorType.CACHE_ERROR: "There was a problem loading cached data. Please refresh the page and try again.",
}


def describe_error(error: PricingError) -> ErrorDescription:
    """Map an error record to the human-readable copy shown to shoppers."""
    title = _TITLES.get(error.type, "Something Went Wrong")
    description = _DESCRIPTIONS.get(error.type) or error.message or "An unexpected error occurred. Please try again."
    return ErrorDescription(title=title, description=description, can_retry=error.recoverable)


def translate_transport_error(exc: Exception, context: str) -> StorefrontError:
    """Convert a backend client failure into a tagged storefront error."""
    if isinstance(exc, StorefrontError):
        return exc
    if isinstance(exc, BackendUnavailableError):
        return StorefrontError.of(ErrorType.NETWORK_ERROR, f"{context}: {exc}")
    if isinstance(exc, BackendRequestError):
        return StorefrontError.of(ErrorType.API_ERROR, f"{context}: {exc}")
    if isinstance(exc, (requests.Timeout, requests.ConnectionError)):
        return StorefrontError.of(ErrorType.NETWORK_ERROR, f"{context}: {exc}")
    return StorefrontError.of(ErrorType.API_ERROR, f"{context}: {exc}")
