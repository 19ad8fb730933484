from storefront.core.backend.client import StorefrontClient
from storefront.core.backend.config import (
    BackendConfig,
    GeocodingConfig,
    load_backend_config,
    load_geocoding_config,
)
from storefront.core.backend.exceptions import (
    BackendRequestError,
    BackendResponseError,
    BackendUnavailableError,
)

__all__ = [
    "StorefrontClient",
    "BackendConfig",
    "GeocodingConfig",
    "BackendRequestError",
    "BackendResponseError",
    "BackendUnavailableError",
    "load_backend_config",
    "load_geocoding_config",
]
