from storefront.core.location.geocoding import GeocodedPlace, ReverseGeocoder
from storefront.core.location.geolocation import (
    GeolocationProvider,
    PlatformGeolocationError,
    ReportedPosition,
)
from storefront.core.location.known_areas import KnownAreaRepository
from storefront.core.location.models import (
    Coordinates,
    DeliveryLocation,
    LocationChange,
    LocationSource,
    is_valid_pincode,
)
from storefront.core.location.resolver import LocationResolver
from storefront.core.location.store import LocationStore

__all__ = [
    "Coordinates",
    "DeliveryLocation",
    "GeocodedPlace",
    "GeolocationProvider",
    "KnownAreaRepository",
    "LocationChange",
    "LocationResolver",
    "LocationSource",
    "LocationStore",
    "PlatformGeolocationError",
    "ReportedPosition",
    "ReverseGeocoder",
    "is_valid_pincode",
]
