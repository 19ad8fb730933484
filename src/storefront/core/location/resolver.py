from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from storefront.core.errors import ErrorType, StorefrontError
from storefront.core.location.geocoding import ReverseGeocoder
from storefront.core.location.geolocation import (
    GeolocationProvider,
    GeolocationUnsupportedError,
    map_platform_error,
    request_position,
)
from storefront.core.location.models import DeliveryLocation, LocationSource, is_valid_pincode
from storefront.core.location.store import LocationStore

if TYPE_CHECKING:
    from storefront.core.depot.resolver import DepotResolver

logger = logging.getLogger(__name__)


class LocationResolver:
    """Turns a geolocation request or a typed pincode into a persisted DeliveryLocation."""

    def __init__(
        self,
        store: LocationStore,
        depots: "DepotResolver",
        geocoder: ReverseGeocoder,
        geolocation_timeout_seconds: float,
        default_provider: GeolocationProvider | None = None,
    ) -> None:
        self.store = store
        self.depots = depots
        self.geocoder = geocoder
        self.geolocation_timeout_seconds = geolocation_timeout_seconds
        self.default_provider = default_provider

    async def resolve_by_geolocation(self, provider: GeolocationProvider | None = None) -> DeliveryLocation:
        """Locate the shopper through the platform, reverse-geocode, and persist the result."""
        provider = provider or self.default_provider
        if provider is None:
            raise map_platform_error(GeolocationUnsupportedError("No geolocation provider configured"))
        coordinates = await request_position(provider, self.geolocation_timeout_seconds)
        place = await asyncio.to_thread(self.geocoder.reverse, coordinates)

        depot_id = depot_name = area_name = None
        area_id = None
        try:
            area = await self.depots.lookup_area(place.pincode)
        except StorefrontError as exc:
            if exc.type is not ErrorType.DEPOT_NOT_FOUND:
                raise
            logger.info("Geolocated pincode %s has no serving depot", place.pincode)
        else:
            area_id, area_name = area.id, area.name
            if area.depot is not None:
                depot_id, depot_name = area.depot.id, area.depot.name

        location = DeliveryLocation(
            pincode=place.pincode,
            source=LocationSource.GEOLOCATION,
            area_name=area_name or place.area_name,
            area_id=area_id,
            depot_id=depot_id,
            depot_name=depot_name,
            city=place.city,
            latitude=coordinates.latitude,
            longitude=coordinates.longitude,
        )
        self.store.save(location)
        return location

    async def resolve_by_pincode(self, pincode: str) -> DeliveryLocation:
        """Validate pincode locally, look up its depot, and persist a manual location."""
        cleaned = pincode.strip() if isinstance(pincode, str) else ""
        if not is_valid_pincode(cleaned):
            raise StorefrontError.of(ErrorType.INVALID_PINCODE, "Please enter a valid 6-digit pincode")
        area = await self.depots.lookup_area(cleaned)
        location = DeliveryLocation(
            pincode=cleaned,
            source=LocationSource.MANUAL,
            area_name=area.name or None,
            area_id=area.id,
            depot_id=area.depot.id if area.depot else None,
            depot_name=area.depot.name if area.depot else None,
        )
        self.store.save(location)
        return location

    def get_current_location(self) -> DeliveryLocation | None:
        return self.store.get_current_location()

    def clear_current_location(self) -> None:
        self.store.clear_current_location()

    async def migrate_legacy_pincode(self, legacy_key: str) -> DeliveryLocation | None:
        """Upgrade a bare persisted pincode from older releases into a full location record."""
        if self.store.get_current_location() is not None:
            return None
        legacy = self.store.cache.load_raw(legacy_key)
        if legacy is None:
            return None
        location = None
        if is_valid_pincode(legacy.strip()):
            try:
                location = await self.resolve_by_pincode(legacy)
            except StorefrontError as exc:
                logger.warning("Legacy pincode %s could not be migrated: %s", legacy, exc)
        self.store.cache.remove(legacy_key)
        return location
