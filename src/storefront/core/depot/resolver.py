from __future__ import annotations

import asyncio
import logging

from cachetools import TTLCache

from storefront.core.backend.exceptions import (
    BackendRequestError,
    BackendResponseError,
    BackendUnavailableError,
)
from storefront.core.depot.lookup import DepotLookupClient
from storefront.core.depot.models import AreaMaster, Depot, DepotResolution, ServiceAvailability
from storefront.core.errors import ErrorType, StorefrontError, translate_transport_error
from storefront.core.location.models import DeliveryLocation, is_valid_pincode

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (BackendRequestError, BackendUnavailableError, BackendResponseError)
_AREA_CACHE_SIZE = 256
_SAME_DAY_DELIVERY = "Same day delivery"


class DepotResolver:
    """Maps pincodes to serving depots and derives service availability."""

    def __init__(
        self,
        lookup: DepotLookupClient,
        minimum_order_amount: float,
        cache_ttl_seconds: int,
    ) -> None:
        self.lookup = lookup
        self.minimum_order_amount = minimum_order_amount
        self._area_cache: TTLCache[str, AreaMaster] = TTLCache(maxsize=_AREA_CACHE_SIZE, ttl=cache_ttl_seconds)

    async def resolve_depot(self, pincode: str, location: DeliveryLocation | None = None) -> DepotResolution:
        """Return the depot serving pincode together with a freshly computed availability verdict."""
        area = await self.lookup_area(pincode)
        depot = area.depot
        if depot is None:
            raise StorefrontError.of(ErrorType.DEPOT_NOT_FOUND, f"No depot found for pincode {pincode}")
        return DepotResolution(depot=depot, availability=self.compute_availability(depot, location), area=area)

    async def lookup_area(self, pincode: str) -> AreaMaster:
        """Return the first delivery area with a depot for pincode (cached per pincode)."""
        cleaned = pincode.strip() if isinstance(pincode, str) else pincode
        if not is_valid_pincode(cleaned):
            raise StorefrontError.of(ErrorType.INVALID_PINCODE, "Please enter a valid 6-digit pincode")
        cached = self._area_cache.get(cleaned)
        if cached is not None:
            return cached
        try:
            areas = await asyncio.to_thread(self.lookup.areas_for_pincode, cleaned)
        except _TRANSPORT_ERRORS as exc:
            raise translate_transport_error(exc, f"Depot lookup for {cleaned} failed") from exc
        area = next((candidate for candidate in areas if candidate.depot is not None), None)
        if area is None:
            logger.info("No depot serves pincode %s", cleaned)
            raise StorefrontError.of(
                ErrorType.DEPOT_NOT_FOUND,
                f"No depot found for pincode {cleaned}. Please try a nearby location.",
            )
        self._area_cache[cleaned] = area
        return area

    def compute_availability(self, depot: Depot, location: DeliveryLocation | None = None) -> ServiceAvailability:
        """Derive availability for a (depot, location) pair; offline depots are never available."""
        if not depot.is_online:
            return ServiceAvailability(
                is_available=False,
                message=f"{depot.name or 'This depot'} is not accepting online orders right now",
            )
        if location is not None and location.depot_id and location.depot_id != depot.id:
            logger.debug(
                "Depot %s was chosen manually over %s for pincode %s",
                depot.id,
                location.depot_id,
                location.pincode,
            )
        return ServiceAvailability(
            is_available=True,
            estimated_delivery_time=_SAME_DAY_DELIVERY,
            delivery_charges=0.0,
            minimum_order_amount=self.minimum_order_amount,
            message="Service available in your area",
        )

    async def depots_for_pincode(self, pincode: str) -> list[Depot]:
        """Return every distinct depot listed for pincode."""
        if not is_valid_pincode(pincode):
            raise StorefrontError.of(ErrorType.INVALID_PINCODE, "Please enter a valid 6-digit pincode")
        try:
            areas = await asyncio.to_thread(self.lookup.areas_for_pincode, pincode)
        except _TRANSPORT_ERRORS as exc:
            raise translate_transport_error(exc, f"Depot lookup for {pincode} failed") from exc
        depots: dict[str, Depot] = {}
        for area in areas:
            if area.depot is not None and area.depot.id not in depots:
                depots[area.depot.id] = area.depot
        return list(depots.values())

    async def get_depot(self, depot_id: str) -> Depot:
        try:
            depot = await asyncio.to_thread(self.lookup.depot_by_id, depot_id)
        except _TRANSPORT_ERRORS as exc:
            raise translate_transport_error(exc, f"Depot {depot_id} lookup failed") from exc
        if depot is None:
            raise StorefrontError.of(ErrorType.DEPOT_NOT_FOUND, f"Depot {depot_id} does not exist")
        return depot

    async def fallback_depot(self) -> Depot | None:
        """Return the first online depot, used when no location can be resolved."""
        try:
            depots = await asyncio.to_thread(self.lookup.online_depots)
        except _TRANSPORT_ERRORS as exc:
            logger.warning("Unable to load online depots: %s", exc)
            return None
        return depots[0] if depots else None

    def clear_cache(self) -> None:
        self._area_cache.clear()
