from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Awaitable, Optional

from storefront.core.cart.consistency import CartConsistencyEngine
from storefront.core.cart.models import CartItem, CartItemError, CartValidationSummary
from storefront.core.cart.store import CartStore
from storefront.core.catalog.filtering import check_variant_availability, find_variant
from storefront.core.catalog.models import DepotVariant, Product, ProductWithPricing
from storefront.core.catalog.refresher import PriceRefresher
from storefront.core.catalog.service import CatalogPricingService
from storefront.core.depot.models import Depot, ServiceAvailability
from storefront.core.depot.resolver import DepotResolver
from storefront.core.errors import ErrorType, PricingError, StorefrontError
from storefront.core.location.geolocation import GeolocationProvider
from storefront.core.location.models import DeliveryLocation, LocationChange, utc_now
from storefront.core.location.resolver import LocationResolver
from storefront.core.location.store import LocationStore

logger = logging.getLogger(__name__)


@dataclass
class PricingState:
    location: Optional[DeliveryLocation] = None
    depot: Optional[Depot] = None
    service_availability: Optional[ServiceAvailability] = None
    products: list[ProductWithPricing] = field(default_factory=list)
    is_loading: bool = False
    error: Optional[PricingError] = None


class DepotTracker:
    """Previous vs. current depot id whose catalog has been loaded.

    A depot id is committed only after its catalog arrived, so a failed
    load is retried on the next resolution of the same depot.
    """

    def __init__(self) -> None:
        self.previous_depot_id: Optional[str] = None
        self.current_depot_id: Optional[str] = None

    def has_changed(self, depot_id: Optional[str]) -> bool:
        return depot_id != self.current_depot_id

    def commit(self, depot_id: Optional[str]) -> bool:
        if not self.has_changed(depot_id):
            return False
        self.previous_depot_id, self.current_depot_id = self.current_depot_id, depot_id
        return True

    def reset(self) -> None:
        self.commit(None)


class PricingContext:
    """Aggregates location, depot, catalog and cart state for the storefront.

    Location store notifications (same process or another tab) are applied
    as background tasks. Each notification bumps a generation counter and
    a task that finds itself outdated after an await drops its result.
    """

    def __init__(
        self,
        store: LocationStore,
        locations: LocationResolver,
        depots: DepotResolver,
        catalog: CatalogPricingService,
        cart: CartStore,
        refresh_interval_seconds: float,
        legacy_storage_key: Optional[str] = None,
    ) -> None:
        self.store = store
        self.locations = locations
        self.depots = depots
        self.catalog = catalog
        self.cart = cart
        self.engine = CartConsistencyEngine(cart, catalog)
        self.refresher = PriceRefresher(catalog, self._active_depot_id, refresh_interval_seconds)
        self.legacy_storage_key = legacy_storage_key
        self.state = PricingState()
        self.tracker = DepotTracker()
        self._generation = 0
        self._override_depot: Optional[Depot] = None
        self._current_task: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()
        self._unsubscribe = store.subscribe(self._on_location_change)

    # Lifecycle

    async def initialize(self) -> None:
        """Load the persisted location, or fall back to the first online depot.

        A corrupted record is discarded and reported as CACHE_ERROR once the
        fallback has been applied.
        """
        cache_error: Optional[StorefrontError] = None
        try:
            location = self.store.load_current_location()
        except StorefrontError as exc:
            cache_error = exc
            location = self.store.get_current_location()

        if location is None and self.legacy_storage_key:
            location = await self.locations.migrate_legacy_pincode(self.legacy_storage_key)
            if location is not None:
                logger.info("Migrated legacy pincode %s", location.pincode)
                await self._settle(raise_errors=False)
                return

        if location is not None:
            error = await self._run_apply(location)
            if error is not None:
                logger.warning("Persisted location %s could not be applied: %s", location.pincode, error.message)
            return

        depot = await self.depots.fallback_depot()
        if depot is None:
            logger.info("No delivery location and no online depot available")
        else:
            logger.info("No delivery location stored; falling back to depot %s", depot.id)
            await self._run_apply(None, depot=depot)
        if cache_error is not None:
            self._record_error(cache_error)

    def start_background_refresh(self, interval_seconds: Optional[float] = None) -> None:
        self.refresher.start(interval_seconds, on_update=self._on_prices_updated)

    async def shutdown(self) -> None:
        self._unsubscribe()
        await self.refresher.stop()
        for task in list(self._tasks):
            task.cancel()
        await self.wait_idle()
        self.store.cache.close()

    async def wait_idle(self) -> None:
        """Wait until every scheduled location and cart task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # Location and depot

    async def resolve_pincode(self, pincode: str) -> DeliveryLocation:
        location = await self._guarded(self.locations.resolve_by_pincode(pincode))
        await self._settle()
        return location

    async def resolve_geolocation(self, provider: Optional[GeolocationProvider] = None) -> DeliveryLocation:
        location = await self._guarded(self.locations.resolve_by_geolocation(provider))
        await self._settle()
        return location

    async def set_location(self, location: DeliveryLocation) -> None:
        self.store.save(location)
        await self._settle()

    async def set_depot(self, depot: Depot) -> None:
        """Manually override the depot, re-stamping the persisted location when there is one."""
        location = self.state.location or self.store.get_current_location()
        if location is None:
            error = await self._run_apply(None, depot=depot)
            if error is not None:
                raise StorefrontError(error)
            return
        self._override_depot = depot
        self.store.save(replace(location, depot_id=depot.id, depot_name=depot.name, resolved_at=utc_now()))
        await self._settle()

    async def set_depot_by_id(self, depot_id: str) -> Depot:
        depot = await self._guarded(self.depots.get_depot(depot_id))
        await self.set_depot(depot)
        return depot

    def clear_location(self) -> None:
        """Forget the delivery location along with cached depot lookups and catalogs."""
        self.locations.clear_current_location()
        self.depots.clear_cache()
        self.catalog.invalidate()

    def handle_storage_event(self, key: Optional[str], old_value: Optional[str], new_value: Optional[str]) -> None:
        self.store.handle_storage_event(key, old_value, new_value)

    # Prices

    async def refresh_prices(self, force: bool = True) -> bool:
        """Refresh the active depot's prices; without force only when they are older than the interval."""
        refreshed = await (self.refresher.refresh_now() if force else self.refresher.refresh_if_stale())
        depot_id = self._active_depot_id()
        if refreshed and depot_id and self.refresher.refresh_error is None:
            await self._sync_cart(depot_id)
        return refreshed

    def set_error(self, error: Optional[PricingError]) -> None:
        self.state.error = error

    # Cart

    def add_item(self, product: ProductWithPricing | Product, variant: DepotVariant, quantity: int = 1) -> CartItem:
        return self.cart.add_item(product, variant, quantity)

    def add_variant(self, variant_id: int, quantity: int = 1) -> CartItem:
        """Add a variant from the active depot's catalog, rejecting ones that cannot be bought."""
        availability = check_variant_availability(self.state.products, variant_id, 1)
        if not availability.is_available:
            raise CartItemError(variant_id, availability.reason or "Currently unavailable")
        variant = find_variant(self.state.products, variant_id)
        product = next(item for item in self.state.products if item.product.id == variant.product_id)
        return self.cart.add_item(product, variant, quantity)

    def update_quantity(self, variant_id: int, quantity: int) -> Optional[CartItem]:
        return self.cart.update_quantity(variant_id, quantity)

    def remove_item(self, variant_id: int) -> bool:
        return self.cart.remove_item(variant_id)

    async def validate_cart(self, depot_id: Optional[str] = None) -> CartValidationSummary:
        depot_id = depot_id or self._active_depot_id()
        if not depot_id:
            raise StorefrontError.of(ErrorType.DEPOT_NOT_FOUND, "Select a delivery location first")
        return await self._guarded(self.engine.validate_cart(depot_id))

    @property
    def available_items(self) -> list[CartItem]:
        return self.cart.get_available_items()

    @property
    def unavailable_items(self) -> list[CartItem]:
        return self.cart.get_unavailable_items()

    @property
    def subtotal(self) -> float:
        return self.cart.subtotal

    @property
    def available_subtotal(self) -> float:
        return self.cart.available_subtotal

    # Internals

    def _active_depot_id(self) -> Optional[str]:
        return self.state.depot.id if self.state.depot else None

    async def _guarded(self, operation: Awaitable):
        try:
            return await operation
        except StorefrontError as exc:
            self._record_error(exc)
            raise

    def _record_error(self, exc: StorefrontError) -> None:
        logger.warning("Storefront operation failed (%s): %s", exc.type.value, exc)
        self.state.error = exc.error

    def _on_location_change(self, change: LocationChange) -> None:
        if change.current is None:
            self._generation += 1
            self._current_task = None
            self._reset_location()
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Location change for %s received outside the event loop; ignored", change.current.pincode)
            return
        depot = self.state.depot
        if change.depot_changed or depot is None or depot.id != change.current.depot_id:
            depot = None
        self._schedule(change.current, depot)

    def _schedule(self, location: Optional[DeliveryLocation], depot: Optional[Depot] = None) -> asyncio.Task:
        self._generation += 1
        self.state.is_loading = True
        task = self._spawn(self._apply(location, depot, self._generation))
        self._current_task = task
        return task

    def _spawn(self, coroutine: Awaitable) -> asyncio.Task:
        task = asyncio.ensure_future(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_apply(
        self,
        location: Optional[DeliveryLocation],
        depot: Optional[Depot] = None,
    ) -> Optional[PricingError]:
        return await self._schedule(location, depot)

    async def _settle(self, raise_errors: bool = True) -> None:
        task = self._current_task
        if task is None:
            return
        error = await task
        if error is not None and raise_errors:
            raise StorefrontError(error)

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    async def _apply(
        self,
        location: Optional[DeliveryLocation],
        depot: Optional[Depot],
        generation: int,
    ) -> Optional[PricingError]:
        try:
            if depot is None:
                depot = await self._depot_for(location)
                if self._is_stale(generation):
                    return None
            await self._activate(depot, location, generation)
        except StorefrontError as exc:
            if self._is_stale(generation):
                return None
            self._record_error(exc)
            return exc.error
        finally:
            if not self._is_stale(generation):
                self.state.is_loading = False
        return None

    async def _depot_for(self, location: DeliveryLocation) -> Depot:
        self.state.location = location
        if not location.depot_id:
            self._clear_depot()
            resolution = await self.depots.resolve_depot(location.pincode, location)
            return resolution.depot
        for known in (self.state.depot, self._override_depot):
            if known is not None and known.id == location.depot_id:
                return known
        try:
            resolution = await self.depots.resolve_depot(location.pincode, location)
        except StorefrontError as exc:
            if exc.type is not ErrorType.DEPOT_NOT_FOUND:
                raise
        else:
            if resolution.depot.id == location.depot_id:
                return resolution.depot
        return await self.depots.get_depot(location.depot_id)

    async def _activate(self, depot: Depot, location: Optional[DeliveryLocation], generation: int) -> None:
        self.state.location = location
        self.state.depot = depot
        self.state.service_availability = self.depots.compute_availability(depot, location)

        if self.tracker.has_changed(depot.id):
            logger.info("Switching depot %s -> %s", self.tracker.current_depot_id, depot.id)
            self.state.products = []
            try:
                products = await self.catalog.get_catalog(depot.id)
            except StorefrontError:
                if self._is_stale(generation):
                    return
                self.tracker.reset()
                self.engine.hold_foreign_lines(depot.id)
                raise
            if self._is_stale(generation):
                return
            self.state.products = products
            self.tracker.commit(depot.id)

        await self.engine.on_depot_change(depot.id)
        if not self._is_stale(generation):
            self.state.error = None

    def _clear_depot(self) -> None:
        self.state.depot = None
        self.state.service_availability = None
        self.state.products = []
        self.tracker.reset()

    def _reset_location(self) -> None:
        logger.info("Delivery location cleared")
        self.state.location = None
        self.state.is_loading = False
        self._clear_depot()
        self.engine.reset()

    def _on_prices_updated(self, depot_id: str, catalog: list[ProductWithPricing]) -> None:
        if depot_id != self._active_depot_id():
            logger.debug("Dropping refreshed prices for inactive depot %s", depot_id)
            return
        self.state.products = catalog
        self.tracker.commit(depot_id)
        if self.engine.last_depot_id != depot_id:
            self._spawn(self._sync_cart(depot_id))

    async def _sync_cart(self, depot_id: str) -> None:
        try:
            await self.engine.on_depot_change(depot_id)
        except StorefrontError as exc:
            logger.warning("Cart revalidation for depot %s failed: %s", depot_id, exc)
