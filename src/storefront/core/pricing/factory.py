from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from storefront.core.backend.client import StorefrontClient
from storefront.core.backend.config import load_backend_config, load_geocoding_config
from storefront.core.cache.location_cache import LocationCacheManager
from storefront.core.cart.store import CartStore
from storefront.core.catalog.service import CatalogPricingService
from storefront.core.config import Settings, settings as default_settings
from storefront.core.depot.lookup import DepotLookupClient
from storefront.core.depot.resolver import DepotResolver
from storefront.core.location.geocoding import ReverseGeocoder
from storefront.core.location.known_areas import KnownAreaRepository
from storefront.core.location.resolver import LocationResolver
from storefront.core.location.store import LocationStore
from storefront.core.pricing.context import PricingContext

logger = logging.getLogger(__name__)


def build_context(config: Optional[Settings] = None, cache_root: Optional[Path] = None) -> PricingContext:
    """Wire a PricingContext against the configured backend and disk cache."""
    config = config or default_settings
    client = StorefrontClient(load_backend_config(config))
    cache = LocationCacheManager(root=cache_root or config.CACHE_ROOT)
    logger.info(cache.cache_info())
    store = LocationStore(cache, config.LOCATION_STORAGE_KEY)
    depots = DepotResolver(
        DepotLookupClient(client),
        minimum_order_amount=config.MINIMUM_ORDER_AMOUNT,
        cache_ttl_seconds=config.DEPOT_CACHE_TTL_SECONDS,
    )
    locations = LocationResolver(
        store,
        depots,
        ReverseGeocoder(load_geocoding_config(config), KnownAreaRepository()),
        geolocation_timeout_seconds=config.GEOLOCATION_TIMEOUT_SECONDS,
    )
    logger.info("Storefront context wired against %s", config.API_BASE_URL)
    return PricingContext(
        store=store,
        locations=locations,
        depots=depots,
        catalog=CatalogPricingService(client, cache_ttl_seconds=config.CATALOG_CACHE_TTL_SECONDS),
        cart=CartStore(max_quantity=config.MAX_CART_QUANTITY),
        refresh_interval_seconds=config.PRICE_REFRESH_INTERVAL_SECONDS,
        legacy_storage_key=config.LEGACY_PINCODE_STORAGE_KEY,
    )
