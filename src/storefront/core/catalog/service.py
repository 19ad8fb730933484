from __future__ import annotations

import asyncio
import logging

from cachetools import TTLCache

from storefront.core.backend.client import StorefrontClient
from storefront.core.backend.exceptions import (
    BackendRequestError,
    BackendResponseError,
    BackendUnavailableError,
)
from storefront.core.catalog.models import ProductWithPricing
from storefront.core.catalog.responses import parse_catalog
from storefront.core.errors import translate_transport_error

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (BackendRequestError, BackendUnavailableError, BackendResponseError)
_CATALOG_CACHE_SIZE = 32
CATALOG_PATH = "/api/products/public"


class CatalogPricingService:
    """Fetches depot-scoped catalogs and keeps the latest copy per depot resident."""

    def __init__(self, client: StorefrontClient, cache_ttl_seconds: int) -> None:
        self.client = client
        self._resident: TTLCache[str, list[ProductWithPricing]] = TTLCache(
            maxsize=_CATALOG_CACHE_SIZE, ttl=cache_ttl_seconds
        )

    async def fetch_catalog(self, depot_id: str) -> list[ProductWithPricing]:
        """Fetch depot_id's catalog and replace its resident copy.

        Exactly one request per call, scoped to a single depot. An empty
        list is a valid catalog, not an error.
        """
        try:
            catalog = await asyncio.to_thread(self._fetch, depot_id)
        except _TRANSPORT_ERRORS as exc:
            logger.warning("Catalog fetch for depot %s failed: %s", depot_id, exc)
            raise translate_transport_error(exc, f"Catalog fetch for depot {depot_id} failed") from exc
        self._resident[depot_id] = catalog
        logger.info("Loaded %d products for depot %s", len(catalog), depot_id)
        return catalog

    def _fetch(self, depot_id: str) -> list[ProductWithPricing]:
        payload = self.client.get(CATALOG_PATH, params={"depotId": depot_id})
        return parse_catalog(payload, depot_id)

    def resident_catalog(self, depot_id: str) -> list[ProductWithPricing] | None:
        return self._resident.get(depot_id)

    async def get_catalog(self, depot_id: str) -> list[ProductWithPricing]:
        cached = self.resident_catalog(depot_id)
        if cached is not None:
            return cached
        return await self.fetch_catalog(depot_id)

    def invalidate(self, depot_id: str | None = None) -> None:
        if depot_id is None:
            self._resident.clear()
        else:
            self._resident.pop(depot_id, None)
