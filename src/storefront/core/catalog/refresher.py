from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from storefront.core.catalog.models import ProductWithPricing
from storefront.core.catalog.service import CatalogPricingService
from storefront.core.errors import PricingError, StorefrontError
from storefront.core.location.models import utc_now

logger = logging.getLogger(__name__)

CatalogListener = Callable[[str, list[ProductWithPricing]], None]
DepotIdProvider = Callable[[], Optional[str]]


class PriceRefresher:
    """Periodically re-fetches the active depot's catalog.

    One scheduler owns both the timer and manual refreshes; an in-flight
    flag coalesces overlapping calls. Failures are recorded in
    ``refresh_error`` and never reach ``on_update``, so displayed prices
    survive a failed refresh.
    """

    def __init__(
        self,
        catalog: CatalogPricingService,
        depot_id_provider: DepotIdProvider,
        interval_seconds: float,
    ) -> None:
        self.catalog = catalog
        self.depot_id_provider = depot_id_provider
        self.interval_seconds = interval_seconds
        self.is_refreshing = False
        self.last_refresh_time: datetime | None = None
        self.refresh_error: PricingError | None = None
        self._on_update: CatalogListener | None = None
        self._stop_event: asyncio.Event | None = None
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, interval_seconds: float | None = None, on_update: CatalogListener | None = None) -> None:
        if interval_seconds is not None:
            self.interval_seconds = interval_seconds
        if on_update is not None:
            self._on_update = on_update
        if self.is_running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._refresh_loop(self._stop_event))
        logger.info("Price refresher started (interval=%ss)", self.interval_seconds)

    async def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        task, self._task = self._task, None
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            logger.info("Price refresher cancelled during shutdown.")
        logger.info("Price refresher stopped.")

    async def refresh_now(self) -> bool:
        """Refresh immediately without touching the schedule.

        Returns ``False`` when another refresh is in flight or no depot is
        active; ``True`` once a fetch was attempted, whatever its outcome.
        """
        if self.is_refreshing:
            logger.debug("Price refresh already in flight; coalescing")
            return False
        depot_id = self.depot_id_provider()
        if not depot_id:
            return False

        self.is_refreshing = True
        try:
            catalog = await self.catalog.fetch_catalog(depot_id)
        except StorefrontError as exc:
            self.refresh_error = exc.error
            logger.warning("Background price refresh for depot %s failed: %s", depot_id, exc)
            return True
        finally:
            self.is_refreshing = False

        self.refresh_error = None
        self.last_refresh_time = utc_now()
        if self._on_update is not None:
            try:
                self._on_update(depot_id, catalog)
            except Exception:
                logger.exception("Price update listener failed for depot %s", depot_id)
        return True

    async def refresh_if_stale(self) -> bool:
        """Refresh only when the last success is older than the interval."""
        if self.last_refresh_time is not None:
            age = (utc_now() - self.last_refresh_time).total_seconds()
            if age < self.interval_seconds:
                return False
        return await self.refresh_now()

    async def _refresh_loop(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)
                break
            except asyncio.TimeoutError:
                pass
            await self.refresh_now()
