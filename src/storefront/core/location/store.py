from __future__ import annotations

import logging
from typing import Callable

from storefront.core.cache.location_cache import LocationCacheError, LocationCacheManager, decode_record
from storefront.core.errors import ErrorType, StorefrontError
from storefront.core.location.models import DeliveryLocation, LocationChange

logger = logging.getLogger(__name__)

LocationListener = Callable[[LocationChange], None]


class LocationStore:
    """Single owner of the persisted delivery location.

    Writes go to the shared disk cache first and are then published to
    in-process listeners. Changes made by other tabs arrive through
    ``handle_storage_event`` and are republished the same way.
    """

    def __init__(self, cache: LocationCacheManager, storage_key: str) -> None:
        self.cache = cache
        self.storage_key = storage_key
        self._listeners: list[LocationListener] = []

    def subscribe(self, listener: LocationListener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def load_current_location(self) -> DeliveryLocation | None:
        """Read the persisted location, raising CACHE_ERROR when the record is corrupted."""
        try:
            record = self.cache.load_record(self.storage_key)
            if record is None:
                return None
            return DeliveryLocation.from_dict(record)
        except (LocationCacheError, ValueError, TypeError) as exc:
            raise StorefrontError.of(ErrorType.CACHE_ERROR, f"Stored delivery location is corrupted: {exc}") from exc

    def get_current_location(self) -> DeliveryLocation | None:
        """Read the persisted location; corrupted records are discarded and read as absent."""
        try:
            return self.load_current_location()
        except StorefrontError as exc:
            logger.warning("Discarding persisted delivery location: %s", exc)
            self.cache.remove(self.storage_key)
            return None

    def save(self, location: DeliveryLocation) -> LocationChange:
        """Persist location (last writer wins) and notify listeners after the write."""
        previous = self.get_current_location()
        self.cache.save_record(self.storage_key, location.to_dict())
        logger.info(
            "Stored delivery location pincode=%s depot=%s source=%s",
            location.pincode,
            location.depot_id,
            location.source.value,
        )
        change = LocationChange(key=self.storage_key, previous=previous, current=location)
        self._publish(change)
        return change

    def clear_current_location(self) -> None:
        previous = self.get_current_location()
        removed = self.cache.remove(self.storage_key)
        if removed or previous is not None:
            self._publish(LocationChange(key=self.storage_key, previous=previous, current=None))

    def handle_storage_event(self, key: str | None, old_value: str | None, new_value: str | None) -> None:
        """Apply a storage-change notification raised by another tab.

        ``key`` of ``None`` means the whole storage area was cleared. The
        store is always re-read rather than trusting ``new_value``.
        """
        if key is not None and key != self.storage_key:
            return
        previous = _decode_event_value(old_value)
        current = self.get_current_location()
        logger.info(
            "Received cross-tab location change (depot %s -> %s)",
            previous.depot_id if previous else None,
            current.depot_id if current else None,
        )
        if new_value is not None and current is None:
            logger.debug("Storage event carried a value that is no longer persisted")
        self._publish(LocationChange(key=self.storage_key, previous=previous, current=current, external=True))

    def _publish(self, change: LocationChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception("Location listener failed for %s", change.key)


def _decode_event_value(raw: str | None) -> DeliveryLocation | None:
    if raw is None:
        return None
    try:
        return DeliveryLocation.from_dict(decode_record(raw))
    except (LocationCacheError, ValueError, TypeError):
        return None
