import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import diskcache as dc

from storefront.core.cache.cache_paths import resolve_cache_path

logger = logging.getLogger(__name__)


class LocationCacheError(ValueError):
    """Raised when a persisted location record cannot be decoded."""


class LocationCacheManager:
    """Persists the serialized delivery location using DiskCache.

    The cache directory is shared by every process (tab) of the storefront, so
    the last writer wins.
    """

    def __init__(self, root: Optional[Path] = None):
        cache_dir = resolve_cache_path("location", root)
        self.cache = dc.Cache(str(cache_dir))
        logger.info(f"Initialized LocationCacheManager at {cache_dir}")

    def save_raw(self, key: str, value: str):
        """Store a raw string value under key."""
        self.cache.set(key, value)

    def load_raw(self, key: str) -> Optional[str]:
        """Return the raw stored string for key, if any."""
        value = self.cache.get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            raise LocationCacheError(f"Unexpected value type {type(value).__name__} stored under {key}")
        return value

    def save_record(self, key: str, record: Dict[str, Any]) -> str:
        """Serialize and store a location record; returns the stored JSON."""
        serialized = json.dumps(record, sort_keys=True)
        self.save_raw(key, serialized)
        logger.debug("Saved location record under %s", key)
        return serialized

    def load_record(self, key: str) -> Optional[Dict[str, Any]]:
        """Load and decode a location record, raising LocationCacheError when corrupted."""
        raw = self.load_raw(key)
        if raw is None:
            return None
        return decode_record(raw)

    def remove(self, key: str) -> bool:
        """Delete key; returns True when something was removed."""
        if key in self.cache:
            del self.cache[key]
            logger.info("Cleared location cache entry %s", key)
            return True
        return False

    def close(self):
        self.cache.close()

    def cache_info(self):
        """Get cache information for debugging."""
        size = len(self.cache)
        volume_path = self.cache.directory
        return f"Location cache size: {size} entries at {volume_path}"


def decode_record(raw: str) -> Dict[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise LocationCacheError(f"Stored location is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise LocationCacheError("Stored location must be a JSON object")
    return parsed
