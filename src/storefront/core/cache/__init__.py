from storefront.core.cache.cache_paths import resolve_cache_path
from storefront.core.cache.location_cache import LocationCacheError, LocationCacheManager

__all__ = ["LocationCacheError", "LocationCacheManager", "resolve_cache_path"]
