from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "SNF Storefront Engine"
    DEBUG: bool = False

    # Backend
    API_BASE_URL: str = "http://localhost:3000"
    REQUEST_TIMEOUT_SECONDS: float = 10.0
    MAX_RETRIES: int = 2

    # Geolocation and reverse geocoding
    GEOCODING_API_URL: str = "https://api.opencagedata.com/geocode/v1/json"
    GEOCODING_API_KEY: str = ""
    GEOLOCATION_TIMEOUT_SECONDS: float = 10.0

    # Depot and catalog caching
    DEPOT_CACHE_TTL_SECONDS: int = 30 * 60
    CATALOG_CACHE_TTL_SECONDS: int = 15 * 60
    PRICE_REFRESH_INTERVAL_SECONDS: float = 5 * 60

    # Persisted location
    CACHE_ROOT: Path = Path(".cache") / "storefront"
    LOCATION_STORAGE_KEY: str = "snf.deliveryLocation"
    LEGACY_PINCODE_STORAGE_KEY: str = "snf.pincode"

    # Cart and availability
    MAX_CART_QUANTITY: int = 99
    MINIMUM_ORDER_AMOUNT: float = 100.0

    class Config:
        case_sensitive = True
        env_prefix = "SNF_"


settings = Settings()
