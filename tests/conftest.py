from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

# Ensure src/ is on the import path when tests are run from the repo root.
PROJECT_SRC: Path = Path(__file__).resolve().parents[1] / "src"
if str(PROJECT_SRC) not in sys.path:
    sys.path.insert(0, str(PROJECT_SRC))

from storefront.core.backend.exceptions import BackendUnavailableError  # noqa: E402
from storefront.core.cache.location_cache import LocationCacheManager  # noqa: E402
from storefront.core.cart.store import CartStore  # noqa: E402
from storefront.core.catalog.service import CatalogPricingService  # noqa: E402
from storefront.core.depot.models import AreaMaster, Depot  # noqa: E402
from storefront.core.depot.resolver import DepotResolver  # noqa: E402
from storefront.core.location.geocoding import GeocodedPlace  # noqa: E402
from storefront.core.location.resolver import LocationResolver  # noqa: E402
from storefront.core.location.store import LocationStore  # noqa: E402
from storefront.core.pricing.context import PricingContext  # noqa: E402

STORAGE_KEY = "snf.deliveryLocation"
LEGACY_KEY = "snf.pincode"

DEPOT_A = Depot(id="1", name="Dombivli Depot", is_online=True)
DEPOT_B = Depot(id="2", name="Thane Depot", is_online=True)
OFFLINE_DEPOT = Depot(id="9", name="Closed Depot", is_online=False)


class StubDepotLookup:
    """Stands in for DepotLookupClient; records every call."""

    def __init__(self) -> None:
        self.areas: dict[str, list[AreaMaster]] = {
            "421202": [AreaMaster(id=11, name="Dombivli East", depot=DEPOT_A)],
            "400601": [AreaMaster(id=12, name="Thane West", depot=DEPOT_B)],
            "400001": [AreaMaster(id=13, name="Fort", depot=None)],
        }
        self.depots: dict[str, Depot] = {depot.id: depot for depot in (DEPOT_A, DEPOT_B, OFFLINE_DEPOT)}
        self.online: list[Depot] = [DEPOT_A, DEPOT_B]
        self.calls: list[tuple[str, str]] = []
        self.unavailable = False

    def _record(self, name: str, value: str) -> None:
        self.calls.append((name, value))
        if self.unavailable:
            raise BackendUnavailableError(f"{name} unreachable")

    def areas_for_pincode(self, pincode: str) -> list[AreaMaster]:
        self._record("areas_for_pincode", pincode)
        return self.areas.get(pincode, [])

    def depot_by_id(self, depot_id: str) -> Depot | None:
        self._record("depot_by_id", depot_id)
        return self.depots.get(depot_id)

    def online_depots(self) -> list[Depot]:
        self._record("online_depots", "")
        return list(self.online)


def variant_json(variant_id: int, depot_id: str, **overrides: Any) -> dict[str, Any]:
    payload = {
        "id": variant_id,
        "depotId": depot_id,
        "name": "500 ml",
        "mrp": "70.00",
        "buyOncePrice": 60,
        "closingQty": 5,
        "notInStock": False,
        "isHidden": False,
    }
    payload.update(overrides)
    return payload


def product_json(product_id: int, name: str, variants: list[dict[str, Any]], **overrides: Any) -> dict[str, Any]:
    payload = {
        "id": product_id,
        "name": name,
        "description": f"{name} delivered fresh",
        "categoryId": 1,
        "attachmentUrl": None,
        "variants": variants,
    }
    payload.update(overrides)
    return payload


class StubCatalogClient:
    """Stands in for StorefrontClient on the catalog endpoint."""

    def __init__(self, catalogs: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self.catalogs = catalogs or {}
        self.requests: list[str] = []
        self.failure: Exception | None = None

    def get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        depot_id = str((params or {}).get("depotId"))
        self.requests.append(depot_id)
        if self.failure is not None:
            raise self.failure
        return {"success": True, "data": self.catalogs.get(depot_id, [])}


class StubGeocoder:
    def __init__(self, place: GeocodedPlace | None = None) -> None:
        self.place = place or GeocodedPlace(pincode="421202", city="Dombivli", area_name="Dombivli East")
        self.calls = 0

    def reverse(self, coordinates) -> GeocodedPlace:
        self.calls += 1
        return self.place


def default_catalogs() -> dict[str, list[dict[str, Any]]]:
    return {
        DEPOT_A.id: [
            product_json(7, "A2 Milk", [variant_json(101, DEPOT_A.id, buyOncePrice=60, closingQty=5)]),
            product_json(8, "Paneer", [variant_json(102, DEPOT_A.id, name="200 g", buyOncePrice=90)], categoryId=2),
        ],
        DEPOT_B.id: [
            product_json(7, "A2 Milk", [variant_json(209, DEPOT_B.id, buyOncePrice=65, closingQty=2)]),
        ],
    }


@pytest.fixture
def location_cache(tmp_path):
    cache = LocationCacheManager(root=tmp_path)
    yield cache
    cache.close()


@pytest.fixture
def location_store(location_cache) -> LocationStore:
    return LocationStore(location_cache, STORAGE_KEY)


@pytest.fixture
def depot_lookup() -> StubDepotLookup:
    return StubDepotLookup()


@pytest.fixture
def depot_resolver(depot_lookup) -> DepotResolver:
    return DepotResolver(depot_lookup, minimum_order_amount=100.0, cache_ttl_seconds=1800)


@pytest.fixture
def geocoder() -> StubGeocoder:
    return StubGeocoder()


@pytest.fixture
def location_resolver(location_store, depot_resolver, geocoder) -> LocationResolver:
    return LocationResolver(location_store, depot_resolver, geocoder, geolocation_timeout_seconds=1.0)


@pytest.fixture
def catalog_client() -> StubCatalogClient:
    return StubCatalogClient(default_catalogs())


@pytest.fixture
def catalog_service(catalog_client) -> CatalogPricingService:
    return CatalogPricingService(catalog_client, cache_ttl_seconds=900)


@pytest.fixture
def pricing_context(location_store, location_resolver, depot_resolver, catalog_service) -> PricingContext:
    return PricingContext(
        store=location_store,
        locations=location_resolver,
        depots=depot_resolver,
        catalog=catalog_service,
        cart=CartStore(max_quantity=99),
        refresh_interval_seconds=300,
        legacy_storage_key=LEGACY_KEY,
    )
