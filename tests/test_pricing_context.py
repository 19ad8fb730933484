from __future__ import annotations

import pytest

from storefront.core.backend.exceptions import BackendUnavailableError
from storefront.core.cart.models import CartItemError
from storefront.core.errors import ErrorType, PricingError, StorefrontError
from storefront.core.location.geocoding import GeocodedPlace
from storefront.core.location.geolocation import ReportedPosition
from storefront.core.location.models import Coordinates, DeliveryLocation, LocationSource
from storefront.core.location.store import LocationStore

from conftest import STORAGE_KEY, product_json, variant_json


@pytest.mark.asyncio
async def test_initialize_falls_back_to_first_online_depot(pricing_context) -> None:
    await pricing_context.initialize()

    state = pricing_context.state
    assert state.location is None
    assert state.depot.id == "1"
    assert state.service_availability.is_available is True
    assert [entry.product.id for entry in state.products] == [7, 8]
    assert state.error is None


@pytest.mark.asyncio
async def test_initialize_applies_persisted_location(pricing_context, location_cache, catalog_client) -> None:
    location = DeliveryLocation(pincode="400601", source=LocationSource.MANUAL, depot_id="2", depot_name="Thane Depot")
    location_cache.save_record(STORAGE_KEY, location.to_dict())

    await pricing_context.initialize()

    assert pricing_context.state.location.pincode == "400601"
    assert pricing_context.state.depot.id == "2"
    assert catalog_client.requests == ["2"]


@pytest.mark.asyncio
async def test_initialize_reports_corrupted_location(pricing_context, location_cache) -> None:
    location_cache.save_raw(STORAGE_KEY, "{broken")

    await pricing_context.initialize()

    assert pricing_context.state.error.type is ErrorType.CACHE_ERROR
    assert pricing_context.state.depot.id == "1"
    assert location_cache.load_raw(STORAGE_KEY) is None


@pytest.mark.asyncio
async def test_pincode_switch_revalidates_cart_end_to_end(pricing_context) -> None:
    await pricing_context.resolve_pincode("421202")
    pricing_context.add_variant(101, 3)

    await pricing_context.resolve_pincode("400601")

    state = pricing_context.state
    assert state.depot.id == "2"
    assert pricing_context.tracker.previous_depot_id == "1"
    [item] = pricing_context.cart.items
    assert (item.variant_id, item.depot_id, item.quantity, item.price, item.is_available) == (209, "2", 2, 65, True)
    assert pricing_context.subtotal == pricing_context.available_subtotal == 130


@pytest.mark.asyncio
async def test_same_depot_resolution_does_not_refetch(pricing_context, catalog_client, depot_lookup) -> None:
    depot_lookup.areas["421201"] = depot_lookup.areas["421202"]

    await pricing_context.resolve_pincode("421202")
    await pricing_context.resolve_pincode("421201")

    assert catalog_client.requests == ["1"]
    assert pricing_context.state.location.pincode == "421201"


@pytest.mark.asyncio
async def test_invalid_pincode_records_error_without_network(pricing_context, depot_lookup) -> None:
    with pytest.raises(StorefrontError):
        await pricing_context.resolve_pincode("12ab")

    assert pricing_context.state.error.type is ErrorType.INVALID_PINCODE
    assert depot_lookup.calls == []

    pricing_context.set_error(None)
    assert pricing_context.state.error is None


@pytest.mark.asyncio
async def test_successful_resolution_supersedes_error(pricing_context) -> None:
    pricing_context.set_error(PricingError(type=ErrorType.DEPOT_NOT_FOUND))

    await pricing_context.resolve_pincode("421202")

    assert pricing_context.state.error is None


@pytest.mark.asyncio
async def test_geolocated_pincode_without_depot(pricing_context, geocoder) -> None:
    geocoder.place = GeocodedPlace(pincode="400001", city="Mumbai")

    with pytest.raises(StorefrontError) as excinfo:
        await pricing_context.resolve_geolocation(ReportedPosition(coordinates=Coordinates(18.93, 72.83)))

    assert excinfo.value.type is ErrorType.DEPOT_NOT_FOUND
    state = pricing_context.state
    assert state.location.pincode == "400001"
    assert state.depot is None
    assert state.products == []
    assert state.error.type is ErrorType.DEPOT_NOT_FOUND


@pytest.mark.asyncio
async def test_cross_tab_change_is_applied(pricing_context, location_cache) -> None:
    await pricing_context.resolve_pincode("421202")
    other_tab = LocationStore(location_cache, STORAGE_KEY)
    old_value = location_cache.load_raw(STORAGE_KEY)
    other_tab.save(DeliveryLocation(pincode="400601", source=LocationSource.MANUAL, depot_id="2"))

    pricing_context.handle_storage_event(STORAGE_KEY, old_value, location_cache.load_raw(STORAGE_KEY))
    await pricing_context.wait_idle()

    assert pricing_context.state.depot.id == "2"


@pytest.mark.asyncio
async def test_newer_location_supersedes_pending_one(pricing_context, location_store, catalog_client) -> None:
    location_store.save(DeliveryLocation(pincode="421202", source=LocationSource.MANUAL, depot_id="1"))
    location_store.save(DeliveryLocation(pincode="400601", source=LocationSource.MANUAL, depot_id="2"))

    await pricing_context.wait_idle()

    assert pricing_context.state.location.pincode == "400601"
    assert pricing_context.state.depot.id == "2"
    assert {variant.depot_id for entry in pricing_context.state.products for variant in entry.variants} == {"2"}
    assert pricing_context.state.is_loading is False


@pytest.mark.asyncio
async def test_manual_depot_override_restamps_location(pricing_context, location_store, depot_lookup) -> None:
    await pricing_context.resolve_pincode("421202")

    depot = await pricing_context.set_depot_by_id("2")

    assert depot.id == "2"
    assert pricing_context.state.depot.id == "2"
    assert location_store.get_current_location().depot_id == "2"
    assert location_store.get_current_location().pincode == "421202"
    assert depot_lookup.calls.count(("depot_by_id", "2")) == 1


@pytest.mark.asyncio
async def test_clear_location_resets_state(pricing_context) -> None:
    await pricing_context.resolve_pincode("421202")

    pricing_context.clear_location()
    await pricing_context.wait_idle()

    state = pricing_context.state
    assert state.location is None
    assert state.depot is None
    assert state.products == []
    assert pricing_context.catalog.resident_catalog("1") is None


@pytest.mark.asyncio
async def test_failed_refresh_keeps_displayed_prices(pricing_context, catalog_client) -> None:
    await pricing_context.resolve_pincode("421202")
    products = pricing_context.state.products
    catalog_client.failure = BackendUnavailableError("offline")

    assert await pricing_context.refresh_prices() is True

    assert pricing_context.state.products == products
    assert pricing_context.refresher.refresh_error.type is ErrorType.NETWORK_ERROR
    assert pricing_context.refresher.is_refreshing is False
    assert pricing_context.state.error is None


@pytest.mark.asyncio
async def test_refresh_replaces_products_for_active_depot(pricing_context, catalog_client) -> None:
    await pricing_context.resolve_pincode("421202")
    pricing_context.start_background_refresh()
    catalog_client.catalogs["1"] = [product_json(7, "A2 Milk", [variant_json(101, "1", buyOncePrice=58)])]

    try:
        await pricing_context.refresh_prices()
    finally:
        await pricing_context.shutdown()

    assert [entry.best_price for entry in pricing_context.state.products] == [58]


@pytest.mark.asyncio
async def test_initial_catalog_failure_clears_products(pricing_context, catalog_client) -> None:
    catalog_client.failure = BackendUnavailableError("offline")

    with pytest.raises(StorefrontError) as excinfo:
        await pricing_context.resolve_pincode("421202")

    assert excinfo.value.type is ErrorType.NETWORK_ERROR
    assert pricing_context.state.products == []
    assert pricing_context.state.depot.id == "1"
    assert pricing_context.state.error.type is ErrorType.NETWORK_ERROR


@pytest.mark.asyncio
async def test_failed_switch_holds_lines_from_previous_depot(pricing_context, catalog_client) -> None:
    await pricing_context.resolve_pincode("421202")
    pricing_context.add_variant(101, 3)
    catalog_client.failure = BackendUnavailableError("offline")

    with pytest.raises(StorefrontError):
        await pricing_context.resolve_pincode("400601")

    assert pricing_context.state.depot.id == "2"
    [item] = pricing_context.cart.items
    assert item.is_available is False
    assert pricing_context.available_items == []
    assert pricing_context.available_subtotal == 0

    catalog_client.failure = None
    await pricing_context.resolve_pincode("400601")

    [item] = pricing_context.cart.items
    assert (item.variant_id, item.depot_id, item.quantity, item.is_available) == (209, "2", 2, True)


@pytest.mark.asyncio
async def test_held_lines_are_restored_when_returning_to_their_depot(pricing_context, catalog_client) -> None:
    await pricing_context.resolve_pincode("421202")
    pricing_context.add_variant(101, 3)
    catalog_client.failure = BackendUnavailableError("offline")
    with pytest.raises(StorefrontError):
        await pricing_context.resolve_pincode("400601")
    catalog_client.failure = None

    await pricing_context.resolve_pincode("421202")

    [item] = pricing_context.cart.items
    assert (item.variant_id, item.depot_id, item.quantity, item.is_available) == (101, "1", 3, True)
    assert pricing_context.state.depot.id == "1"


@pytest.mark.asyncio
async def test_unpurchasable_variant_cannot_be_added(pricing_context, catalog_client) -> None:
    catalog_client.catalogs["1"] = [product_json(7, "A2 Milk", [variant_json(101, "1", notInStock=True)])]
    await pricing_context.resolve_pincode("421202")

    with pytest.raises(CartItemError) as excinfo:
        pricing_context.add_variant(101)

    assert excinfo.value.reason == "Out of stock"
    with pytest.raises(CartItemError):
        pricing_context.add_variant(999)


@pytest.mark.asyncio
async def test_set_location_applies_persisted_depot(pricing_context, location_store) -> None:
    await pricing_context.set_location(DeliveryLocation(pincode="400601", source=LocationSource.MANUAL, depot_id="2"))

    assert pricing_context.state.depot.id == "2"
    assert location_store.get_current_location().pincode == "400601"
