from __future__ import annotations

import pytest

from storefront.core.depot.models import AreaMaster
from storefront.core.errors import ErrorType, StorefrontError

from conftest import DEPOT_B, OFFLINE_DEPOT


@pytest.mark.asyncio
async def test_resolve_depot_returns_depot_and_availability(depot_resolver) -> None:
    resolution = await depot_resolver.resolve_depot("421202")

    assert resolution.depot.id == "1"
    assert resolution.area.name == "Dombivli East"
    assert resolution.availability.is_available is True
    assert resolution.availability.estimated_delivery_time == "Same day delivery"
    assert resolution.availability.delivery_charges == 0
    assert resolution.availability.minimum_order_amount == 100.0
    assert resolution.availability.message == "Service available in your area"


@pytest.mark.asyncio
async def test_repeated_resolution_is_cached_and_stable(depot_resolver, depot_lookup) -> None:
    first = await depot_resolver.resolve_depot("421202")
    depot_lookup.areas["421202"] = [AreaMaster(id=99, name="Elsewhere", depot=DEPOT_B)]
    second = await depot_resolver.resolve_depot("421202")

    assert first.depot.id == second.depot.id == "1"
    assert depot_lookup.calls == [("areas_for_pincode", "421202")]

    depot_resolver.clear_cache()
    third = await depot_resolver.resolve_depot("421202")
    assert third.depot.id == "2"


@pytest.mark.asyncio
async def test_first_area_with_a_depot_wins(depot_resolver, depot_lookup) -> None:
    depot_lookup.areas["400070"] = [
        AreaMaster(id=1, name="No depot", depot=None),
        AreaMaster(id=2, name="Thane", depot=DEPOT_B),
    ]

    resolution = await depot_resolver.resolve_depot("400070")

    assert resolution.depot.id == "2"


@pytest.mark.asyncio
async def test_unserved_pincode_is_depot_not_found(depot_resolver) -> None:
    with pytest.raises(StorefrontError) as excinfo:
        await depot_resolver.resolve_depot("999999")

    assert excinfo.value.type is ErrorType.DEPOT_NOT_FOUND
    assert excinfo.value.error.recoverable is True


@pytest.mark.asyncio
async def test_transport_failure_is_network_error(depot_resolver, depot_lookup) -> None:
    depot_lookup.unavailable = True

    with pytest.raises(StorefrontError) as excinfo:
        await depot_resolver.resolve_depot("421202")

    assert excinfo.value.type is ErrorType.NETWORK_ERROR


def test_offline_depot_is_never_available(depot_resolver) -> None:
    availability = depot_resolver.compute_availability(OFFLINE_DEPOT)

    assert availability.is_available is False
    assert availability.delivery_charges is None


@pytest.mark.asyncio
async def test_get_depot_and_fallback(depot_resolver, depot_lookup) -> None:
    assert (await depot_resolver.get_depot("2")).name == "Thane Depot"
    with pytest.raises(StorefrontError) as excinfo:
        await depot_resolver.get_depot("404")
    assert excinfo.value.type is ErrorType.DEPOT_NOT_FOUND

    assert (await depot_resolver.fallback_depot()).id == "1"
    depot_lookup.unavailable = True
    assert await depot_resolver.fallback_depot() is None


@pytest.mark.asyncio
async def test_depots_for_pincode_are_unique(depot_resolver, depot_lookup) -> None:
    depot_lookup.areas["400070"] = [
        AreaMaster(id=1, name="A", depot=DEPOT_B),
        AreaMaster(id=2, name="B", depot=DEPOT_B),
    ]

    depots = await depot_resolver.depots_for_pincode("400070")

    assert [depot.id for depot in depots] == ["2"]
