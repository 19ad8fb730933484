from __future__ import annotations

import pytest

from storefront.core.backend.exceptions import (
    BackendRequestError,
    BackendResponseError,
    BackendUnavailableError,
)
from storefront.core.catalog.responses import parse_catalog
from storefront.core.errors import ErrorType, StorefrontError

from conftest import product_json, variant_json


def test_parse_catalog_accepts_bare_list_and_products_envelope() -> None:
    products = [product_json(7, "A2 Milk", [variant_json(101, "1")])]

    bare = parse_catalog({"success": True, "data": products}, "1")
    wrapped = parse_catalog({"success": True, "data": {"products": products}}, "1")

    assert bare == wrapped
    assert bare[0].product.name == "A2 Milk"
    assert bare[0].variants[0].mrp == 70.0


def test_variants_without_depot_are_stamped_with_requested_depot() -> None:
    raw = variant_json(101, "1")
    del raw["depotId"]

    catalog = parse_catalog({"data": [product_json(7, "A2 Milk", [raw])]}, "3")

    assert catalog[0].variants[0].depot_id == "3"


def test_variant_from_another_depot_is_rejected() -> None:
    with pytest.raises(BackendResponseError):
        parse_catalog({"data": [product_json(7, "A2 Milk", [variant_json(101, "2")])]}, "1")


def test_best_price_ignores_hidden_and_out_of_stock_variants() -> None:
    variants = [
        variant_json(1, "1", buyOncePrice=40, isHidden=True),
        variant_json(2, "1", buyOncePrice=45, notInStock=True),
        variant_json(3, "1", buyOncePrice=None, mrp="55"),
        variant_json(4, "1", buyOncePrice=58),
    ]

    [entry] = parse_catalog({"data": [product_json(7, "A2 Milk", variants)]}, "1")

    assert entry.best_price == 55.0


def test_best_price_is_zero_without_purchasable_variants() -> None:
    [entry] = parse_catalog({"data": [product_json(7, "A2 Milk", [variant_json(1, "1", notInStock=True)])]}, "1")

    assert entry.best_price == 0


@pytest.mark.asyncio
async def test_fetch_is_depot_scoped_and_replaces_resident_copy(catalog_service, catalog_client) -> None:
    first = await catalog_service.fetch_catalog("1")
    second = await catalog_service.fetch_catalog("2")

    assert catalog_client.requests == ["1", "2"]
    assert {variant.depot_id for entry in first for variant in entry.variants} == {"1"}
    assert {variant.depot_id for entry in second for variant in entry.variants} == {"2"}
    assert catalog_service.resident_catalog("2") == second


@pytest.mark.asyncio
async def test_get_catalog_uses_resident_copy(catalog_service, catalog_client) -> None:
    await catalog_service.get_catalog("1")
    await catalog_service.get_catalog("1")
    assert catalog_client.requests == ["1"]

    catalog_service.invalidate("1")
    await catalog_service.get_catalog("1")
    assert catalog_client.requests == ["1", "1"]


@pytest.mark.asyncio
async def test_empty_catalog_is_valid(catalog_service) -> None:
    assert await catalog_service.fetch_catalog("77") == []
    assert catalog_service.resident_catalog("77") == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("failure", "expected"),
    [
        (BackendUnavailableError("offline"), ErrorType.NETWORK_ERROR),
        (BackendRequestError("500 Server Error", status=500), ErrorType.API_ERROR),
        (BackendResponseError("bad payload"), ErrorType.API_ERROR),
    ],
)
async def test_fetch_failures_are_translated(catalog_service, catalog_client, failure, expected) -> None:
    catalog_client.failure = failure

    with pytest.raises(StorefrontError) as excinfo:
        await catalog_service.fetch_catalog("1")

    assert excinfo.value.type is expected
    assert catalog_service.resident_catalog("1") is None
