from __future__ import annotations

from typing import Any

from storefront.core.backend.exceptions import BackendResponseError
from storefront.core.backend.responses import (
    coerce_bool,
    optional_float,
    optional_int,
    optional_str,
    require_int,
    require_list,
    require_mapping,
    unwrap_data,
)
from storefront.core.catalog.models import DepotVariant, Product, ProductWithPricing


def parse_catalog(payload: Any, depot_id: str) -> list[ProductWithPricing]:
    """Parse ``/api/products/public`` into depot-scoped products.

    ``data`` is either a list of products or an object with a ``products``
    list. Variants without an explicit depot are stamped with depot_id.
    """
    data = unwrap_data(payload)
    if not data:
        return []
    if isinstance(data, dict):
        data = data.get("products") or []
    entries = require_list(data, "data")
    return [_parse_product_with_pricing(entry, depot_id) for entry in entries]


def _parse_product_with_pricing(raw: Any, depot_id: str) -> ProductWithPricing:
    entry = require_mapping(raw, "product")
    product = Product(
        id=require_int(entry.get("id"), "product.id"),
        name=optional_str(entry.get("name")) or "",
        description=optional_str(entry.get("description")) or "",
        category_id=optional_int(entry.get("categoryId"), "product.categoryId"),
        attachment_url=optional_str(entry.get("attachmentUrl")),
    )
    variants_raw = entry.get("variants") or []
    variants = [
        _parse_variant(variant, product.id, depot_id)
        for variant in require_list(variants_raw, f"product[{product.id}].variants")
    ]
    return ProductWithPricing.build(product, variants)


def _parse_variant(raw: Any, product_id: int, depot_id: str) -> DepotVariant:
    entry = require_mapping(raw, "variant")
    variant_depot = entry.get("depotId")
    if variant_depot is not None and str(variant_depot) != depot_id:
        raise BackendResponseError(
            f"Variant {entry.get('id')!r} belongs to depot {variant_depot}, expected {depot_id}"
        )
    return DepotVariant(
        id=require_int(entry.get("id"), "variant.id"),
        product_id=product_id,
        depot_id=depot_id,
        name=optional_str(entry.get("name")) or "",
        mrp=optional_float(entry.get("mrp"), "variant.mrp") or 0.0,
        buy_once_price=optional_float(entry.get("buyOncePrice"), "variant.buyOncePrice"),
        closing_qty=optional_int(entry.get("closingQty"), "variant.closingQty"),
        not_in_stock=coerce_bool(entry.get("notInStock"), "variant.notInStock"),
        is_hidden=coerce_bool(entry.get("isHidden"), "variant.isHidden"),
    )
