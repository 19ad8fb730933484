from __future__ import annotations

from enum import Enum
from typing import Iterable, Sequence

from storefront.core.catalog.models import DepotVariant, ProductWithPricing, VariantAvailability

ALL_CATEGORIES = "all"


class SortKey(str, Enum):
    RELEVANCE = "relevance"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    # Placeholder: no popularity signal exists yet, newer products rank first.
    POPULARITY_DESC = "popularity_desc"


def search_products(products: Sequence[ProductWithPricing], query: str | None) -> list[ProductWithPricing]:
    """Case-insensitive substring match on product name or description."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(products)
    return [
        item
        for item in products
        if needle in item.product.name.lower() or needle in (item.product.description or "").lower()
    ]


def filter_by_categories(
    products: Sequence[ProductWithPricing],
    categories: Iterable[int | str] | None,
) -> list[ProductWithPricing]:
    selected = {str(category) for category in categories or ()}
    if not selected or ALL_CATEGORIES in selected:
        return list(products)
    return [
        item
        for item in products
        if item.product.category_id is not None and str(item.product.category_id) in selected
    ]


def sort_products(products: Sequence[ProductWithPricing], key: SortKey | str = SortKey.RELEVANCE) -> list[ProductWithPricing]:
    sort_key = SortKey(key)
    if sort_key is SortKey.PRICE_ASC:
        return sorted(products, key=lambda item: item.best_price)
    if sort_key is SortKey.PRICE_DESC:
        return sorted(products, key=lambda item: item.best_price, reverse=True)
    if sort_key is SortKey.POPULARITY_DESC:
        return sorted(products, key=lambda item: item.product.id, reverse=True)
    return sorted(products, key=lambda item: (item.best_price, item.product.id))


def apply_catalog_query(
    products: Sequence[ProductWithPricing],
    query: str | None = None,
    categories: Iterable[int | str] | None = None,
    sort: SortKey | str = SortKey.RELEVANCE,
) -> list[ProductWithPricing]:
    """Search, then category filter, then sort. Never mutates the input."""
    matched = search_products(products, query)
    matched = filter_by_categories(matched, categories)
    return sort_products(matched, sort)


def find_variant(catalog: Sequence[ProductWithPricing], variant_id: int) -> DepotVariant | None:
    for item in catalog:
        for variant in item.variants:
            if variant.id == variant_id:
                return variant
    return None


def check_variant_availability(
    catalog: Sequence[ProductWithPricing],
    variant_id: int,
    requested_quantity: int = 1,
) -> VariantAvailability:
    variant = find_variant(catalog, variant_id)
    if variant is None:
        return VariantAvailability(is_available=False, reason="Not available in this location")
    if variant.not_in_stock or variant.is_hidden:
        reason = "Out of stock" if variant.not_in_stock else "Currently unavailable"
        return VariantAvailability(is_available=False, reason=reason)
    if variant.closing_qty is not None and variant.closing_qty < requested_quantity:
        return VariantAvailability(
            is_available=False,
            reason=f"Only {variant.closing_qty} available",
            max_quantity=variant.closing_qty,
        )
    return VariantAvailability(
        is_available=True,
        max_quantity=variant.closing_qty,
        current_price=variant.unit_price,
    )
