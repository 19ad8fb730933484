from storefront.core.catalog.filtering import (
    SortKey,
    apply_catalog_query,
    check_variant_availability,
    filter_by_categories,
    find_variant,
    search_products,
    sort_products,
)
from storefront.core.catalog.models import (
    DepotVariant,
    Product,
    ProductWithPricing,
    VariantAvailability,
    best_price,
)
from storefront.core.catalog.refresher import PriceRefresher
from storefront.core.catalog.service import CatalogPricingService

__all__ = [
    "CatalogPricingService",
    "DepotVariant",
    "PriceRefresher",
    "Product",
    "ProductWithPricing",
    "SortKey",
    "VariantAvailability",
    "apply_catalog_query",
    "best_price",
    "check_variant_availability",
    "filter_by_categories",
    "find_variant",
    "search_products",
    "sort_products",
]
