from __future__ import annotations

from fastapi import Depends, Query

from storefront.core.catalog.filtering import SortKey, apply_catalog_query
from storefront.core.pricing.context import PricingContext
from storefront.models.storefront import ProductsResponse

from .dependencies import get_context, router
from .helpers import shape_product


@router.get("/products", response_model=ProductsResponse)
async def list_products(
    q: str | None = None,
    categories: list[str] = Query(default=[]),
    sort: SortKey = SortKey.RELEVANCE,
    context: PricingContext = Depends(get_context),
) -> ProductsResponse:
    """Return the active depot's catalog after search, category filter and sort."""
    products = apply_catalog_query(context.state.products, q, categories, sort)
    return ProductsResponse(
        depot_id=context.state.depot.id if context.state.depot else None,
        query=q,
        sort=sort,
        total=len(products),
        products=[shape_product(entry) for entry in products],
    )
