from __future__ import annotations

from fastapi import Depends, HTTPException

from storefront.core.cart.models import CartItemError
from storefront.core.pricing.context import PricingContext
from storefront.models.storefront import (
    AddCartItemRequest,
    CartResponse,
    UpdateCartItemRequest,
    ValidateCartRequest,
)

from .dependencies import get_context, router
from .helpers import shape_cart


@router.get("/cart", response_model=CartResponse)
async def get_cart(context: PricingContext = Depends(get_context)) -> CartResponse:
    return shape_cart(context.cart)


@router.post("/cart/items", response_model=CartResponse)
async def add_cart_item(payload: AddCartItemRequest, context: PricingContext = Depends(get_context)) -> CartResponse:
    """Add a variant of the active depot to the cart (existing lines are incremented)."""
    try:
        context.add_variant(payload.variant_id, payload.quantity)
    except CartItemError as error:
        raise HTTPException(status_code=409, detail=error.reason) from error
    return shape_cart(context.cart)


@router.patch("/cart/items/{variant_id}", response_model=CartResponse)
async def update_cart_item(
    variant_id: int,
    payload: UpdateCartItemRequest,
    context: PricingContext = Depends(get_context),
) -> CartResponse:
    if context.update_quantity(variant_id, payload.quantity) is None:
        raise HTTPException(status_code=404, detail=f"Variant {variant_id} is not in the cart")
    return shape_cart(context.cart)


@router.post("/cart/items/{variant_id}/increment", response_model=CartResponse)
async def increment_cart_item(variant_id: int, context: PricingContext = Depends(get_context)) -> CartResponse:
    if context.cart.increment(variant_id) is None:
        raise HTTPException(status_code=404, detail=f"Variant {variant_id} is not in the cart")
    return shape_cart(context.cart)


@router.post("/cart/items/{variant_id}/decrement", response_model=CartResponse)
async def decrement_cart_item(variant_id: int, context: PricingContext = Depends(get_context)) -> CartResponse:
    """Lower the quantity by one; a line never drops below one, use DELETE to remove it."""
    if context.cart.decrement(variant_id) is None:
        raise HTTPException(status_code=404, detail=f"Variant {variant_id} is not in the cart")
    return shape_cart(context.cart)


@router.delete("/cart/items/{variant_id}", response_model=CartResponse)
async def remove_cart_item(variant_id: int, context: PricingContext = Depends(get_context)) -> CartResponse:
    if not context.remove_item(variant_id):
        raise HTTPException(status_code=404, detail=f"Variant {variant_id} is not in the cart")
    return shape_cart(context.cart)


@router.delete("/cart/unavailable", response_model=CartResponse)
async def remove_unavailable_items(context: PricingContext = Depends(get_context)) -> CartResponse:
    context.cart.remove_unavailable_items()
    return shape_cart(context.cart)


@router.post("/cart/validate", response_model=CartResponse)
async def validate_cart(
    payload: ValidateCartRequest | None = None,
    context: PricingContext = Depends(get_context),
) -> CartResponse:
    """Revalidate every cart line against a depot (the active one by default)."""
    await context.validate_cart(payload.depot_id if payload else None)
    return shape_cart(context.cart)
