from __future__ import annotations

from fastapi import APIRouter, Request

from storefront.core.pricing.context import PricingContext

router = APIRouter(tags=["storefront"])


def get_context(request: Request) -> PricingContext:
    """Return the PricingContext created by the application lifespan."""
    return request.app.state.context


__all__ = ["router", "get_context"]
