from __future__ import annotations

from fastapi import Depends

from storefront.core.pricing.context import PricingContext
from storefront.models.storefront import PriceRefreshResponse, PricingStateResponse

from .dependencies import get_context, router
from .helpers import shape_availability, shape_depot, shape_error, shape_location, shape_refresh


def pricing_state(context: PricingContext) -> PricingStateResponse:
    state = context.state
    return PricingStateResponse(
        location=shape_location(state.location),
        depot=shape_depot(state.depot),
        service_availability=shape_availability(state.service_availability),
        product_count=len(state.products),
        is_loading=state.is_loading,
        error=shape_error(state.error),
        refresh=shape_refresh(context.refresher),
    )


@router.get("/pricing", response_model=PricingStateResponse)
async def get_pricing(context: PricingContext = Depends(get_context)) -> PricingStateResponse:
    """Return the aggregate location, depot and refresh state."""
    return pricing_state(context)


@router.post("/prices/refresh", response_model=PriceRefreshResponse)
async def refresh_prices(force: bool = True, context: PricingContext = Depends(get_context)) -> PriceRefreshResponse:
    """Trigger an out-of-band price refresh; overlapping requests are coalesced.

    With force=false prices are only refetched once older than the refresh interval.
    """
    refreshed = await context.refresh_prices(force=force)
    return PriceRefreshResponse(refreshed=refreshed, refresh=shape_refresh(context.refresher))


@router.delete("/error", response_model=PricingStateResponse)
async def dismiss_error(context: PricingContext = Depends(get_context)) -> PricingStateResponse:
    context.set_error(None)
    return pricing_state(context)
