from __future__ import annotations

import logging

from fastapi import Depends, HTTPException

from storefront.core.location.geolocation import ReportedPosition
from storefront.core.location.models import Coordinates
from storefront.core.pricing.context import PricingContext
from storefront.models.storefront import (
    DepotsResponse,
    GeolocationReport,
    LocationResponse,
    PincodeRequest,
    PricingStateResponse,
)

from .dependencies import get_context, router
from .helpers import shape_depot, shape_location
from .pricing import pricing_state

logger = logging.getLogger(__name__)


@router.get("/location", response_model=LocationResponse)
async def get_location(context: PricingContext = Depends(get_context)) -> LocationResponse:
    """Return the persisted delivery location, if any."""
    return LocationResponse(location=shape_location(context.locations.get_current_location()))


@router.delete("/location", response_model=PricingStateResponse)
async def clear_location(context: PricingContext = Depends(get_context)) -> PricingStateResponse:
    context.clear_location()
    await context.wait_idle()
    return pricing_state(context)


@router.post("/location/pincode", response_model=PricingStateResponse)
async def resolve_pincode(payload: PincodeRequest, context: PricingContext = Depends(get_context)) -> PricingStateResponse:
    """Resolve a typed pincode, switching depot and revalidating the cart when needed."""
    await context.resolve_pincode(payload.pincode)
    return pricing_state(context)


@router.post("/location/geolocation", response_model=PricingStateResponse)
async def resolve_geolocation(
    report: GeolocationReport,
    context: PricingContext = Depends(get_context),
) -> PricingStateResponse:
    """Resolve the position reported by the browser's geolocation API."""
    coordinates = None
    if report.latitude is not None and report.longitude is not None:
        coordinates = Coordinates(latitude=report.latitude, longitude=report.longitude, accuracy=report.accuracy)
    elif report.error_code is None:
        raise HTTPException(status_code=422, detail="Report either coordinates or an error_code")
    provider = ReportedPosition(
        coordinates=coordinates,
        error_code=report.error_code,
        error_message=report.error_message,
    )
    await context.resolve_geolocation(provider)
    return pricing_state(context)


@router.put("/depot/{depot_id}", response_model=PricingStateResponse)
async def set_depot(depot_id: str, context: PricingContext = Depends(get_context)) -> PricingStateResponse:
    """Manually override the serving depot."""
    depot = await context.set_depot_by_id(depot_id)
    logger.info("Depot manually set to %s", depot.id)
    return pricing_state(context)


@router.get("/depots", response_model=DepotsResponse)
async def list_depots(pincode: str, context: PricingContext = Depends(get_context)) -> DepotsResponse:
    """List every depot serving pincode, for choosing a manual override."""
    pincode = pincode.strip()
    depots = await context.depots.depots_for_pincode(pincode)
    return DepotsResponse(pincode=pincode, depots=[shape_depot(depot) for depot in depots])
