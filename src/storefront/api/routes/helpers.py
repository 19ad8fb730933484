from __future__ import annotations

from dataclasses import asdict

from storefront.core.cart.models import CartItem
from storefront.core.cart.store import CartStore
from storefront.core.catalog.models import ProductWithPricing
from storefront.core.catalog.refresher import PriceRefresher
from storefront.core.depot.models import Depot, ServiceAvailability
from storefront.core.errors import LOCATION_ERROR_TYPES, ErrorType, PricingError, describe_error
from storefront.core.location.models import DeliveryLocation
from storefront.models.storefront import (
    CartItemPayload,
    CartResponse,
    CartSummaryPayload,
    DeliveryLocationPayload,
    DepotPayload,
    ErrorPayload,
    ProductPayload,
    RefreshStatusPayload,
    ServiceAvailabilityPayload,
    VariantPayload,
)

_STATUS_BY_TYPE = {
    ErrorType.INVALID_PINCODE: 400,
    ErrorType.DEPOT_NOT_FOUND: 404,
    ErrorType.API_ERROR: 502,
    ErrorType.NETWORK_ERROR: 502,
    ErrorType.CACHE_ERROR: 500,
}


def status_for_error(error: PricingError) -> int:
    """HTTP status for an error record; geolocation failures are 422."""
    if error.type in _STATUS_BY_TYPE:
        return _STATUS_BY_TYPE[error.type]
    if error.type in LOCATION_ERROR_TYPES:
        return 422
    return 500


def shape_error(error: PricingError | None) -> ErrorPayload | None:
    if error is None:
        return None
    description = describe_error(error)
    return ErrorPayload(
        type=error.type,
        message=error.message,
        recoverable=error.recoverable,
        title=description.title,
        description=description.description,
        can_retry=description.can_retry,
    )


def shape_location(location: DeliveryLocation | None) -> DeliveryLocationPayload | None:
    if location is None:
        return None
    return DeliveryLocationPayload(**asdict(location))


def shape_depot(depot: Depot | None) -> DepotPayload | None:
    return DepotPayload(**asdict(depot)) if depot else None


def shape_availability(availability: ServiceAvailability | None) -> ServiceAvailabilityPayload | None:
    return ServiceAvailabilityPayload(**asdict(availability)) if availability else None


def shape_refresh(refresher: PriceRefresher) -> RefreshStatusPayload:
    return RefreshStatusPayload(
        is_running=refresher.is_running,
        is_refreshing=refresher.is_refreshing,
        last_refresh_time=refresher.last_refresh_time,
        refresh_error=shape_error(refresher.refresh_error),
    )


def shape_product(entry: ProductWithPricing) -> ProductPayload:
    return ProductPayload(
        **asdict(entry.product),
        best_price=entry.best_price,
        variants=[VariantPayload(**asdict(variant), unit_price=variant.unit_price) for variant in entry.variants],
    )


def shape_cart_item(item: CartItem) -> CartItemPayload:
    return CartItemPayload(**asdict(item), line_total=item.line_total)


def shape_cart(cart: CartStore) -> CartResponse:
    summary = cart.validation_summary()
    return CartResponse(
        items=[shape_cart_item(item) for item in cart.items],
        total_quantity=cart.total_quantity,
        subtotal=cart.subtotal,
        available_subtotal=cart.available_subtotal,
        summary=CartSummaryPayload(**asdict(summary)),
    )
