from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from storefront.core.catalog.filtering import SortKey
from storefront.core.errors import ErrorType
from storefront.core.location.models import LocationSource


class PincodeRequest(BaseModel):
    pincode: str


class GeolocationReport(BaseModel):
    """What the browser reported: coordinates, or a platform error code (1, 2 or 3)."""

    latitude: float | None = None
    longitude: float | None = None
    accuracy: float | None = None
    error_code: int | None = None
    error_message: str = ""


class ErrorPayload(BaseModel):
    type: ErrorType
    message: str | None = None
    recoverable: bool = True
    title: str
    description: str
    can_retry: bool


class DeliveryLocationPayload(BaseModel):
    pincode: str
    source: LocationSource
    resolved_at: datetime
    area_name: str | None = None
    area_id: int | None = None
    depot_id: str | None = None
    depot_name: str | None = None
    city: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class LocationResponse(BaseModel):
    location: DeliveryLocationPayload | None = None


class DepotPayload(BaseModel):
    id: str
    name: str
    is_online: bool
    address: str | None = None
    contact_number: str | None = None


class DepotsResponse(BaseModel):
    pincode: str
    depots: list[DepotPayload]


class ServiceAvailabilityPayload(BaseModel):
    is_available: bool
    estimated_delivery_time: str | None = None
    delivery_charges: float | None = None
    minimum_order_amount: float | None = None
    message: str | None = None


class RefreshStatusPayload(BaseModel):
    is_running: bool
    is_refreshing: bool
    last_refresh_time: datetime | None = None
    refresh_error: ErrorPayload | None = None


class PricingStateResponse(BaseModel):
    location: DeliveryLocationPayload | None = None
    depot: DepotPayload | None = None
    service_availability: ServiceAvailabilityPayload | None = None
    product_count: int
    is_loading: bool
    error: ErrorPayload | None = None
    refresh: RefreshStatusPayload


class VariantPayload(BaseModel):
    id: int
    product_id: int
    depot_id: str
    name: str
    mrp: float
    buy_once_price: float | None = None
    closing_qty: int | None = None
    not_in_stock: bool
    is_hidden: bool
    unit_price: float


class ProductPayload(BaseModel):
    id: int
    name: str
    description: str = ""
    category_id: int | None = None
    attachment_url: str | None = None
    best_price: float
    variants: list[VariantPayload]


class ProductsResponse(BaseModel):
    depot_id: str | None = None
    query: str | None = None
    sort: SortKey
    total: int
    products: list[ProductPayload]


class PriceRefreshResponse(BaseModel):
    refreshed: bool
    refresh: RefreshStatusPayload


class AddCartItemRequest(BaseModel):
    variant_id: int
    quantity: int = Field(default=1, ge=1)


class UpdateCartItemRequest(BaseModel):
    quantity: int


class ValidateCartRequest(BaseModel):
    depot_id: str | None = None


class CartItemPayload(BaseModel):
    variant_id: int
    product_id: int
    depot_id: str
    name: str
    variant_name: str
    price: float
    quantity: int
    line_total: float
    is_available: bool | None = None
    unavailable_reason: str | None = None
    closing_qty: int | None = None
    image_url: str | None = None
    original_depot_id: str | None = None
    original_variant_id: int | None = None


class CartSummaryPayload(BaseModel):
    total_items: int
    available_count: int
    unavailable_count: int
    message: str


class CartResponse(BaseModel):
    items: list[CartItemPayload]
    total_quantity: int
    subtotal: float
    available_subtotal: float
    summary: CartSummaryPayload
