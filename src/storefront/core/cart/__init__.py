from storefront.core.cart.consistency import CartConsistencyEngine
from storefront.core.cart.models import (
    UNAVAILABLE_IN_DEPOT,
    CartItem,
    CartItemError,
    CartValidationSummary,
    clamp_quantity,
)
from storefront.core.cart.store import CartStore

__all__ = [
    "UNAVAILABLE_IN_DEPOT",
    "CartConsistencyEngine",
    "CartItem",
    "CartItemError",
    "CartStore",
    "CartValidationSummary",
    "clamp_quantity",
]
