from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

UNAVAILABLE_IN_DEPOT = "not available in this depot"


class CartItemError(ValueError):
    """Raised when a variant cannot be added to the cart."""

    def __init__(self, variant_id: int, reason: str) -> None:
        super().__init__(f"Variant {variant_id}: {reason}")
        self.variant_id = variant_id
        self.reason = reason


@dataclass
class CartItem:
    """One cart line. Mutated in place as depots change."""

    variant_id: int
    product_id: int
    depot_id: str
    name: str
    variant_name: str
    price: float
    quantity: int
    is_available: Optional[bool] = True
    unavailable_reason: Optional[str] = None
    closing_qty: Optional[int] = None
    image_url: Optional[str] = None
    original_depot_id: Optional[str] = None
    original_variant_id: Optional[int] = None

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    def mark_unavailable(self, reason: str) -> None:
        self.is_available = False
        self.unavailable_reason = reason

    def mark_available(self) -> None:
        self.is_available = True
        self.unavailable_reason = None


@dataclass(frozen=True)
class CartValidationSummary:
    total_items: int
    available_count: int
    unavailable_count: int
    message: str


def clamp_quantity(quantity: int, closing_qty: Optional[int], ceiling: int) -> int:
    """Clamp to ``[1, closing_qty]`` when stock is known and positive, else ``[1, ceiling]``."""
    upper = closing_qty if closing_qty is not None and closing_qty > 0 else ceiling
    return max(1, min(upper, int(quantity)))


def summary_message(available_count: int, unavailable_count: int) -> str:
    if unavailable_count == 0:
        return "All items are available for delivery"
    if available_count == 0:
        return "No items are available in this location"
    plural = "s" if unavailable_count > 1 else ""
    return f"{unavailable_count} item{plural} not available in this location"
