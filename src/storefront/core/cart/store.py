from __future__ import annotations

import logging
from typing import Dict, List, Optional

from storefront.core.cart.models import (
    CartItem,
    CartItemError,
    CartValidationSummary,
    clamp_quantity,
    summary_message,
)
from storefront.core.catalog.models import DepotVariant, Product, ProductWithPricing

logger = logging.getLogger(__name__)


class CartStore:
    """In-memory cart keyed by variant id, in insertion order."""

    def __init__(self, max_quantity: int = 99) -> None:
        self.max_quantity = max_quantity
        self._items: Dict[int, CartItem] = {}

    @property
    def items(self) -> List[CartItem]:
        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def get_item(self, variant_id: int) -> Optional[CartItem]:
        return self._items.get(variant_id)

    def clamp(self, quantity: int, closing_qty: Optional[int]) -> int:
        return clamp_quantity(quantity, closing_qty, self.max_quantity)

    def add_item(
        self,
        product: ProductWithPricing | Product,
        variant: DepotVariant,
        quantity: int = 1,
    ) -> CartItem:
        """Add variant to the cart, incrementing an existing line for the same variant."""
        if quantity < 1:
            raise CartItemError(variant.id, "Quantity must be at least 1")
        if isinstance(product, ProductWithPricing):
            product = product.product
        existing = self._items.get(variant.id)
        if existing is not None:
            existing.quantity = self.clamp(existing.quantity + quantity, existing.closing_qty)
            return existing

        item = CartItem(
            variant_id=variant.id,
            product_id=product.id,
            depot_id=variant.depot_id,
            name=product.name,
            variant_name=variant.name,
            price=variant.unit_price,
            quantity=self.clamp(quantity, variant.closing_qty),
            closing_qty=variant.closing_qty,
            image_url=product.attachment_url,
            original_depot_id=variant.depot_id,
            original_variant_id=variant.id,
        )
        self._items[item.variant_id] = item
        logger.debug("Added variant %s (depot %s) to cart", item.variant_id, item.depot_id)
        return item

    def update_quantity(self, variant_id: int, quantity: int) -> Optional[CartItem]:
        item = self._items.get(variant_id)
        if item is None:
            return None
        item.quantity = self.clamp(quantity, item.closing_qty)
        return item

    def increment(self, variant_id: int) -> Optional[CartItem]:
        item = self._items.get(variant_id)
        return self.update_quantity(variant_id, item.quantity + 1) if item else None

    def decrement(self, variant_id: int) -> Optional[CartItem]:
        item = self._items.get(variant_id)
        return self.update_quantity(variant_id, item.quantity - 1) if item else None

    def remove_item(self, variant_id: int) -> bool:
        return self._items.pop(variant_id, None) is not None

    def rekey(self, item: CartItem, previous_variant_id: int) -> None:
        """Re-index a line whose variant id changed in place, keeping its position."""
        self._items = {
            (item.variant_id if key == previous_variant_id else key): value for key, value in self._items.items()
        }

    def clear(self) -> None:
        self._items.clear()

    def remove_unavailable_items(self) -> int:
        unavailable = [item.variant_id for item in self.get_unavailable_items()]
        for variant_id in unavailable:
            del self._items[variant_id]
        return len(unavailable)

    def get_available_items(self) -> List[CartItem]:
        return [item for item in self._items.values() if item.is_available is not False]

    def get_unavailable_items(self) -> List[CartItem]:
        return [item for item in self._items.values() if item.is_available is False]

    @property
    def subtotal(self) -> float:
        return sum(item.line_total for item in self._items.values())

    @property
    def available_subtotal(self) -> float:
        return sum(item.line_total for item in self.get_available_items())

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self._items.values())

    def validation_summary(self) -> CartValidationSummary:
        available = len(self.get_available_items())
        unavailable = len(self.get_unavailable_items())
        return CartValidationSummary(
            total_items=len(self._items),
            available_count=available,
            unavailable_count=unavailable,
            message=summary_message(available, unavailable),
        )
