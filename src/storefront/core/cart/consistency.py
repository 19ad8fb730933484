from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from storefront.core.cart.models import UNAVAILABLE_IN_DEPOT, CartItem, CartValidationSummary
from storefront.core.cart.store import CartStore
from storefront.core.catalog.models import DepotVariant, ProductWithPricing
from storefront.core.catalog.service import CatalogPricingService

logger = logging.getLogger(__name__)


class CartConsistencyEngine:
    """Keeps cart lines consistent with the active depot.

    The last observed depot id is the only trigger: revalidation runs when
    the depot id changes and never when it stays the same.
    """

    def __init__(self, cart: CartStore, catalog: CatalogPricingService) -> None:
        self.cart = cart
        self.catalog = catalog
        self._last_depot_id: Optional[str] = None

    @property
    def last_depot_id(self) -> Optional[str]:
        return self._last_depot_id

    def reset(self) -> None:
        """Forget the observed depot, e.g. after the delivery location is cleared."""
        self._last_depot_id = None

    async def on_depot_change(self, depot_id: Optional[str]) -> bool:
        """Revalidate the cart if depot_id differs from the last observed depot.

        Returns ``True`` when a revalidation pass ran. A catalog failure
        leaves both the cart and the observed depot untouched.
        """
        if depot_id == self._last_depot_id:
            return False
        if depot_id is None:
            self._last_depot_id = None
            return False
        previous = self._last_depot_id
        await self.validate_cart(depot_id)
        self._last_depot_id = depot_id
        logger.info("Cart revalidated for depot switch %s -> %s", previous, depot_id)
        return True

    def hold_foreign_lines(self, depot_id: str) -> int:
        """Mark lines stamped with another depot unavailable while depot_id has no catalog.

        The observed depot is forgotten so the next change, including one back
        to the previous depot, runs a full revalidation.
        """
        held = 0
        for item in self.cart.get_available_items():
            if item.depot_id != depot_id:
                item.mark_unavailable(UNAVAILABLE_IN_DEPOT)
                held += 1
        self._last_depot_id = None
        if held:
            logger.warning("Holding %d cart line(s) from other depots until depot %s prices load", held, depot_id)
        return held

    async def validate_cart(self, depot_id: str) -> CartValidationSummary:
        if len(self.cart) == 0:
            return self.cart.validation_summary()
        catalog = await self.catalog.get_catalog(depot_id)
        return self.reconcile(depot_id, catalog)

    def reconcile(self, depot_id: str, catalog: Sequence[ProductWithPricing]) -> CartValidationSummary:
        """Classify every line against depot_id's catalog. Idempotent once classified."""
        variants_by_id: Dict[int, DepotVariant] = {}
        variants_by_product: Dict[int, List[DepotVariant]] = {}
        for entry in catalog:
            for variant in entry.variants:
                variants_by_id[variant.id] = variant
                variants_by_product.setdefault(variant.product_id, []).append(variant)

        swapped = invalidated = restored = 0
        for item in self.cart.items:
            if self.cart.get_item(item.variant_id) is not item:
                continue
            if item.depot_id == depot_id:
                if item.is_available is not False:
                    continue
                own = variants_by_id.get(item.variant_id)
                if own is not None and own.is_purchasable:
                    self._apply_variant(item, own)
                    restored += 1
                    continue

            replacement = _pick_replacement(item, variants_by_product.get(item.product_id, []))
            if replacement is None:
                if item.is_available is not False or item.unavailable_reason != UNAVAILABLE_IN_DEPOT:
                    item.mark_unavailable(UNAVAILABLE_IN_DEPOT)
                    invalidated += 1
                continue
            self._swap(item, replacement)
            swapped += 1

        summary = self.cart.validation_summary()
        logger.info(
            "Cart reconciled against depot %s: %d swapped, %d restored, %d invalidated (%s)",
            depot_id,
            swapped,
            restored,
            invalidated,
            summary.message,
        )
        return summary

    def _swap(self, item: CartItem, variant: DepotVariant) -> None:
        existing = self.cart.get_item(variant.id)
        if existing is not None and existing is not item:
            self._apply_variant(existing, variant, extra_quantity=item.quantity)
            self.cart.remove_item(item.variant_id)
            return
        previous_variant_id = item.variant_id
        self._apply_variant(item, variant)
        if previous_variant_id != variant.id:
            self.cart.rekey(item, previous_variant_id)

    def _apply_variant(self, item: CartItem, variant: DepotVariant, extra_quantity: int = 0) -> None:
        item.variant_id = variant.id
        item.depot_id = variant.depot_id
        item.variant_name = variant.name
        item.price = variant.unit_price
        item.closing_qty = variant.closing_qty
        item.quantity = self.cart.clamp(item.quantity + extra_quantity, variant.closing_qty)
        item.mark_available()


def _pick_replacement(item: CartItem, candidates: Sequence[DepotVariant]) -> Optional[DepotVariant]:
    """Prefer a purchasable variant with the line's variant name, then catalog order."""
    purchasable = [variant for variant in candidates if variant.is_purchasable]
    if not purchasable:
        return None
    wanted = (item.variant_name or "").strip().lower()
    for variant in purchasable:
        if wanted and variant.name.strip().lower() == wanted:
            return variant
    return purchasable[0]
