from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    description: str = ""
    category_id: int | None = None
    attachment_url: str | None = None


@dataclass(frozen=True)
class DepotVariant:
    """A product variant as stocked and priced by one depot."""

    id: int
    product_id: int
    depot_id: str
    name: str
    mrp: float
    buy_once_price: float | None = None
    closing_qty: int | None = None
    not_in_stock: bool = False
    is_hidden: bool = False

    @property
    def unit_price(self) -> float:
        return self.buy_once_price or self.mrp or 0.0

    @property
    def is_purchasable(self) -> bool:
        return not self.is_hidden and not self.not_in_stock


@dataclass(frozen=True)
class ProductWithPricing:
    product: Product
    variants: tuple[DepotVariant, ...]
    best_price: float

    @staticmethod
    def build(product: Product, variants: Sequence[DepotVariant]) -> "ProductWithPricing":
        return ProductWithPricing(product=product, variants=tuple(variants), best_price=best_price(variants))

    def purchasable_variants(self) -> list[DepotVariant]:
        return [variant for variant in self.variants if variant.is_purchasable]


@dataclass(frozen=True)
class VariantAvailability:
    is_available: bool
    reason: str | None = None
    max_quantity: int | None = None
    current_price: float | None = None


def best_price(variants: Sequence[DepotVariant]) -> float:
    """Lowest unit price over purchasable variants; 0 when nothing can be bought."""
    prices = [variant.unit_price for variant in variants if variant.is_purchasable]
    return min(prices) if prices else 0.0
