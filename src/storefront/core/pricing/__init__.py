from storefront.core.pricing.context import DepotTracker, PricingContext, PricingState
from storefront.core.pricing.factory import build_context

__all__ = ["DepotTracker", "PricingContext", "PricingState", "build_context"]
