from storefront.core.depot.lookup import DepotLookupClient
from storefront.core.depot.models import AreaMaster, Depot, DepotResolution, ServiceAvailability
from storefront.core.depot.resolver import DepotResolver

__all__ = [
    "AreaMaster",
    "Depot",
    "DepotLookupClient",
    "DepotResolution",
    "DepotResolver",
    "ServiceAvailability",
]
