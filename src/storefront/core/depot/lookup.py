from __future__ import annotations

import logging
from typing import Any

from storefront.core.backend.client import StorefrontClient
from storefront.core.backend.exceptions import BackendRequestError
from storefront.core.backend.responses import (
    coerce_bool,
    optional_str,
    require_identifier,
    require_int,
    require_list,
    require_mapping,
    unwrap_data,
)
from storefront.core.depot.models import AreaMaster, Depot

logger = logging.getLogger(__name__)


class DepotLookupClient:
    """Depot-lookup endpoints of the storefront backend.

    Calls are blocking; async callers run them through ``asyncio.to_thread``.
    """

    def __init__(self, client: StorefrontClient) -> None:
        self.client = client

    def areas_for_pincode(self, pincode: str) -> list[AreaMaster]:
        """Return the delivery areas that list pincode; 404 means no area serves it."""
        try:
            payload = self.client.get(f"/api/public/area-masters/by-pincode/{pincode}")
        except BackendRequestError as exc:
            if exc.status == 404:
                return []
            raise
        data = unwrap_data(payload)
        if not data:
            return []
        return [parse_area_master(entry) for entry in require_list(data, "data")]

    def depot_by_id(self, depot_id: str) -> Depot | None:
        try:
            payload = self.client.get(f"/api/public/depots/{depot_id}")
        except BackendRequestError as exc:
            if exc.status == 404:
                return None
            raise
        data = unwrap_data(payload)
        if not data:
            return None
        return parse_depot(data)

    def online_depots(self) -> list[Depot]:
        payload = self.client.get("/api/public/depots/online")
        data = unwrap_data(payload)
        if not data:
            return []
        return [parse_depot(entry) for entry in require_list(data, "data")]


def parse_area_master(raw: Any) -> AreaMaster:
    entry = require_mapping(raw, "area_master")
    depot_raw = entry.get("depot")
    return AreaMaster(
        id=require_int(entry.get("id"), "area_master.id"),
        name=optional_str(entry.get("name")) or "",
        depot=parse_depot(depot_raw) if depot_raw else None,
    )


def parse_depot(raw: Any) -> Depot:
    entry = require_mapping(raw, "depot")
    return Depot(
        id=require_identifier(entry.get("id"), "depot.id"),
        name=optional_str(entry.get("name")) or "",
        # Depots predating the flag are treated as online.
        is_online=coerce_bool(entry.get("isOnline"), "depot.isOnline", default=True),
        address=optional_str(entry.get("address")),
        contact_number=optional_str(entry.get("contactNumber")),
    )
