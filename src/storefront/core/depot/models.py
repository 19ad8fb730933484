from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Depot:
    """Read-only projection of a serving depot."""

    id: str
    name: str
    is_online: bool
    address: str | None = None
    contact_number: str | None = None


@dataclass(frozen=True)
class ServiceAvailability:
    is_available: bool
    estimated_delivery_time: str | None = None
    delivery_charges: float | None = None
    minimum_order_amount: float | None = None
    message: str | None = None


@dataclass(frozen=True)
class AreaMaster:
    """Delivery area record that maps pincodes to a depot."""

    id: int
    name: str
    depot: Depot | None


@dataclass(frozen=True)
class DepotResolution:
    depot: Depot
    availability: ServiceAvailability
    area: AreaMaster | None = None
