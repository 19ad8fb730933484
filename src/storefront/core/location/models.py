from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

PINCODE_PATTERN = re.compile(r"^[0-9]{6}$")


class LocationSource(str, Enum):
    GEOLOCATION = "geolocation"
    MANUAL = "manual"


def is_valid_pincode(pincode: Any) -> bool:
    return isinstance(pincode, str) and PINCODE_PATTERN.fullmatch(pincode) is not None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float
    accuracy: float | None = None


@dataclass(frozen=True)
class DeliveryLocation:
    """The shopper's resolved delivery location; replaced wholesale on re-resolution."""

    pincode: str
    source: LocationSource
    resolved_at: datetime = field(default_factory=utc_now)
    area_name: str | None = None
    area_id: int | None = None
    depot_id: str | None = None
    depot_name: str | None = None
    city: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Render the location into its persisted JSON shape."""
        payload = asdict(self)
        payload["source"] = self.source.value
        payload["resolved_at"] = self.resolved_at.isoformat()
        return payload

    @staticmethod
    def from_dict(raw: dict[str, Any]) -> "DeliveryLocation":
        """Hydrate a persisted record; raises ValueError on malformed data."""
        pincode = raw.get("pincode")
        if not is_valid_pincode(pincode):
            raise ValueError(f"Invalid persisted pincode {pincode!r}")
        source = LocationSource(raw.get("source", LocationSource.MANUAL.value))
        resolved_raw = raw.get("resolved_at")
        resolved_at = _parse_timestamp(resolved_raw) if resolved_raw else utc_now()
        depot_id = raw.get("depot_id")
        area_id = raw.get("area_id")
        return DeliveryLocation(
            pincode=pincode,
            source=source,
            resolved_at=resolved_at,
            area_name=raw.get("area_name"),
            area_id=int(area_id) if area_id is not None else None,
            depot_id=str(depot_id) if depot_id is not None else None,
            depot_name=raw.get("depot_name"),
            city=raw.get("city"),
            latitude=_optional_float(raw.get("latitude")),
            longitude=_optional_float(raw.get("longitude")),
        )


@dataclass(frozen=True)
class LocationChange:
    """Notification published after the persisted location is written or removed."""

    key: str
    previous: DeliveryLocation | None
    current: DeliveryLocation | None
    external: bool = False

    @property
    def depot_changed(self) -> bool:
        previous_depot = self.previous.depot_id if self.previous else None
        current_depot = self.current.depot_id if self.current else None
        return previous_depot != current_depot


def _parse_timestamp(raw: Any) -> datetime:
    parsed = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_float(raw: Any) -> float | None:
    if raw is None:
        return None
    return float(raw)
