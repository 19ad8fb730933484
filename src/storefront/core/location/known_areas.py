from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from storefront.core.location.models import Coordinates, is_valid_pincode

DEFAULT_KNOWN_AREAS_PATH = Path(__file__).with_name("known_areas.yaml")


@dataclass(frozen=True)
class KnownArea:
    pincode: str
    city: str | None
    area_name: str | None


@dataclass(frozen=True)
class KnownRegion:
    name: str
    area: KnownArea
    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float

    def contains(self, coordinates: Coordinates) -> bool:
        return (
            self.min_latitude <= coordinates.latitude <= self.max_latitude
            and self.min_longitude <= coordinates.longitude <= self.max_longitude
        )


@dataclass(frozen=True)
class KnownAreaTable:
    points: dict[str, KnownArea]
    regions: list[KnownRegion]

    def lookup(self, coordinates: Coordinates) -> KnownArea | None:
        """Match on the rounded coordinate key first, then on region bounding boxes."""
        key = f"{coordinates.latitude:.1f}_{coordinates.longitude:.1f}"
        if key in self.points:
            return self.points[key]
        for region in self.regions:
            if region.contains(coordinates):
                return region.area
        return None


class KnownAreaRepository:
    """Loads the offline reverse-geocoding table from a YAML manifest."""

    def __init__(self, manifest_path: Path = DEFAULT_KNOWN_AREAS_PATH) -> None:
        self.manifest_path = manifest_path
        self._table: KnownAreaTable | None = None

    def load(self) -> KnownAreaTable:
        if self._table is None:
            if not self.manifest_path.exists():
                raise FileNotFoundError(f"Missing known area manifest: {self.manifest_path}")
            parsed = _parse_manifest(self.manifest_path)
            self._table = _resolve_table(parsed, self.manifest_path)
        return self._table


def _parse_manifest(path: Path) -> dict[str, Any]:
    """Parse the manifest using PyYAML for correctness and safety."""
    with path.open("r", encoding="utf-8") as handle:
        try:
            parsed = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Failed to parse known area manifest {path}: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected mapping at root of {path}")
    return parsed


def _resolve_table(parsed: dict[str, Any], path: Path) -> KnownAreaTable:
    points: dict[str, KnownArea] = {}
    for index, entry in enumerate(_require_list(parsed.get("points", []), "points")):
        key = _require_string(entry.get("key"), f"points[{index}].key")
        points[key] = _resolve_area(entry, f"points[{index}]")
    regions: list[KnownRegion] = []
    for index, entry in enumerate(_require_list(parsed.get("regions", []), "regions")):
        field = f"regions[{index}]"
        regions.append(
            KnownRegion(
                name=_require_string(entry.get("name"), f"{field}.name"),
                area=_resolve_area(entry, field),
                min_latitude=_require_float(entry.get("min_latitude"), f"{field}.min_latitude"),
                max_latitude=_require_float(entry.get("max_latitude"), f"{field}.max_latitude"),
                min_longitude=_require_float(entry.get("min_longitude"), f"{field}.min_longitude"),
                max_longitude=_require_float(entry.get("max_longitude"), f"{field}.max_longitude"),
            )
        )
    if not points and not regions:
        raise ValueError(f"Known area manifest {path} defines no areas")
    return KnownAreaTable(points=points, regions=regions)


def _resolve_area(entry: dict[str, Any], field: str) -> KnownArea:
    pincode = _require_string(entry.get("pincode"), f"{field}.pincode")
    if not is_valid_pincode(pincode):
        raise ValueError(f"{field}.pincode must be a 6-digit pincode.")
    city = entry.get("city")
    area_name = entry.get("area_name")
    return KnownArea(
        pincode=pincode,
        city=str(city) if city is not None else None,
        area_name=str(area_name) if area_name is not None else None,
    )


def _require_string(value: Any, field: str) -> str:
    if value is None:
        raise ValueError(f"{field} is required.")
    cleaned = str(value).strip()
    if not cleaned:
        raise ValueError(f"{field} must be a non-empty string.")
    return cleaned


def _require_float(value: Any, field: str) -> float:
    if value is None or isinstance(value, bool):
        raise ValueError(f"{field} must be a number.")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{field} must be a number.") from exc


def _require_list(value: Any, field: str) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        raise ValueError(f"{field} must be a list.")
    entries: list[dict[str, Any]] = []
    for index, entry in enumerate(value):
        if not isinstance(entry, dict):
            raise ValueError(f"{field}[{index}] must be a mapping.")
        entries.append(entry)
    return entries
