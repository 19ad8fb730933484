from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

from storefront.core.backend.config import GeocodingConfig
from storefront.core.errors import ErrorType, StorefrontError
from storefront.core.location.known_areas import KnownAreaRepository
from storefront.core.location.models import Coordinates, is_valid_pincode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeocodedPlace:
    pincode: str
    city: str | None = None
    area_name: str | None = None


class ReverseGeocoder:
    """Turns coordinates into a pincode via an OpenCage-compatible API, with an offline fallback."""

    def __init__(
        self,
        config: GeocodingConfig,
        known_areas: KnownAreaRepository,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.known_areas = known_areas
        self.session = session or requests.Session()

    def reverse(self, coordinates: Coordinates) -> GeocodedPlace:
        """Resolve coordinates; raises POSITION_UNAVAILABLE when nothing matches."""
        if self.config.api_key:
            try:
                place = self._reverse_remote(coordinates)
            except (requests.RequestException, ValueError, KeyError) as exc:
                logger.warning("Reverse geocoding failed, using known areas: %s", exc)
            else:
                if place is not None:
                    return place
        else:
            logger.debug("Geocoding API key not configured; using known areas")

        try:
            table = self.known_areas.load()
        except (OSError, ValueError) as exc:
            logger.error("Known area manifest unavailable: %s", exc)
            raise StorefrontError.of(
                ErrorType.POSITION_UNAVAILABLE,
                "We couldn't map your location to a pincode. Please enter your pincode manually.",
            ) from exc
        fallback = table.lookup(coordinates)
        if fallback is None:
            raise StorefrontError.of(
                ErrorType.POSITION_UNAVAILABLE,
                "We couldn't map your location to a pincode. Please enter your pincode manually.",
            )
        logger.info(
            "Using known area pincode %s for %.4f,%.4f",
            fallback.pincode,
            coordinates.latitude,
            coordinates.longitude,
        )
        return GeocodedPlace(pincode=fallback.pincode, city=fallback.city, area_name=fallback.area_name)

    def _reverse_remote(self, coordinates: Coordinates) -> GeocodedPlace | None:
        response = self.session.get(
            self.config.api_url,
            params={
                "q": f"{coordinates.latitude}+{coordinates.longitude}",
                "key": self.config.api_key,
                "limit": 1,
            },
            timeout=self.config.request_timeout_seconds,
        )
        response.raise_for_status()
        payload: dict[str, Any] = response.json()
        results = payload.get("results") or []
        if not results:
            return None
        result = results[0]
        components = result.get("components") or {}
        postcode = str(components.get("postcode") or "").replace(" ", "")
        if not is_valid_pincode(postcode):
            return None
        city = components.get("city") or components.get("town") or components.get("village")
        return GeocodedPlace(
            pincode=postcode,
            city=city,
            area_name=components.get("suburb") or result.get("formatted"),
        )
