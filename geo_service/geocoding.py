"""Reverse geocoding capability: coordinates -> placemarks.

The tracking engine only needs a human-readable name per coordinate. The
capability returns zero or more placemarks (best first); choosing the name
is `extract_place_name`'s job so that every provider gets the same fallback
rules.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final, Protocol

from pydantic import BaseModel, ConfigDict

from core.http.nominatim import NominatimClient

from .rate_limiting import nominatim_rate_limiter

if TYPE_CHECKING:
    from aiolimiter import AsyncLimiter

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION: Final[str] = "Unknown Location"
LOCATION_NOT_FOUND: Final[str] = "Location not found"

_LOCALITY_KEYS = ("city", "town", "village", "hamlet", "suburb", "municipality")


class Placemark(BaseModel):
    """One reverse-geocoding candidate."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    street: str | None = None
    locality: str | None = None
    formatted_address: str | None = None


class ReverseGeocoder(Protocol):
    """Interface for reverse geocoding providers."""

    async def reverse(self, latitude: float, longitude: float) -> list[Placemark]:
        """Return placemarks for a coordinate, best first; raise on failure."""
        ...


def extract_place_name(placemarks: list[Placemark]) -> str:
    """
    Pick the display name for the first placemark.

    Descriptive fields win over the generic locality; an empty answer
    yields the UNKNOWN_LOCATION sentinel.
    """
    if not placemarks:
        return UNKNOWN_LOCATION
    first = placemarks[0]
    for candidate in (first.name, first.street, first.locality):
        if candidate and candidate.strip():
            return candidate.strip()
    return UNKNOWN_LOCATION


def placemark_from_nominatim(response: dict[str, Any]) -> Placemark:
    """
    Parse a Nominatim jsonv2 reverse response into a Placemark.

    Args:
        response: Raw Nominatim reverse payload

    Returns:
        Placemark with whatever fields the payload carried
    """
    address = response.get("address") or {}

    street = None
    road = address.get("road") or address.get("pedestrian")
    if road:
        house_number = address.get("house_number")
        street = f"{house_number} {road}" if house_number else road

    locality = next(
        (address[key] for key in _LOCALITY_KEYS if address.get(key)),
        None,
    )

    return Placemark(
        name=response.get("name") or None,
        street=street,
        locality=locality,
        formatted_address=response.get("display_name") or None,
    )


class NominatimReverseGeocoder:
    """ReverseGeocoder backed by Nominatim, throttled to its usage policy."""

    def __init__(
        self,
        client: NominatimClient | None = None,
        *,
        rate_limiter: AsyncLimiter | None = None,
    ) -> None:
        self._client = client or NominatimClient()
        self._rate_limiter = rate_limiter or nominatim_rate_limiter

    async def reverse(self, latitude: float, longitude: float) -> list[Placemark]:
        async with self._rate_limiter:
            raw = await self._client.reverse(latitude, longitude)
        if raw is None:
            return []
        return [placemark_from_nominatim(raw)]


__all__ = [
    "LOCATION_NOT_FOUND",
    "UNKNOWN_LOCATION",
    "NominatimReverseGeocoder",
    "Placemark",
    "ReverseGeocoder",
    "extract_place_name",
    "placemark_from_nominatim",
]
