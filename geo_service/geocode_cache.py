"""
Geocode cache: memoized reverse geocoding keyed by rounded coordinates.

Entries never expire; the map is bounded by the distinct places visited.
Failed lookups are not cached, so a later call for the same key tries the
provider again.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING

from config import GEOCODE_PRECISION

from .geocoding import LOCATION_NOT_FOUND, extract_place_name

if TYPE_CHECKING:
    from .geocoding import ReverseGeocoder

logger = logging.getLogger(__name__)

CoordinateKey = tuple[float, float]


def coordinate_key(
    latitude: float,
    longitude: float,
    precision: int = GEOCODE_PRECISION,
) -> CoordinateKey:
    """Round lat/lon for the cache key; equal keys only after identical rounding."""
    return (round(float(latitude), precision), round(float(longitude), precision))


class GeocodeCacheService:
    """
    Memoizing wrapper around a ReverseGeocoder.

    Concurrent misses on one key share a single in-flight lookup. The
    name map is guarded by a lock so it can be read from any thread while
    enrichment tasks write to it.
    """

    def __init__(
        self,
        geocoder: ReverseGeocoder,
        *,
        precision: int = GEOCODE_PRECISION,
    ) -> None:
        self._geocoder = geocoder
        self.precision = precision
        self._names: dict[CoordinateKey, str] = {}
        self._in_flight: dict[CoordinateKey, asyncio.Future[str | None]] = {}
        self._lock = threading.Lock()
        self.lookups = 0

    def key_for(self, latitude: float, longitude: float) -> CoordinateKey:
        return coordinate_key(latitude, longitude, self.precision)

    def cached(self, latitude: float, longitude: float) -> str | None:
        with self._lock:
            return self._names.get(self.key_for(latitude, longitude))

    def snapshot(self) -> dict[CoordinateKey, str]:
        with self._lock:
            return dict(self._names)

    def __len__(self) -> int:
        with self._lock:
            return len(self._names)

    async def resolve(self, latitude: float, longitude: float) -> str:
        """
        Resolve a coordinate to a place name.

        Returns:
            The cached or freshly resolved name, UNKNOWN_LOCATION when the
            provider has nothing at this point, or LOCATION_NOT_FOUND when
            the lookup failed.
        """
        key = self.key_for(latitude, longitude)
        with self._lock:
            name = self._names.get(key)
            if name is not None:
                return name
            pending = self._in_flight.get(key)
            if pending is None:
                pending = asyncio.get_running_loop().create_future()
                self._in_flight[key] = pending
                owner = True
            else:
                owner = False

        if not owner:
            result = await asyncio.shield(pending)
            return LOCATION_NOT_FOUND if result is None else result

        resolved: str | None = None
        try:
            resolved = await self._lookup(key)
        finally:
            with self._lock:
                if resolved is not None:
                    self._names[key] = resolved
                self._in_flight.pop(key, None)
            if not pending.done():
                pending.set_result(resolved)

        return LOCATION_NOT_FOUND if resolved is None else resolved

    async def _lookup(self, key: CoordinateKey) -> str | None:
        self.lookups += 1
        latitude, longitude = key
        try:
            placemarks = await self._geocoder.reverse(latitude, longitude)
        except Exception as e:
            logger.warning(
                "Reverse geocode failed for %s,%s: %s",
                latitude,
                longitude,
                e,
            )
            return None
        name = extract_place_name(placemarks)
        logger.debug("Resolved %s,%s -> %s", latitude, longitude, name)
        return name


__all__ = ["CoordinateKey", "GeocodeCacheService", "coordinate_key"]
