"""Bounding regions for displayed paths and trips."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tracking.models import LocationSample, Trip

# Padding applied around the tight bounding box of a path.
REGION_PADDING_FACTOR: Final[float] = 1.5
DEFAULT_SPAN_DEGREES: Final[float] = 0.05


@dataclass(frozen=True)
class PathRegion:
    """Centre plus latitude/longitude span, in degrees."""

    center_latitude: float
    center_longitude: float
    latitude_delta: float
    longitude_delta: float

    def contains(self, latitude: float, longitude: float) -> bool:
        return (
            abs(latitude - self.center_latitude) <= self.latitude_delta / 2
            and abs(longitude - self.center_longitude) <= self.longitude_delta / 2
        )


def region_for_path(samples: Sequence[LocationSample]) -> PathRegion | None:
    """
    Region that fits every sample, padded by REGION_PADDING_FACTOR.

    Returns None for an empty path. A single-point path gets a zero span.
    """
    if not samples:
        return None

    latitudes = [s.latitude for s in samples]
    longitudes = [s.longitude for s in samples]
    min_lat, max_lat = min(latitudes), max(latitudes)
    min_lon, max_lon = min(longitudes), max(longitudes)

    return PathRegion(
        center_latitude=(min_lat + max_lat) / 2,
        center_longitude=(min_lon + max_lon) / 2,
        latitude_delta=(max_lat - min_lat) * REGION_PADDING_FACTOR,
        longitude_delta=(max_lon - min_lon) * REGION_PADDING_FACTOR,
    )


def region_for_trip(trip: Trip) -> PathRegion:
    """Like region_for_path, but an empty trip maps to a default span at 0,0."""
    region = region_for_path(trip.locations)
    if region is None:
        return PathRegion(0.0, 0.0, DEFAULT_SPAN_DEGREES, DEFAULT_SPAN_DEGREES)
    return region
