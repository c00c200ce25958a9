"""
Geo Service Package.

Reverse geocoding for trip endpoints, memoized by rounded coordinate.
"""

from .geocode_cache import CoordinateKey, GeocodeCacheService, coordinate_key
from .geocoding import (
    LOCATION_NOT_FOUND,
    UNKNOWN_LOCATION,
    NominatimReverseGeocoder,
    Placemark,
    ReverseGeocoder,
    extract_place_name,
    placemark_from_nominatim,
)

__all__ = [
    "LOCATION_NOT_FOUND",
    "UNKNOWN_LOCATION",
    "CoordinateKey",
    "GeocodeCacheService",
    "NominatimReverseGeocoder",
    "Placemark",
    "ReverseGeocoder",
    "coordinate_key",
    "extract_place_name",
    "placemark_from_nominatim",
]
