import asyncio

import pytest

from core.exceptions import ExternalServiceException
from geo_service import (
    LOCATION_NOT_FOUND,
    UNKNOWN_LOCATION,
    GeocodeCacheService,
    Placemark,
    coordinate_key,
    extract_place_name,
    placemark_from_nominatim,
)
from tests.fakes import FakeGeocoder


def test_coordinate_key_rounds_to_precision() -> None:
    assert coordinate_key(40.712776, -74.005974, 4) == (40.7128, -74.006)
    assert coordinate_key(40.71281, -74.00601, 4) == coordinate_key(
        40.71279,
        -74.00599,
        4,
    )


def test_extract_place_name_prefers_name_then_street_then_locality() -> None:
    assert extract_place_name([Placemark(name="Cafe", street="1 Main St")]) == "Cafe"
    assert extract_place_name([Placemark(street="1 Main St", locality="Town")]) == (
        "1 Main St"
    )
    assert extract_place_name([Placemark(name="  ", locality="Town")]) == "Town"
    assert extract_place_name([Placemark()]) == UNKNOWN_LOCATION
    assert extract_place_name([]) == UNKNOWN_LOCATION


def test_placemark_from_nominatim_maps_address_fields() -> None:
    placemark = placemark_from_nominatim(
        {
            "name": "",
            "display_name": "12, Elm Street, Springfield",
            "address": {"house_number": "12", "road": "Elm Street", "town": "Springfield"},
        },
    )

    assert placemark.name is None
    assert placemark.street == "12 Elm Street"
    assert placemark.locality == "Springfield"
    assert placemark.formatted_address == "12, Elm Street, Springfield"


@pytest.mark.asyncio
async def test_resolve_caches_by_rounded_key(
    geocode_cache: GeocodeCacheService,
    geocoder: FakeGeocoder,
) -> None:
    geocoder.names[(51.5007, -0.1246)] = "Big Ben"

    first = await geocode_cache.resolve(51.500729, -0.124625)
    second = await geocode_cache.resolve(51.50071, -0.12464)

    assert first == second == "Big Ben"
    assert geocoder.calls == [(51.5007, -0.1246)]
    assert geocode_cache.cached(51.5007, -0.1246) == "Big Ben"


@pytest.mark.asyncio
async def test_empty_answer_is_cached_as_unknown_location(
    geocode_cache: GeocodeCacheService,
    geocoder: FakeGeocoder,
) -> None:
    assert await geocode_cache.resolve(0.0, 0.0) == UNKNOWN_LOCATION
    assert await geocode_cache.resolve(0.0, 0.0) == UNKNOWN_LOCATION
    assert len(geocoder.calls) == 1


@pytest.mark.asyncio
async def test_failures_are_not_cached(
    geocode_cache: GeocodeCacheService,
    geocoder: FakeGeocoder,
) -> None:
    geocoder.names[(1.0, 1.0)] = ExternalServiceException("Nominatim reverse error: 503")

    assert await geocode_cache.resolve(1.0, 1.0) == LOCATION_NOT_FOUND
    assert len(geocode_cache) == 0

    geocoder.names[(1.0, 1.0)] = "Recovered"
    assert await geocode_cache.resolve(1.0, 1.0) == "Recovered"
    assert len(geocoder.calls) == 2


@pytest.mark.asyncio
async def test_concurrent_resolution_of_one_key_stores_one_value(
    geocode_cache: GeocodeCacheService,
    geocoder: FakeGeocoder,
) -> None:
    geocoder.names[(2.0, 2.0)] = "Shared"
    geocoder.gate = asyncio.Event()

    racers = [
        asyncio.create_task(geocode_cache.resolve(2.0 + i * 1e-6, 2.0))
        for i in range(8)
    ]
    await asyncio.sleep(0)
    geocoder.gate.set()
    results = await asyncio.gather(*racers)

    assert set(results) == {"Shared"}
    assert 1 <= len(geocoder.calls) <= len(racers)
    assert geocode_cache.snapshot() == {(2.0, 2.0): "Shared"}


@pytest.mark.asyncio
async def test_waiters_see_failure_of_shared_lookup(
    geocode_cache: GeocodeCacheService,
    geocoder: FakeGeocoder,
) -> None:
    geocoder.names[(3.0, 3.0)] = ExternalServiceException("Nominatim reverse error: 429")
    geocoder.gate = asyncio.Event()

    racers = [asyncio.create_task(geocode_cache.resolve(3.0, 3.0)) for _ in range(3)]
    await asyncio.sleep(0)
    geocoder.gate.set()

    assert await asyncio.gather(*racers) == [LOCATION_NOT_FOUND] * 3
    assert len(geocoder.calls) == 1
    assert geocode_cache.cached(3.0, 3.0) is None
