import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from network_blocker import install_network_blocker

from core.serial_context import SerialContext
from geo_service import GeocodeCacheService
from history import HistoryStore, InMemoryRecordStore
from tests.fakes import (
    FakeActivitySource,
    FakeGeocoder,
    FakeLowPowerSource,
    FakePositionSource,
    RecordingNotifier,
)
from tracking.services.tracking_controller import TrackingController


@pytest.fixture(autouse=True)
def _default_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HISTORY_KEY_PREFIX", raising=False)
    install_network_blocker(monkeypatch)


@pytest.fixture
async def context():
    ctx = SerialContext("test")
    await ctx.start()
    yield ctx
    await ctx.stop()


@pytest.fixture
def records() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def store(records: InMemoryRecordStore) -> HistoryStore:
    return HistoryStore(records)


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def geocode_cache(geocoder: FakeGeocoder) -> GeocodeCacheService:
    return GeocodeCacheService(geocoder, precision=4)


@pytest.fixture
def positions() -> FakePositionSource:
    return FakePositionSource()


@pytest.fixture
def low_power() -> FakeLowPowerSource:
    return FakeLowPowerSource()


@pytest.fixture
def activity_source() -> FakeActivitySource:
    return FakeActivitySource()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def controller(
    store: HistoryStore,
    geocode_cache: GeocodeCacheService,
    positions: FakePositionSource,
    context: SerialContext,
) -> TrackingController:
    return TrackingController(store, geocode_cache, positions, context)
