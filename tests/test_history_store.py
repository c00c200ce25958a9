from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from history import HistoryStore, InMemoryRecordStore
from tests.fakes import FlakyRecordStore
from tracking.models import LocationSample, SignificantChangeEntry, Trip


def _trip(*coords: tuple[float, float], **kwargs) -> Trip:
    return Trip(
        date=datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
        locations=tuple(
            LocationSample(
                timestamp=datetime(2024, 5, 1, 12, 0, i, tzinfo=UTC),
                latitude=lat,
                longitude=lon,
            )
            for i, (lat, lon) in enumerate(coords)
        ),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_load_missing_key_returns_empty(store: HistoryStore) -> None:
    assert await store.load("MapTrackingHistory", Trip) == []


@pytest.mark.asyncio
async def test_save_then_load_preserves_order_and_fields(store: HistoryStore) -> None:
    newest = _trip((3.0, 3.0), startLocationName="A")
    oldest = _trip((1.0, 1.0), (2.0, 2.0))

    assert await store.save("MapTrackingHistory", [newest, oldest]) is True
    loaded = await store.load("MapTrackingHistory", Trip)

    assert [t.id for t in loaded] == [newest.id, oldest.id]
    assert loaded[0].startLocationName == "A"
    assert loaded[1].endLocationName is None
    assert [s.coordinate for s in loaded[1].locations] == [(1.0, 1.0), (2.0, 2.0)]


@pytest.mark.asyncio
async def test_saved_layout_uses_persisted_field_names(
    store: HistoryStore,
    records: InMemoryRecordStore,
) -> None:
    await store.save("MapTrackingHistory", [_trip((1.0, 2.0))])

    payload = json.loads(records.records["MapTrackingHistory"])
    assert set(payload[0]) == {
        "id",
        "date",
        "locations",
        "startLocationName",
        "endLocationName",
    }
    assert payload[0]["startLocationName"] is None
    assert payload[0]["locations"][0]["latitude"] == 1.0


@pytest.mark.asyncio
async def test_malformed_record_loads_as_empty(records: InMemoryRecordStore) -> None:
    records.records["LocationHistory"] = b"{not json"
    store = HistoryStore(records)

    assert await store.load("LocationHistory", SignificantChangeEntry) == []


@pytest.mark.asyncio
async def test_wrong_shape_loads_as_empty(records: InMemoryRecordStore) -> None:
    records.records["LocationHistory"] = b'[{"latitude": "north"}]'
    store = HistoryStore(records)

    assert await store.load("LocationHistory", SignificantChangeEntry) == []


@pytest.mark.asyncio
async def test_legacy_samples_without_timestamp_still_load(
    records: InMemoryRecordStore,
) -> None:
    records.records["MapTrackingHistory"] = json.dumps(
        [
            {
                "id": "5f0c6c56-4f5e-4d38-9f55-2b1cc6b3e0a1",
                "date": "2024-05-01T12:00:00Z",
                "locations": [{"latitude": 1.0, "longitude": 2.0}],
            },
        ],
    ).encode()
    store = HistoryStore(records)

    loaded = await store.load("MapTrackingHistory", Trip)

    assert len(loaded) == 1
    assert loaded[0].locations[0].timestamp is None
    assert loaded[0].startLocationName is None


@pytest.mark.asyncio
async def test_read_failure_loads_as_empty() -> None:
    records = FlakyRecordStore({"MapTrackingHistory": b"[]"})
    records.fail_reads = True
    store = HistoryStore(records)

    assert await store.load("MapTrackingHistory", Trip) == []
    assert await store.load_flag("isTrackingEnabled", default=True) is True


@pytest.mark.asyncio
async def test_write_failure_returns_false_and_recovers_on_next_save() -> None:
    records = FlakyRecordStore()
    store = HistoryStore(records)
    records.fail_writes = True

    assert await store.save("MapTrackingHistory", [_trip((1.0, 1.0))]) is False
    assert store.failed_keys == {"MapTrackingHistory"}

    records.fail_writes = False
    second = [_trip((2.0, 2.0)), _trip((1.0, 1.0))]
    assert await store.save("MapTrackingHistory", second) is True
    assert store.failed_keys == frozenset()
    assert len(await store.load("MapTrackingHistory", Trip)) == 2


@pytest.mark.asyncio
async def test_flags_round_trip_and_reject_garbage(
    store: HistoryStore,
    records: InMemoryRecordStore,
) -> None:
    assert await store.load_flag("isTrackingEnabled") is False

    await store.save_flag("isTrackingEnabled", True)
    assert records.records["isTrackingEnabled"] == b"true"
    assert await store.load_flag("isTrackingEnabled") is True

    records.records["isTrackingEnabled"] = b'"yes"'
    assert await store.load_flag("isTrackingEnabled") is False
