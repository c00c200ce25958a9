from datetime import UTC, datetime, timedelta, timezone

from date_utils import ensure_utc, get_current_utc_time, parse_timestamp, seconds_between


def test_parse_timestamp_handles_empty_and_invalid() -> None:
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None
    assert parse_timestamp("not-a-date") is None


def test_parse_timestamp_normalizes_to_utc() -> None:
    parsed = parse_timestamp("2024-01-01T00:00:00-05:00")
    assert parsed is not None
    assert parsed.tzinfo == UTC
    assert parsed.hour == 5


def test_parse_timestamp_accepts_zulu_suffix() -> None:
    parsed = parse_timestamp("2024-05-01T12:00:00Z")
    assert parsed == datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def test_ensure_utc_handles_naive_datetime() -> None:
    value = datetime(2024, 1, 1, 12, 0, 0)
    normalized = ensure_utc(value)
    assert normalized is not None
    assert normalized.tzinfo == UTC
    assert normalized.hour == 12


def test_ensure_utc_returns_none_for_none() -> None:
    assert ensure_utc(None) is None


def test_get_current_utc_time_returns_utc() -> None:
    """get_current_utc_time should return a timezone-aware datetime in UTC."""
    now = get_current_utc_time()
    assert now.tzinfo == UTC
    assert isinstance(now, datetime)


def test_seconds_between_mixes_offsets_and_naive_values() -> None:
    earlier = datetime(2024, 1, 1, 7, 0, 0, tzinfo=timezone(timedelta(hours=-5)))
    later = datetime(2024, 1, 1, 12, 1, 1)

    assert seconds_between(earlier, later) == 61.0
    assert seconds_between(later, earlier) == -61.0


def test_parse_timestamp_accepts_epoch_seconds() -> None:
    assert parse_timestamp(1_717_234_200) == datetime(2024, 6, 1, 9, 30, tzinfo=UTC)
    assert parse_timestamp(True) is None
