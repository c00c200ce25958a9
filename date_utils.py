"""
Time helpers for the tracking engine.

The data model only holds timezone-aware UTC datetimes. Sources hand us
ISO 8601 strings, epoch seconds or (naive) datetimes; `parse_timestamp`
normalizes all of them and returns None for anything it cannot read.
"""

import logging
from datetime import UTC, datetime

from dateutil import parser

logger = logging.getLogger(__name__)


def get_current_utc_time() -> datetime:
    """Return the current time as a timezone-aware datetime object in UTC."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Naive values are taken to be UTC already; aware values are converted."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_timestamp(ts: str | float | datetime | None) -> datetime | None:
    """
    Normalize a timestamp to an aware UTC datetime.

    Args:
        ts: ISO 8601 string, epoch seconds, or datetime.

    Returns:
        The UTC datetime, or None for empty or unparseable input.
    """
    if ts is None or ts == "":
        return None
    if isinstance(ts, datetime):
        return ensure_utc(ts)
    if isinstance(ts, bool):
        logger.warning("Ignoring boolean timestamp %r", ts)
        return None
    if isinstance(ts, (int, float)):
        try:
            return datetime.fromtimestamp(ts, UTC)
        except (OverflowError, OSError, ValueError) as e:
            logger.warning("Epoch timestamp %r out of range: %s", ts, e)
            return None

    try:
        return ensure_utc(parser.isoparse(ts))
    except (ValueError, TypeError) as e:
        logger.warning("Failed to parse timestamp '%s': %s", ts, e)
        return None


def seconds_between(earlier: datetime, later: datetime) -> float:
    """Signed number of seconds from `earlier` to `later`."""
    return (ensure_utc(later) - ensure_utc(earlier)).total_seconds()
