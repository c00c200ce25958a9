"""
Process wiring for the trip tracker.

Platform sensor adapters live outside this repository; a host builds them
and hands them to `build_tracking_service`. Everything else defaults to
the production stack: Redis-backed history and Nominatim reverse
geocoding behind the in-process cache.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config import GEOCODE_PRECISION, LOG_LEVEL
from core.http.session import cleanup_session
from core.redis import close_shared_redis
from geo_service import GeocodeCacheService, NominatimReverseGeocoder
from history import HistoryStore, RedisRecordStore
from tracking.notifier import LoggingNotifier
from tracking.services.tracking_service import TrackingService

if TYPE_CHECKING:
    from geo_service import ReverseGeocoder
    from history import RecordStore
    from tracking.notifier import Notifier
    from tracking.sources import ActivitySource, LowPowerEventSource, PositionSource

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_tracking_service(
    positions: PositionSource,
    low_power: LowPowerEventSource,
    *,
    activity: ActivitySource | None = None,
    notifier: Notifier | None = None,
    records: RecordStore | None = None,
    geocoder: ReverseGeocoder | None = None,
) -> TrackingService:
    """Assemble a TrackingService; call `start()` on it from the host's event loop."""
    store = HistoryStore(records or RedisRecordStore())
    cache = GeocodeCacheService(
        geocoder or NominatimReverseGeocoder(),
        precision=GEOCODE_PRECISION,
    )
    service = TrackingService(
        store,
        cache,
        positions,
        low_power,
        notifier or LoggingNotifier(),
        activity=activity,
    )
    logger.info("Tracking service assembled")
    return service


async def shutdown(service: TrackingService) -> None:
    """Stop the service and release the shared HTTP and Redis clients."""
    await service.stop()
    await cleanup_session()
    try:
        await close_shared_redis()
    except Exception as e:
        logger.warning("Error closing Redis client: %s", e)


__all__ = ["build_tracking_service", "shutdown"]
