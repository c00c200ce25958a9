"""
Active tracking: the IDLE/ACTIVE state machine, the sample buffer, trip
finalization and trip-name enrichment.

All public coroutines and `handle_*` methods must run on the serialized
context. Position-source callbacks (`on_position`, `on_position_error`)
may arrive on any thread and hop onto the context themselves.

Enrichment is the only work that leaves the context: a detached task
resolves the trip's endpoint names through the geocode cache and queues
the merge back onto the context, or applies it directly once the context
has shut down. The merge looks the trip up by id, so a trip cleared in the
meantime is silently skipped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING
from uuid import UUID

from config import TRACKING_ENABLED_KEY, TRIP_HISTORY_KEY
from core.exceptions import SourceUnavailableException
from geo_service import LOCATION_NOT_FOUND
from tracking.geometry import region_for_path
from tracking.models import LocationSample, TrackingSession, TrackingState, Trip

if TYPE_CHECKING:
    from core.serial_context import SerialContext
    from geo_service import GeocodeCacheService
    from history import HistoryStore
    from tracking.geometry import PathRegion
    from tracking.sources import PositionSource

logger = logging.getLogger(__name__)


def _usable_name(name: str | None) -> str | None:
    # A failed lookup leaves the field absent rather than storing the sentinel.
    if name is None or name == LOCATION_NOT_FOUND:
        return None
    return name


class TrackingController:
    """Owns the tracking session and the trip history."""

    def __init__(
        self,
        store: HistoryStore,
        geocoder: GeocodeCacheService,
        positions: PositionSource,
        context: SerialContext,
        *,
        trip_key: str = TRIP_HISTORY_KEY,
        enabled_key: str = TRACKING_ENABLED_KEY,
    ) -> None:
        self._store = store
        self._geocoder = geocoder
        self._positions = positions
        self._context = context
        self._trip_key = trip_key
        self._enabled_key = enabled_key

        self.session = TrackingSession()
        self._trips: list[Trip] = []
        self._enrichment_tasks: set[asyncio.Task[None]] = set()
        self._late_merge_lock = asyncio.Lock()
        self.status_message: str = "Idle"
        self.tracking_enabled_on_last_run = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> TrackingState:
        return self.session.state

    @property
    def is_active(self) -> bool:
        return self.session.is_active

    @property
    def manual_override(self) -> bool:
        return self.session.manual_override

    @property
    def trips(self) -> tuple[Trip, ...]:
        """Trip history, most recent first."""
        return tuple(self._trips)

    @property
    def displayed_path(self) -> tuple[LocationSample, ...]:
        """The live buffer while tracking, otherwise the last finished or displayed path."""
        return tuple(self.session.buffer)

    @property
    def region(self) -> PathRegion | None:
        return region_for_path(self.session.buffer)

    def find_trip(self, trip_id: UUID) -> Trip | None:
        return next((t for t in self._trips if t.id == trip_id), None)

    # ------------------------------------------------------------------
    # Public operations (serialized context)
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Load trip history and the tracking-enabled flag from the store."""
        self._trips = await self._store.load(self._trip_key, Trip)
        self.tracking_enabled_on_last_run = await self._store.load_flag(
            self._enabled_key,
        )

    async def toggle_tracking(self) -> TrackingState:
        """Manual start/stop."""
        if self.session.is_active:
            await self._stop_tracking()
        elif self._begin_tracking():
            self.session.manual_override = False
            logger.info("Tracking started manually")
            await self._save_enabled()
        return self.state

    async def start_automatically(self, *, force: bool) -> bool:
        """
        Start tracking on behalf of the significant-change monitor.

        A manual stop suppresses automatic starts until the next manual
        toggle, unless `force` is set.

        Returns:
            True if tracking was started by this call.
        """
        if self.session.is_active:
            return False
        if self.session.manual_override and not force:
            logger.info("Automatic start suppressed by manual stop")
            return False
        if not self._begin_tracking():
            return False
        self.session.manual_override = False
        logger.info("Tracking started automatically (force=%s)", force)
        await self._save_enabled()
        return True

    def handle_position(self, sample: LocationSample) -> None:
        if not self.session.is_active:
            logger.debug("Ignoring position received while idle")
            return
        self.session.buffer.append(sample)
        logger.debug(
            "Position %d recorded: %s,%s",
            len(self.session.buffer),
            sample.latitude,
            sample.longitude,
        )

    def handle_position_error(self, error: Exception) -> None:
        self.status_message = f"Location error: {error}"
        logger.warning("Position source error: %s", error)

    async def display_trip(self, trip: Trip) -> None:
        """Show a stored trip's path, stopping and saving any live session first."""
        if self.session.is_active:
            await self._stop_tracking()
        self.session.buffer[:] = list(trip.locations)

    async def clear_history(self) -> None:
        self._trips.clear()
        self.session.buffer.clear()
        await self._save_trips()
        logger.info("Trip history cleared")

    async def wait_for_enrichment(self) -> None:
        """Wait for every in-flight enrichment task to settle."""
        while self._enrichment_tasks:
            await asyncio.gather(*list(self._enrichment_tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Position-source subscriber (any thread)
    # ------------------------------------------------------------------

    def on_position(self, sample: LocationSample) -> None:
        self._context.dispatch_threadsafe(self.handle_position, sample)

    def on_position_error(self, error: Exception) -> None:
        self._context.dispatch_threadsafe(self.handle_position_error, error)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _begin_tracking(self) -> bool:
        if not self._positions.is_available():
            self.status_message = "Location updates not available"
            logger.warning("Cannot start tracking: position source unavailable")
            return False
        try:
            self._positions.start_updates(self)
        except SourceUnavailableException as e:
            self.status_message = f"Location updates not available: {e.message}"
            logger.warning("Cannot start tracking: %s", e.message)
            return False
        except Exception as e:
            self.status_message = f"Location updates not available: {e}"
            logger.exception("Position source failed to start")
            return False

        self.session.buffer.clear()
        self.session.is_active = True
        self.status_message = "Tracking"
        return True

    async def _stop_tracking(self) -> None:
        try:
            self._positions.stop_updates()
        except Exception:
            logger.exception("Position source failed to stop cleanly")

        self.session.is_active = False
        self.session.manual_override = True
        self.status_message = "Idle"
        logger.info("Tracking stopped. Collected %d points.", len(self.session.buffer))

        if self.session.buffer:
            await self._finalize_trip()
        await self._save_enabled()

    async def _finalize_trip(self) -> Trip:
        trip = Trip(locations=tuple(self.session.buffer))
        self._trips.insert(0, trip)
        await self._save_trips()
        logger.info("Trip %s saved with %d points", trip.id, len(trip.locations))

        task = asyncio.create_task(self._enrich(trip), name=f"enrich-trip:{trip.id}")
        self._enrichment_tasks.add(task)
        task.add_done_callback(self._enrichment_tasks.discard)
        return trip

    async def _enrich(self, trip: Trip) -> None:
        start, end = trip.start, trip.end
        if start is None or end is None:
            return

        try:
            start_name, end_name = await asyncio.gather(
                self._geocoder.resolve(start.latitude, start.longitude),
                self._geocoder.resolve(end.latitude, end.longitude),
            )
        except Exception:
            logger.exception("Place-name lookup failed for trip %s", trip.id)
            return

        names = (trip.id, _usable_name(start_name), _usable_name(end_name))
        try:
            await self._context.run(self._apply_place_names, *names)
        except RuntimeError:
            # Context closed: merge directly once its worker has exited.
            await self._context.join()
            async with self._late_merge_lock:
                await self._apply_place_names(*names)

    async def _apply_place_names(
        self,
        trip_id: UUID,
        start_name: str | None,
        end_name: str | None,
    ) -> None:
        index = next((i for i, t in enumerate(self._trips) if t.id == trip_id), None)
        if index is None:
            logger.debug("Trip %s no longer in history; dropping place names", trip_id)
            return

        current = self._trips[index]
        updated = current.with_place_names(start_name, end_name)
        if updated is current:
            return
        self._trips[index] = updated
        await self._save_trips()
        logger.info(
            "Trip %s enriched: %s -> %s",
            trip_id,
            updated.startLocationName,
            updated.endLocationName,
        )

    async def _save_trips(self) -> None:
        await self._store.save(self._trip_key, self._trips)

    async def _save_enabled(self) -> None:
        await self._store.save_flag(self._enabled_key, self.session.is_active)


__all__ = ["TrackingController"]
