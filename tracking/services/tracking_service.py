"""
Tracking service facade.

Owns the serialized context and the components that share it. Every
public coroutine hops onto the context, so hosts can call them from any
task without coordinating with event-source callbacks.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from core.serial_context import SerialContext
from tracking.services.activity_monitor import ActivityMonitor
from tracking.services.significant_change_monitor import SignificantChangeMonitor
from tracking.services.tracking_controller import TrackingController

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from geo_service import GeocodeCacheService
    from history import HistoryStore
    from tracking.models import TrackingState, Trip
    from tracking.notifier import Notifier
    from tracking.sources import ActivitySource, LowPowerEventSource, PositionSource

logger = logging.getLogger(__name__)


class TrackingService:
    """Wires the controller and monitors onto one serialized context."""

    def __init__(
        self,
        store: HistoryStore,
        geocoder: GeocodeCacheService,
        positions: PositionSource,
        low_power: LowPowerEventSource,
        notifier: Notifier,
        *,
        activity: ActivitySource | None = None,
        context: SerialContext | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.context = context or SerialContext("tracking")
        self.controller = TrackingController(store, geocoder, positions, self.context)
        self.monitor = SignificantChangeMonitor(
            store,
            self.controller,
            notifier,
            low_power,
            self.context,
            clock=clock,
        )
        self.activity = (
            ActivityMonitor(store, activity, self.context)
            if activity is not None
            else None
        )

    async def start(self, *, launched_by_location_event: bool = False) -> None:
        """
        Start the context, load all history and attach to the sources.

        Args:
            launched_by_location_event: The host relaunched the process to
                deliver a location event. Tracking resumes if it was
                enabled when the process last ran.
        """
        await self.context.start()
        await self.context.run(self._start_components, launched_by_location_event)

    async def stop(self) -> None:
        """
        Detach from the sources, stop the context and let enrichment settle.

        Jobs already queued still run; a trip they finalize is enriched after
        the context has exited.
        """
        if not self.context.accepting:
            await self.context.join()
            await self.controller.wait_for_enrichment()
            return
        await self.context.run(self._stop_components)
        await self.controller.wait_for_enrichment()
        await self.context.stop()
        await self.controller.wait_for_enrichment()
        logger.info("Tracking service stopped")

    async def toggle_tracking(self) -> TrackingState:
        return await self.context.run(self.controller.toggle_tracking)

    async def start_automatically(self, *, force: bool) -> bool:
        return await self.context.run(self.controller.start_automatically, force=force)

    async def display_trip(self, trip: Trip) -> None:
        await self.context.run(self.controller.display_trip, trip)

    async def clear_trip_history(self) -> None:
        await self.context.run(self.controller.clear_history)

    async def clear_significant_change_history(self) -> None:
        await self.context.run(self.monitor.clear_history)

    async def clear_activity_history(self) -> None:
        if self.activity is not None:
            await self.context.run(self.activity.clear_history)

    async def wait_for_enrichment(self) -> None:
        await self.controller.wait_for_enrichment()

    async def _start_components(self, launched_by_location_event: bool) -> None:
        await self.controller.load()
        await self.monitor.start()
        if self.activity is not None:
            await self.activity.load()
            self.activity.start()

        if launched_by_location_event and self.controller.tracking_enabled_on_last_run:
            logger.info("Relaunched by a location event; resuming tracking")
            await self.controller.start_automatically(force=False)
        logger.info("Tracking service started")

    def _stop_components(self) -> None:
        self.monitor.stop()
        if self.activity is not None:
            self.activity.stop()


__all__ = ["TrackingService"]
