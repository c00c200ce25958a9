"""
Significant-change monitoring.

The low-power source may wake the process long after the position was
recorded, so events older than the configured age are dropped. Accepted
events are logged, persisted, announced through the notifier and then
promote the controller into active tracking, overriding a manual stop.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from config import SIGNIFICANT_CHANGE_HISTORY_KEY, SIGNIFICANT_CHANGE_MAX_AGE_SECONDS
from core.exceptions import AuthorizationException
from date_utils import get_current_utc_time, seconds_between
from tracking.models import SignificantChangeEntry, SignificantChangeEvent
from tracking.sources import AuthorizationStatus

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from core.serial_context import SerialContext
    from history import HistoryStore
    from tracking.notifier import Notifier
    from tracking.services.tracking_controller import TrackingController
    from tracking.sources import LowPowerEventSource

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Significant Location Change"
SOURCE_UNAVAILABLE_MESSAGE = "Significant location monitoring not available"

_AUTHORIZATION_MESSAGES: dict[AuthorizationStatus, str] = {
    AuthorizationStatus.ALWAYS: "Authorized Always. Monitoring significant changes.",
    AuthorizationStatus.WHEN_IN_USE: (
        "Authorized When In Use. Monitoring while app is active."
    ),
    AuthorizationStatus.DENIED: "Authorization denied. Enable in Settings.",
    AuthorizationStatus.RESTRICTED: "Authorization restricted.",
    AuthorizationStatus.NOT_DETERMINED: "Awaiting authorization...",
    AuthorizationStatus.UNKNOWN: "Unknown authorization status.",
}


class MonitoringState(Enum):
    STOPPED = "stopped"
    MONITORING = "monitoring"


class SignificantChangeMonitor:
    """Subscriber of the low-power source; owns the significant-change log."""

    def __init__(
        self,
        store: HistoryStore,
        controller: TrackingController,
        notifier: Notifier,
        source: LowPowerEventSource,
        context: SerialContext,
        *,
        max_age_seconds: float = SIGNIFICANT_CHANGE_MAX_AGE_SECONDS,
        history_key: str = SIGNIFICANT_CHANGE_HISTORY_KEY,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._controller = controller
        self._notifier = notifier
        self._source = source
        self._context = context
        self._max_age_seconds = max_age_seconds
        self._history_key = history_key
        self._clock = clock or get_current_utc_time

        self._history: list[SignificantChangeEntry] = []
        self.authorization_status = AuthorizationStatus.NOT_DETERMINED
        self.monitoring_state = MonitoringState.STOPPED
        self.status_message = "Not started"

    @property
    def history(self) -> tuple[SignificantChangeEntry, ...]:
        """Accepted events, most recent first."""
        return tuple(self._history)

    async def load(self) -> None:
        self._history = await self._store.load(
            self._history_key,
            SignificantChangeEntry,
        )

    async def start(self) -> None:
        """Load history, attach to the source and request authorization."""
        await self.load()

        if not self._source.is_available():
            self.status_message = SOURCE_UNAVAILABLE_MESSAGE
            logger.warning(SOURCE_UNAVAILABLE_MESSAGE)
            return

        self.status_message = "Requesting authorization..."
        self._source.set_subscriber(self)
        try:
            self._source.request_authorization()
        except Exception as e:
            self.handle_error(e)

        try:
            self._notifier.request_authorization()
        except Exception:
            logger.exception("Notification permission request failed")

    def stop(self) -> None:
        if self.monitoring_state is MonitoringState.MONITORING:
            try:
                self._source.stop_monitoring()
            except Exception:
                logger.exception("Low-power source failed to stop cleanly")
        self._source.set_subscriber(None)
        self.monitoring_state = MonitoringState.STOPPED
        logger.info("Significant-change monitoring stopped")

    def handle_authorization_change(self, status: AuthorizationStatus) -> None:
        self.authorization_status = status
        self.status_message = _AUTHORIZATION_MESSAGES.get(
            status,
            _AUTHORIZATION_MESSAGES[AuthorizationStatus.UNKNOWN],
        )
        logger.info("Location authorization changed: %s", status.value)

        if status.permits_monitoring:
            self._begin_monitoring()
        else:
            self._end_monitoring()

    async def handle_significant_change(
        self,
        event: SignificantChangeEvent,
        received_at: datetime | None = None,
    ) -> SignificantChangeEntry | None:
        """
        Accept or drop one significant-change event.

        Returns:
            The logged entry, or None if the event was stale.
        """
        received_at = received_at or self._clock()
        age = seconds_between(event.timestamp, received_at)
        if age > self._max_age_seconds:
            logger.debug(
                "Dropping stale significant change (%.1fs old) at %s,%s",
                age,
                event.latitude,
                event.longitude,
            )
            return None

        entry = SignificantChangeEntry.from_event(event)
        self._history.insert(0, entry)
        await self._store.save(self._history_key, self._history)
        logger.info(
            "Significant change recorded at %s,%s",
            event.latitude,
            event.longitude,
        )

        body = f"New location detected: {event.latitude:.4f}, {event.longitude:.4f}"
        try:
            self._notifier.notify(NOTIFICATION_TITLE, body)
        except Exception:
            logger.exception("Notifier failed")

        await self._controller.start_automatically(force=True)
        return entry

    def handle_error(self, error: Exception) -> None:
        self.status_message = f"Location error: {error}"
        logger.warning("Significant-change source error: %s", error)

    async def clear_history(self) -> None:
        self._history.clear()
        await self._store.save(self._history_key, self._history)
        logger.info("Significant-change history cleared")

    # Source subscriber callbacks; any thread.

    def on_significant_change(self, event: SignificantChangeEvent) -> None:
        received_at = self._clock()
        self._context.dispatch_threadsafe(
            self.handle_significant_change,
            event,
            received_at,
        )

    def on_authorization_changed(self, status: AuthorizationStatus) -> None:
        self._context.dispatch_threadsafe(self.handle_authorization_change, status)

    def on_error(self, error: Exception) -> None:
        self._context.dispatch_threadsafe(self.handle_error, error)

    def _begin_monitoring(self) -> None:
        if self.monitoring_state is MonitoringState.MONITORING:
            return
        try:
            self._source.start_monitoring()
        except AuthorizationException as e:
            self.status_message = f"Authorization error: {e.message}"
            logger.warning("Significant-change monitoring refused: %s", e.message)
            return
        except Exception as e:
            self.status_message = SOURCE_UNAVAILABLE_MESSAGE
            logger.warning("Could not start significant-change monitoring: %s", e)
            return
        self.monitoring_state = MonitoringState.MONITORING
        logger.info("Significant-change monitoring started")

    def _end_monitoring(self) -> None:
        if self.monitoring_state is MonitoringState.STOPPED:
            return
        try:
            self._source.stop_monitoring()
        except Exception:
            logger.exception("Low-power source failed to stop cleanly")
        self.monitoring_state = MonitoringState.STOPPED


__all__ = ["MonitoringState", "SignificantChangeMonitor"]
