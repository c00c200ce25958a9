"""Motion-activity log: records changes of the coarse movement state."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config import ACTIVITY_HISTORY_KEY, ACTIVITY_HISTORY_LIMIT
from tracking.models import ActivityEntry, ActivityState, MotionActivity

if TYPE_CHECKING:
    from core.serial_context import SerialContext
    from history import HistoryStore
    from tracking.sources import ActivitySource

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Motion activity is not available on this device."


class ActivityMonitor:
    def __init__(
        self,
        store: HistoryStore,
        source: ActivitySource,
        context: SerialContext,
        *,
        limit: int = ACTIVITY_HISTORY_LIMIT,
        history_key: str = ACTIVITY_HISTORY_KEY,
    ) -> None:
        self._store = store
        self._source = source
        self._context = context
        self._limit = limit
        self._history_key = history_key

        self._history: list[ActivityEntry] = []
        self.current_state = ActivityState.UNKNOWN
        self.availability_message: str | None = None
        self._running = False

    @property
    def history(self) -> tuple[ActivityEntry, ...]:
        return tuple(self._history)

    async def load(self) -> None:
        self._history = await self._store.load(self._history_key, ActivityEntry)
        if self._history:
            self.current_state = self._history[0].state

    def start(self) -> bool:
        if self._running:
            return True
        if not self._source.is_available():
            self.availability_message = UNAVAILABLE_MESSAGE
            logger.info(UNAVAILABLE_MESSAGE)
            return False
        try:
            self._source.start_updates(self)
        except Exception as e:
            self.availability_message = UNAVAILABLE_MESSAGE
            logger.warning("Activity source failed to start: %s", e)
            return False
        self.availability_message = None
        self._running = True
        return True

    def stop(self) -> None:
        if not self._running:
            return
        try:
            self._source.stop_updates()
        except Exception:
            logger.exception("Activity source failed to stop cleanly")
        self._running = False

    async def handle_activity(self, activity: MotionActivity) -> ActivityEntry | None:
        """
        Log `activity` if its state differs from the last logged one.

        Returns:
            The new entry, or None when the state is unchanged.
        """
        state = activity.state
        self.current_state = state
        if self._history and self._history[0].state == state:
            return None

        entry = ActivityEntry(date=activity.timestamp, state=state)
        self._history.insert(0, entry)
        del self._history[self._limit :]
        await self._store.save(self._history_key, self._history)
        logger.debug("Motion state changed to %s", state.value)
        return entry

    async def clear_history(self) -> None:
        self._history.clear()
        await self._store.save(self._history_key, self._history)

    def on_activity(self, activity: MotionActivity) -> None:
        self._context.dispatch_threadsafe(self.handle_activity, activity)


__all__ = ["UNAVAILABLE_MESSAGE", "ActivityMonitor"]
