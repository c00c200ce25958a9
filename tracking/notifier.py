"""Notification contract and the default logging implementation."""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Fire-and-forget user notification."""

    def notify(self, title: str, body: str) -> None: ...

    def request_authorization(self) -> None:
        """Ask the user for permission to show notifications."""
        ...


class LoggingNotifier:
    """Notifier for headless runs: every notification becomes a log line."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def notify(self, title: str, body: str) -> None:
        self._log.info("Notification: %s - %s", title, body)

    def request_authorization(self) -> None:
        self._log.debug("Notification permission implicitly granted")
