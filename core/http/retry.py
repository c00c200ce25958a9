"""Retry policy for outbound HTTP calls.

Transport failures and transient upstream statuses (rate limiting, 5xx
gateway errors) are retried with exponential backoff; anything else
propagates on the first attempt.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Final

from aiohttp import ClientError
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from core.exceptions import ExternalServiceException

logger = logging.getLogger(__name__)

TRANSIENT_STATUSES: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})


def is_transient(
    exc: BaseException,
    retry_exceptions: tuple[type[BaseException], ...] = (
        ClientError,
        asyncio.TimeoutError,
    ),
    statuses: frozenset[int] = TRANSIENT_STATUSES,
) -> bool:
    """True for transport errors and service errors carrying a transient status."""
    if isinstance(exc, retry_exceptions):
        return True
    if isinstance(exc, ExternalServiceException):
        return exc.details.get("status") in statuses
    return False


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    name = getattr(state.fn, "__qualname__", state.fn)
    logger.warning(
        "Retrying %s in %.1fs (attempt %d failed: %s)",
        name,
        state.next_action.sleep if state.next_action else 0.0,
        state.attempt_number,
        exc,
    )


def retry_async(
    max_retries: int = 2,
    retry_delay: float = 1.0,
    backoff_factor: float = 2.0,
    retry_exceptions: tuple[type[BaseException], ...] = (
        ClientError,
        asyncio.TimeoutError,
    ),
    statuses: frozenset[int] = TRANSIENT_STATUSES,
):
    """Build a tenacity decorator for async callables.

    Args:
        max_retries: Attempts allowed after the first one.
        retry_delay: Backoff multiplier in seconds.
        backoff_factor: Exponential base of the backoff.
        retry_exceptions: Transport exception types that are always retried.
        statuses: ExternalServiceException statuses that are retried.
    """
    return retry(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=retry_delay, exp_base=backoff_factor),
        retry=retry_if_exception(
            lambda exc: is_transient(exc, retry_exceptions, statuses),
        ),
        before_sleep=_log_retry,
        reraise=True,
    )
