"""Shared aiohttp session.

One ClientSession per process and event loop. A session inherited across
fork, or bound to a loop that has since closed or been replaced, is
dropped and rebuilt on the next `get_session()`.
"""

from __future__ import annotations

import asyncio
import logging
import os

import aiohttp

from config import (
    HTTP_CONNECTION_LIMIT,
    HTTP_TIMEOUT_CONNECT,
    HTTP_TIMEOUT_SOCK_READ,
    HTTP_TIMEOUT_TOTAL,
    get_nominatim_user_agent,
)

logger = logging.getLogger(__name__)


class SessionState:
    session: aiohttp.ClientSession | None = None
    session_owner_pid: int | None = None
    session_loop: asyncio.AbstractEventLoop | None = None


def _reusable(session: aiohttp.ClientSession, pid: int) -> bool:
    if session.closed or pid != SessionState.session_owner_pid:
        return False
    loop = SessionState.session_loop
    return loop is asyncio.get_running_loop() and not loop.is_closed()


async def _retire(session: aiohttp.ClientSession, pid: int) -> None:
    if pid != SessionState.session_owner_pid:
        # Sockets belong to the parent process; never close them from here.
        logger.debug(
            "Dropping session inherited from process %s in process %s",
            SessionState.session_owner_pid,
            pid,
        )
        return
    loop = SessionState.session_loop
    if session.closed or loop is None or loop.is_closed():
        return
    logger.info("Event loop changed; replacing HTTP session")
    try:
        await session.close()
    except Exception as e:
        logger.warning("Error closing stale session: %s", e)


def _build_session() -> aiohttp.ClientSession:
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(
            total=HTTP_TIMEOUT_TOTAL,
            connect=HTTP_TIMEOUT_CONNECT,
            sock_read=HTTP_TIMEOUT_SOCK_READ,
        ),
        connector=aiohttp.TCPConnector(
            limit=HTTP_CONNECTION_LIMIT,
            enable_cleanup_closed=True,
        ),
        headers={
            "Accept": "application/json",
            "User-Agent": get_nominatim_user_agent(),
        },
    )


async def get_session() -> aiohttp.ClientSession:
    """Return the shared session for the current process and event loop."""
    pid = os.getpid()
    session = SessionState.session
    if session is not None and _reusable(session, pid):
        return session
    if session is not None:
        await _retire(session, pid)

    SessionState.session = _build_session()
    SessionState.session_owner_pid = pid
    SessionState.session_loop = asyncio.get_running_loop()
    logger.debug("Created HTTP session for process %s", pid)
    return SessionState.session


async def cleanup_session() -> None:
    """Close the shared session (call during shutdown)."""
    session = SessionState.session
    if session is not None and not session.closed:
        try:
            await session.close()
            logger.info("Closed HTTP session for process %s", os.getpid())
        except Exception as e:
            logger.warning("Error closing session: %s", e)

    SessionState.session = None
    SessionState.session_owner_pid = None
    SessionState.session_loop = None
