"""
Serialized event-processing context.

Every mutation of tracking state runs here: a single worker task drains a
FIFO queue and runs each submitted callable to completion before starting
the next one. Event sources deliver on arbitrary threads and hop onto the
context with `submit_threadsafe`; code already on the event loop uses
`run`.

Usage:
    context = SerialContext("tracking")
    await context.start()

    await context.run(controller.toggle_tracking)
    context.submit_threadsafe(controller.handle_position, sample)

    await context.stop()
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    import concurrent.futures
    from collections.abc import Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _Job:
    fn: Callable[..., Any]
    args: tuple[Any, ...]
    kwargs: dict[str, Any]
    future: asyncio.Future[Any]


class SerialContext:
    """Runs submitted callables one at a time, in arrival order."""

    def __init__(self, name: str = "tracking") -> None:
        self.name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[_Job | None] | None = None
        self._worker: asyncio.Task[None] | None = None
        self._closing = False

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def accepting(self) -> bool:
        """False once `stop()` has begun, even while queued jobs still finish."""
        return self.is_running and not self._closing

    async def start(self) -> None:
        """Start the worker on the running event loop."""
        if self.is_running:
            return
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._closing = False
        self._worker = asyncio.create_task(
            self._drain(self._queue),
            name=f"serial-context:{self.name}",
        )
        logger.debug("Serial context %s started", self.name)

    async def stop(self) -> None:
        """
        Finish every queued job, then stop the worker.

        New submissions are rejected from the moment this is called.
        """
        if self._closing:
            await self.join()
            return
        if not self.is_running or self._queue is None or self._worker is None:
            return
        self._closing = True
        self._queue.put_nowait(None)
        await self._worker
        self._worker = None
        logger.debug("Serial context %s stopped", self.name)

    async def join(self) -> None:
        """Wait until the worker has exited; returns at once if it never ran."""
        worker = self._worker
        if worker is None or self.on_context():
            return
        await asyncio.shield(worker)

    def on_context(self) -> bool:
        """True when called from inside a job running on this context."""
        try:
            current = asyncio.current_task()
        except RuntimeError:
            return False
        return current is not None and current is self._worker

    async def run(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """
        Queue `fn` and wait for its result.

        A job that is already running on the context executes nested calls
        inline; queueing them would wait on itself forever.
        """
        if self.on_context():
            return await _call(fn, *args, **kwargs)
        return await self.submit(fn, *args, **kwargs)

    def submit(
        self,
        fn: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> asyncio.Future[Any]:
        """Queue `fn` from the event loop thread without waiting for it."""
        if not self.accepting or self._loop is None or self._queue is None:
            msg = f"Serial context {self.name} is not accepting jobs"
            raise RuntimeError(msg)
        future: asyncio.Future[Any] = self._loop.create_future()
        self._queue.put_nowait(_Job(fn, args, kwargs, future))
        return future

    def submit_threadsafe(
        self,
        fn: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> concurrent.futures.Future[Any]:
        """Queue `fn` from any thread; the returned future resolves with its result."""
        if self._loop is None or not self.accepting:
            msg = f"Serial context {self.name} is not accepting jobs"
            raise RuntimeError(msg)

        async def _enqueue() -> Any:
            return await self.submit(fn, *args, **kwargs)

        return asyncio.run_coroutine_threadsafe(_enqueue(), self._loop)

    def dispatch_threadsafe(self, fn: Callable[..., Any], *args: Any) -> bool:
        """
        Fire-and-forget `submit_threadsafe` for source callbacks.

        Returns False, after logging, when the context no longer accepts jobs.
        """
        try:
            self.submit_threadsafe(fn, *args)
        except RuntimeError:
            logger.warning(
                "Serial context %s not accepting jobs; dropping %s",
                self.name,
                getattr(fn, "__qualname__", fn),
            )
            return False
        return True

    async def drain(self) -> None:
        """Wait until every job queued before this call has finished."""
        await self.run(lambda: None)

    async def _drain(self, queue: asyncio.Queue[_Job | None]) -> None:
        while True:
            job = await queue.get()
            if job is None:
                break
            try:
                result = await _call(job.fn, *job.args, **job.kwargs)
            except Exception as exc:
                logger.exception(
                    "Job %s failed on serial context %s",
                    getattr(job.fn, "__qualname__", job.fn),
                    self.name,
                )
                if not job.future.done():
                    job.future.set_exception(exc)
            else:
                if not job.future.done():
                    job.future.set_result(result)

        while not queue.empty():
            job = queue.get_nowait()
            if job is not None and not job.future.done():
                job.future.set_exception(
                    RuntimeError(f"Serial context {self.name} stopped before the job ran"),
                )


async def _call(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    result = fn(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


__all__ = ["SerialContext"]
