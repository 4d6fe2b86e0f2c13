"""Timer and one-shot primitives for the recording controller."""

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable
from typing import Protocol

_logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[None]]


class TimerHandle(Protocol):
    """Handle to a repeating timer."""

    def cancel(self) -> None:
        """Stop the timer; no callback runs after this returns."""


class Scheduler(Protocol):
    """Creates repeating timers on the current event loop."""

    def every(self, interval_seconds: float, callback: TickCallback) -> TimerHandle:
        """Run the callback every interval until the handle is cancelled."""


class _RepeatingTimer(TimerHandle):
    """A repeating timer backed by a single asyncio task.

    The callback is awaited before the next sleep starts, so ticks never
    overlap and each tick's effects are applied before the next one runs.
    """

    def __init__(self, interval_seconds: float, callback: TickCallback) -> None:
        self._interval = interval_seconds
        self._callback = callback
        self._cancelled = False
        self._task = asyncio.get_running_loop().create_task(self._run())

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        # A callback may cancel its own timer; interrupting it would abort the
        # awaits that follow, so the loop exits on the flag instead.
        if asyncio.current_task() is not self._task:
            self._task.cancel()

    async def _run(self) -> None:
        while not self._cancelled:
            await asyncio.sleep(self._interval)
            if self._cancelled:
                return
            try:
                await self._callback()
            except Exception:
                _logger.exception("Timer callback failed")


class AsyncioScheduler(Scheduler):
    """Scheduler using asyncio tasks on the running loop."""

    def every(self, interval_seconds: float, callback: TickCallback) -> TimerHandle:
        """Start a repeating timer."""
        return _RepeatingTimer(interval_seconds, callback)


class CompletionLatch:
    """One-shot compare-and-set flag.

    ``claim`` returns True for exactly one caller; the check and the set
    happen under one lock acquisition.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._claimed = False

    @property
    def claimed(self) -> bool:
        return self._claimed

    def claim(self) -> bool:
        """Atomically mark the latch as claimed; return False if it already was."""
        with self._lock:
            if self._claimed:
                return False
            self._claimed = True
            return True
