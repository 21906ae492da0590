"""Debounce timer that coalesces bursts of store mutations into one flush."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class DebounceScheduler:
    """
    Holds at most one pending timer on the running event loop.

    Every ``arm()`` replaces the pending timer, so the callback runs once,
    ``delay`` seconds after the last call of a burst. Without a running loop
    nothing is scheduled and ``arm()`` returns False.
    """

    def __init__(self, callback: Callable[[], Awaitable[None]], delay: float = 1.0) -> None:
        self._callback = callback
        self.delay = max(0.0, float(delay))
        self._handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self.enabled = True

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def arm(self) -> bool:
        self.cancel()
        if not self.enabled:
            return False
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; flush left to flush_sync/shutdown")
            return False
        self._handle = loop.call_later(self.delay, self._fire)
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        task = asyncio.ensure_future(self._callback())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        """Wait for the flushes this scheduler has started to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
