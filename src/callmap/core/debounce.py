"""Single-shot debouncer on the asyncio event loop."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from loguru import logger


class Debouncer:
    """Run the most recently scheduled coroutine after a quiet period.

    Scheduling again before the delay elapses cancels the pending timer, so
    superseded calls never fire. ``flush`` runs the pending call at once.
    """

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._pending: Callable[[], Awaitable[None]] | None = None
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, func: Callable[[], Awaitable[None]]) -> None:
        """Schedule ``func`` to run after the quiet period.

        Must be called from within a running event loop.
        """
        self.cancel()
        loop = asyncio.get_running_loop()
        self._pending = func
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            logger.debug("Debounced call superseded")
        self._handle = None
        self._pending = None

    async def flush(self) -> None:
        """Run the pending call now instead of waiting for the timer."""
        if self._handle is None or self._pending is None:
            return
        func = self._pending
        self._handle.cancel()
        self._handle = None
        self._pending = None
        await func()

    def _fire(self) -> None:
        func = self._pending
        self._handle = None
        self._pending = None
        if func is not None:
            self._task = asyncio.ensure_future(func())
            self._task.add_done_callback(self._log_failure)

    @staticmethod
    def _log_failure(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error("Debounced call failed")

    async def wait(self) -> None:
        """Wait for the last fired call to finish (no-op if none)."""
        if self._task is not None and not self._task.done():
            await self._task
