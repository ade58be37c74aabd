"""Periodic, single-flight refresh of contract state."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Run ``refresh`` on an interval and on demand, one read at a time.

    A request made while a read is outstanding is folded into a single
    follow-up read that starts once the current one finishes.
    """

    def __init__(self, refresh: Callable[[], Awaitable[None]], *, interval: float) -> None:
        self._refresh = refresh
        self._interval = interval
        self._interval_task: asyncio.Task[None] | None = None
        self._inflight: asyncio.Task[None] | None = None
        self._pending = False
        self._completed = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_refreshing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    @property
    def completed_refreshes(self) -> int:
        return self._completed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        if self._interval_task is not None and not self._interval_task.done():
            return
        self._interval_task = asyncio.get_running_loop().create_task(self._tick())
        logger.debug("Refresh scheduler started with interval %.1fs", self._interval)

    async def close(self) -> None:
        tasks = [task for task in (self._interval_task, self._inflight) if task is not None]
        self._interval_task = None
        self._inflight = None
        self._pending = False
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.debug("Refresh scheduler stopped")

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    def request_refresh(self) -> asyncio.Task[None]:
        """Ask for a refresh; returns the task that will satisfy it."""

        inflight = self._inflight
        if inflight is not None and not inflight.done():
            self._pending = True
            return inflight

        self._inflight = asyncio.get_running_loop().create_task(self._drain())
        return self._inflight

    async def refresh_now(self) -> None:
        """Wait for a refresh; cancelling the caller leaves the shared read running."""

        await asyncio.shield(self.request_refresh())

    async def _drain(self) -> None:
        while True:
            self._pending = False
            try:
                await self._refresh()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Refresh failed")
            self._completed += 1
            if not self._pending:
                return

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.request_refresh()
