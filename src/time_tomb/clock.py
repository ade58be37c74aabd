"""Local countdown derived from the round's end timestamp."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from .types import CountdownDisplay

logger = logging.getLogger(__name__)

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR


def compute_countdown(end_timestamp: int, now: float, reference_window: float) -> CountdownDisplay:
    """Break the time left until ``end_timestamp`` into display units.

    Args:
        end_timestamp: Round close time in seconds since the epoch
        now: Current time in seconds since the epoch
        reference_window: Round duration in seconds the progress is measured against

    Returns:
        CountdownDisplay with ``progress`` as the remaining share of the window,
        clamped to [0, 100]
    """
    remaining_ms = int(end_timestamp * MS_PER_SECOND - now * MS_PER_SECOND)
    if remaining_ms <= 0:
        return CountdownDisplay.closed()

    window_ms = reference_window * MS_PER_SECOND
    progress = min(100.0, max(0.0, remaining_ms / window_ms * 100))

    return CountdownDisplay(
        days=remaining_ms // MS_PER_DAY,
        hours=(remaining_ms % MS_PER_DAY) // MS_PER_HOUR,
        minutes=(remaining_ms % MS_PER_HOUR) // MS_PER_MINUTE,
        seconds=(remaining_ms % MS_PER_MINUTE) // MS_PER_SECOND,
        total_ms=remaining_ms,
        progress=progress,
    )


class CountdownClock:
    """Tick a countdown locally, independent of network polling."""

    def __init__(
        self,
        on_tick: Callable[[CountdownDisplay], None],
        *,
        tick_interval: float = 1.0,
        reference_window: float = 24 * 60 * 60.0,
        time_source: Callable[[], float] = time.time,
    ) -> None:
        self._on_tick = on_tick
        self._tick_interval = tick_interval
        self._reference_window = reference_window
        self._time_source = time_source
        self._end_timestamp: int | None = None
        self._task: asyncio.Task[None] | None = None
        self._current = CountdownDisplay.closed()

    @property
    def current(self) -> CountdownDisplay:
        return self._current

    @property
    def end_timestamp(self) -> int | None:
        return self._end_timestamp

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def display(self) -> CountdownDisplay:
        if self._end_timestamp is None:
            return CountdownDisplay.closed()
        return compute_countdown(self._end_timestamp, self._time_source(), self._reference_window)

    def set_end_timestamp(self, end_timestamp: int) -> None:
        """Restart the countdown when the end timestamp changes."""

        if end_timestamp == self._end_timestamp and (self.is_running or not self._current.is_open):
            return
        self._end_timestamp = end_timestamp
        self.stop()
        self._emit()
        if self._current.is_open:
            self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            self._emit()
            if not self._current.is_open:
                logger.info("Countdown reached zero for end timestamp %s", self._end_timestamp)
                return

    def _emit(self) -> None:
        self._current = self.display()
        self._on_tick(self._current)
