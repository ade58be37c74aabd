"""Tests for the local countdown."""

import asyncio

import pytest

from time_tomb.clock import CountdownClock, compute_countdown
from time_tomb.types import CountdownDisplay, Urgency

DAY = 24 * 60 * 60


class TestComputeCountdown:
    def test_breaks_remaining_time_into_units(self):
        end = 1_000_000 + 2 * DAY + 3 * 3600 + 4 * 60 + 5
        display = compute_countdown(end, 1_000_000, reference_window=DAY)

        assert (display.days, display.hours, display.minutes, display.seconds) == (2, 3, 4, 5)
        assert display.total_ms == (2 * DAY + 3 * 3600 + 4 * 60 + 5) * 1000
        assert display.is_open

    def test_past_end_is_terminal_zero(self):
        display = compute_countdown(1_000, 2_000, reference_window=DAY)
        assert display == CountdownDisplay.closed()
        assert not display.is_open
        assert display.progress == 0

    def test_exactly_at_end_is_closed(self):
        assert not compute_countdown(1_000, 1_000, reference_window=DAY).is_open

    def test_progress_is_remaining_share_of_window(self):
        display = compute_countdown(DAY // 2, 0, reference_window=DAY)
        assert display.progress == pytest.approx(50.0)

    def test_progress_clamped_when_longer_than_window(self):
        display = compute_countdown(3 * DAY, 0, reference_window=DAY)
        assert display.progress == 100.0

    @pytest.mark.parametrize(
        "remaining,expected",
        [(DAY, Urgency.CALM), (DAY * 0.4, Urgency.WARNING), (DAY * 0.1, Urgency.CRITICAL)],
    )
    def test_urgency_tiers(self, remaining, expected):
        display = compute_countdown(int(remaining), 0, reference_window=DAY)
        assert display.urgency is expected

    def test_labels_are_two_digit(self):
        display = compute_countdown(65, 0, reference_window=DAY)
        assert display.as_labels() == {
            "days": "00",
            "hours": "00",
            "minutes": "01",
            "seconds": "05",
        }


class FakeTime:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_clock_ticks_until_zero_then_stops():
    ticks: list[CountdownDisplay] = []
    clock_time = FakeTime(100.0)

    async def scenario() -> None:
        clock = CountdownClock(
            ticks.append, tick_interval=0.01, reference_window=DAY, time_source=clock_time
        )
        clock.set_end_timestamp(102)
        assert clock.is_running
        assert ticks[-1].seconds == 2

        clock_time.now = 101.0
        await asyncio.sleep(0.03)
        clock_time.now = 105.0
        await asyncio.sleep(0.05)

        assert not clock.is_running
        count = len(ticks)
        await asyncio.sleep(0.03)
        assert len(ticks) == count

    asyncio.run(scenario())

    assert ticks[-1] == CountdownDisplay.closed()
    assert any(tick.seconds == 1 for tick in ticks)


def test_clock_restarts_on_new_timestamp():
    ticks: list[CountdownDisplay] = []
    clock_time = FakeTime(100.0)

    async def scenario() -> None:
        clock = CountdownClock(
            ticks.append, tick_interval=10, reference_window=DAY, time_source=clock_time
        )
        clock.set_end_timestamp(160)
        first_task = clock._task
        clock.set_end_timestamp(160)
        assert clock._task is first_task

        clock.set_end_timestamp(400)
        assert clock._task is not first_task
        assert clock.current.minutes == 5
        clock.stop()
        assert not clock.is_running

    asyncio.run(scenario())

    assert len(ticks) == 2


def test_clock_with_past_timestamp_never_starts():
    ticks: list[CountdownDisplay] = []

    async def scenario() -> None:
        clock = CountdownClock(ticks.append, time_source=FakeTime(500.0))
        clock.set_end_timestamp(0)
        assert not clock.is_running
        clock.set_end_timestamp(0)

    asyncio.run(scenario())

    assert ticks == [CountdownDisplay.closed()]
