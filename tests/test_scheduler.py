"""Tests for the single-flight refresh scheduler."""

import asyncio

import pytest

from time_tomb.scheduler import RefreshScheduler


class SlowRefresh:
    def __init__(self) -> None:
        self.started = 0
        self.running = 0
        self.max_running = 0
        self.release = asyncio.Event()

    async def __call__(self) -> None:
        self.started += 1
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        try:
            await self.release.wait()
        finally:
            self.running -= 1


def test_overlapping_requests_collapse_into_one_follow_up():
    async def scenario() -> SlowRefresh:
        refresh = SlowRefresh()
        scheduler = RefreshScheduler(refresh, interval=60)

        first = scheduler.request_refresh()
        await asyncio.sleep(0)
        second = scheduler.request_refresh()
        third = scheduler.request_refresh()
        assert first is second is third
        assert scheduler.is_refreshing

        refresh.release.set()
        await first
        assert not scheduler.is_refreshing
        assert scheduler.completed_refreshes == 2
        return refresh

    refresh = asyncio.run(scenario())

    assert refresh.started == 2
    assert refresh.max_running == 1


def test_cancelled_waiter_keeps_follow_up_refresh():
    async def scenario() -> SlowRefresh:
        refresh = SlowRefresh()
        scheduler = RefreshScheduler(refresh, interval=60)

        waiter = asyncio.ensure_future(scheduler.refresh_now())
        while refresh.started == 0:
            await asyncio.sleep(0)
        drain = scheduler.request_refresh()

        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        refresh.release.set()
        await drain
        assert scheduler.completed_refreshes == 2
        return refresh

    refresh = asyncio.run(scenario())

    assert refresh.started == 2


def test_idle_request_starts_new_read():
    calls: list[int] = []

    async def refresh() -> None:
        calls.append(1)

    async def scenario() -> None:
        scheduler = RefreshScheduler(refresh, interval=60)
        await scheduler.refresh_now()
        await scheduler.refresh_now()

    asyncio.run(scenario())

    assert len(calls) == 2


def test_interval_fires_refresh():
    calls: list[int] = []

    async def refresh() -> None:
        calls.append(1)

    async def scenario() -> None:
        scheduler = RefreshScheduler(refresh, interval=0.01)
        scheduler.start()
        await asyncio.sleep(0.055)
        await scheduler.close()
        count = len(calls)
        await asyncio.sleep(0.03)
        assert len(calls) == count

    asyncio.run(scenario())

    assert len(calls) >= 3


def test_refresh_errors_do_not_stop_the_loop():
    calls: list[int] = []

    async def refresh() -> None:
        calls.append(1)
        raise RuntimeError("rpc down")

    async def scenario() -> None:
        scheduler = RefreshScheduler(refresh, interval=0.01)
        scheduler.start()
        await asyncio.sleep(0.05)
        await scheduler.close()

    asyncio.run(scenario())

    assert len(calls) >= 2


def test_close_cancels_inflight_read():
    async def scenario() -> SlowRefresh:
        refresh = SlowRefresh()
        scheduler = RefreshScheduler(refresh, interval=60)
        scheduler.start()
        scheduler.request_refresh()
        await asyncio.sleep(0)
        await scheduler.close()
        assert not scheduler.is_refreshing
        return refresh

    refresh = asyncio.run(scenario())

    assert refresh.running == 0
