"""
PollingScheduler: cadence, pause/resume, supersession, failure isolation.
"""
import asyncio
from decimal import Decimal

import httpx
import pytest

from packages.feed.poller import PollingScheduler
from packages.leaderboard.models import SourceKind

from factories import entry, snap, until


def counting_fetch(calls):
    async def fetch():
        calls.append(1)
        return snap(len(calls), entry("0xA"), kind=SourceKind.POLL)
    return fetch


@pytest.mark.asyncio
async def test_start_fetches_immediately_then_on_interval():
    calls, delivered = [], []
    poller = PollingScheduler(counting_fetch(calls), delivered.append, interval_ms=20)
    poller.start()
    await until(lambda: len(delivered) >= 1)
    assert delivered[0].revision == Decimal(1)
    await until(lambda: len(delivered) >= 3)
    await poller.stop()
    assert not poller.active


@pytest.mark.asyncio
async def test_pause_keeps_the_same_timer_and_resume_continues():
    calls, delivered = [], []
    poller = PollingScheduler(counting_fetch(calls), delivered.append, interval_ms=10)
    poller.start()
    await until(lambda: len(calls) >= 2)

    poller.pause()
    timer = poller._timer
    await asyncio.sleep(0.03)
    frozen = len(calls)
    await asyncio.sleep(0.06)
    assert len(calls) == frozen
    assert poller._timer is timer and not timer.done()

    poller.resume()
    await until(lambda: len(calls) > frozen)
    assert poller._timer is timer
    await poller.stop()


@pytest.mark.asyncio
async def test_refresh_now_works_while_paused():
    calls, delivered = [], []
    poller = PollingScheduler(counting_fetch(calls), delivered.append, interval_ms=60_000)
    poller.pause()
    await poller.refresh_now()
    assert len(delivered) == 1


@pytest.mark.asyncio
async def test_newer_fetch_supersedes_the_one_in_flight():
    gate = asyncio.Event()
    calls, delivered = [], []

    async def fetch():
        n = len(calls)
        calls.append(n)
        if n == 0:
            await gate.wait()
        return snap(n + 1, entry("0xA", roi=str(n)), kind=SourceKind.POLL)

    poller = PollingScheduler(fetch, delivered.append, interval_ms=60_000)
    slow = poller.refresh_now()
    await asyncio.sleep(0)
    fast = poller.refresh_now()
    await fast
    gate.set()
    await asyncio.sleep(0.01)

    assert slow.cancelled()
    assert [s.revision for s in delivered] == [Decimal(2)]


@pytest.mark.asyncio
async def test_failure_is_reported_once_per_fetch_and_cadence_continues():
    errors, delivered = [], []

    async def fetch():
        raise httpx.ConnectError("connection refused")

    poller = PollingScheduler(fetch, delivered.append, on_error=errors.append, interval_ms=15)
    poller.start()
    await until(lambda: len(errors) >= 3)
    await poller.stop()

    assert delivered == []
    assert all(isinstance(e, httpx.ConnectError) for e in errors)


@pytest.mark.asyncio
async def test_stop_cancels_the_timer():
    calls, delivered = [], []
    poller = PollingScheduler(counting_fetch(calls), delivered.append, interval_ms=10)
    poller.start()
    await until(lambda: len(calls) >= 1)
    await poller.stop()
    stopped_at = len(calls)
    await asyncio.sleep(0.05)
    assert len(calls) == stopped_at
    await poller.stop()


@pytest.mark.asyncio
async def test_unexpected_fetch_errors_reach_on_error():
    errors, delivered = [], []

    async def fetch():
        raise httpx.InvalidURL("no scheme")

    poller = PollingScheduler(fetch, delivered.append, on_error=errors.append, interval_ms=60_000)
    task = poller.refresh_now()
    await task

    assert task.exception() is None
    assert len(errors) == 1 and isinstance(errors[0], httpx.InvalidURL)
    assert delivered == []
