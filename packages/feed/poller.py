import asyncio
from typing import Any, Awaitable, Callable, Optional

import structlog

from packages.config.constants import DEFAULT_POLL_INTERVAL_MS
from packages.leaderboard.models import Snapshot

log = structlog.get_logger(__name__)


class PollingScheduler:
    """Pull channel: one fetch on start, then one every interval_ms.

    pause()/resume() only flip a flag; the timer task keeps running so a
    single timer survives any number of pause cycles. refresh_now() fetches
    out of band. A newer fetch cancels the one still in flight, and a
    superseded result is never handed on.
    """

    def __init__(self, fetch: Callable[[], Awaitable[Snapshot]], on_snapshot: Callable[[Snapshot], Any],
                 on_error: Optional[Callable[[Exception], Any]] = None,
                 interval_ms: int = DEFAULT_POLL_INTERVAL_MS):
        self._fetch = fetch
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self.interval_ms = interval_ms
        self._paused = False
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def active(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def paused(self) -> bool:
        return self._paused

    def start(self, interval_ms: Optional[int] = None) -> None:
        if interval_ms is not None:
            self.interval_ms = interval_ms
        if self.active:
            return
        self.refresh_now()
        self._timer = asyncio.get_running_loop().create_task(self._tick())

    async def stop(self) -> None:
        timer, self._timer = self._timer, None
        inflight, self._inflight = self._inflight, None
        self._generation += 1
        for task in (timer, inflight):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def refresh_now(self) -> asyncio.Task:
        self._generation += 1
        if self._inflight is not None and not self._inflight.done():
            log.debug("poll.superseded", generation=self._generation - 1)
            self._inflight.cancel()
        self._inflight = asyncio.get_running_loop().create_task(self._pull(self._generation))
        return self._inflight

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self.interval_ms / 1000)
            if not self._paused:
                self.refresh_now()

    async def _pull(self, generation: int) -> None:
        try:
            snapshot = await self._fetch()
        except Exception as e:
            if generation != self._generation:
                return
            log.warning("poll.failed", err=str(e) or type(e).__name__)
            if self._on_error is not None:
                self._on_error(e)
            return
        if generation != self._generation:
            log.debug("poll.superseded", generation=generation)
            return
        self._on_snapshot(snapshot)
