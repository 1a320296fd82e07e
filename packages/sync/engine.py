import asyncio
from datetime import date
from typing import Any, Callable, List, Optional

import structlog

from packages.config.constants import TIMEFRAMES
from packages.config.env import Cfg, ViewerCfg
from packages.feed.poller import PollingScheduler
from packages.feed.revision import RevisionClock
from packages.feed.ws import ConnectionManager
from packages.leaderboard import ranker
from packages.leaderboard.export import export_filename, to_tabular
from packages.leaderboard.fetchers import LeaderboardHTTPSource
from packages.leaderboard.models import ConnectionState, DistributionBucket, LeaderboardEntry, Snapshot, Stats
from packages.leaderboard.stats import aggregate, performance_distribution
from packages.leaderboard.store import LeaderboardStore

log = structlog.get_logger(__name__)


class LeaderboardEngine:
    """Wires the push and pull channels into one store and serves derived views.

    Both channels share one RevisionClock so local fallback revisions stay
    ordered across them. Views are recomputed from the store on every call.
    """

    def __init__(self, cfg: Cfg, viewer_cfg: ViewerCfg, *, source: Optional[LeaderboardHTTPSource] = None,
                 connection: Optional[ConnectionManager] = None, store: Optional[LeaderboardStore] = None,
                 clock: Optional[RevisionClock] = None):
        self.clock = clock or RevisionClock()
        self.store = store or LeaderboardStore()
        self.source = source or LeaderboardHTTPSource(cfg.base_url, cfg.request_timeout_sec, clock=self.clock)
        self.connection = connection or ConnectionManager(
            cfg.ws_url, viewer_cfg.stream.reconnect_delay_sec, clock=self.clock)

        self.timeframe = viewer_cfg.leaderboard.timeframe
        self.limit = viewer_cfg.leaderboard.limit
        self.sort_by = viewer_cfg.view.sort_by
        self.sort_order = viewer_cfg.view.sort_order
        self.auto_refresh = viewer_cfg.poll.auto_refresh
        self.last_error: Optional[Exception] = None
        self._error_handlers: List[Callable[[Exception], Any]] = []

        self.poller = PollingScheduler(self._pull, self.store.ingest, on_error=self._report_error,
                                       interval_ms=viewer_cfg.poll.interval_ms)
        self.connection.on_snapshot(self.store.ingest)

    # ---- lifecycle ----
    def start(self) -> None:
        log.info("engine.start", timeframe=self.timeframe, auto_refresh=self.auto_refresh)
        self.connection.start()
        self.poller.start()
        if not self.auto_refresh:
            self.poller.pause()

    async def stop(self) -> None:
        await self.connection.stop()
        await self.poller.stop()
        log.info("engine.stopped", revision=str(self.store.revision))

    # ---- user actions ----
    def refresh_now(self) -> asyncio.Task:
        return self.poller.refresh_now()

    def set_timeframe(self, timeframe: str) -> asyncio.Task:
        if timeframe not in TIMEFRAMES:
            raise ValueError(f"Unknown timeframe: {timeframe}")
        self.timeframe = timeframe
        return self.refresh_now()

    def set_auto_refresh(self, enabled: bool) -> None:
        self.auto_refresh = enabled
        if enabled:
            self.poller.resume()
        else:
            self.poller.pause()

    def on_error(self, handler: Callable[[Exception], Any]) -> None:
        self._error_handlers.append(handler)

    def subscribe(self, handler: Callable[[Snapshot], Any]) -> Callable[[], None]:
        return self.store.subscribe(handler)

    def connection_state(self) -> ConnectionState:
        return self.connection.state()

    # ---- derived views ----
    def view(self, search_text: str = "", sort_by: Optional[str] = None,
             sort_order: Optional[str] = None) -> list[LeaderboardEntry]:
        return ranker.view(self.store.current_entries(), sort_by or self.sort_by,
                           sort_order or self.sort_order, search_text)

    def stats(self) -> Stats:
        return aggregate(self.store.current_entries())

    def distribution(self) -> list[DistributionBucket]:
        return performance_distribution(self.store.current_entries())

    def find_trader(self, search_text: str) -> Optional[str]:
        return ranker.find_trader(self.store.current_entries(), search_text)

    def export_text(self, search_text: str = "") -> str:
        return to_tabular(self.view(search_text))

    def export_filename(self, day: Optional[date] = None) -> str:
        return export_filename(self.timeframe, day)

    # ---- internals ----
    async def _pull(self) -> Snapshot:
        return await self.source.fetch(timeframe=self.timeframe, limit=self.limit,
                                       sort_by=self.sort_by, sort_order=self.sort_order)

    def _report_error(self, err: Exception) -> None:
        self.last_error = err
        for handler in list(self._error_handlers):
            handler(err)
