# background loop: push + poll -> store -> re-render
import asyncio
import structlog
from packages.config.env import Cfg, ViewerCfg
from packages.leaderboard.display import render_stats, render_table
from packages.leaderboard.models import ConnectionState
from packages.sync.engine import LeaderboardEngine

log = structlog.get_logger(__name__)

STATUS = {
    ConnectionState.CONNECTED: "Live",
    ConnectionState.CONNECTING: "Connecting...",
    ConnectionState.DISCONNECTED: "Disconnected",
}

def render(engine: LeaderboardEngine, search: str = "") -> str:
    rows = engine.view(search)
    head = (f"[{STATUS[engine.connection_state()]}] timeframe={engine.timeframe} "
            f"sort={engine.sort_by} {engine.sort_order} revision={engine.store.revision}")
    return "\n".join([head, render_stats(engine.stats()), render_table(rows), ""])

async def run(cfg: Cfg, viewer_cfg: ViewerCfg, search: str = "", duration: float = 0.0):
    engine = LeaderboardEngine(cfg, viewer_cfg)
    engine.subscribe(lambda snap: print(render(engine, search), flush=True))
    engine.connection.on_state_change(lambda state: print(f"[{STATUS[state]}]", flush=True))
    engine.on_error(lambda err: print(f"refresh failed: {err}", flush=True))

    engine.start()
    try:
        if duration > 0:
            await asyncio.sleep(duration)
        else:
            await asyncio.Event().wait()
    finally:
        await engine.stop()
    return engine
