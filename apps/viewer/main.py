import argparse, asyncio, os
import httpx
from packages.config.env import load_cfg, load_viewer_cfg
from packages.config.constants import LOCAL_ENV, PRODUCTION_ENV, TIMEFRAMES, VIEWER_CFG
from packages.config.logging import setup_logging
from packages.leaderboard.display import format_wallet, render_stats, render_table
from packages.leaderboard.ranker import SORT_KEYS
from packages.sync.engine import LeaderboardEngine
from apps.viewer.tasks.live_watch import run as run_live_watch


def envfile(env: str) -> str:
    return PRODUCTION_ENV if env == "production" else LOCAL_ENV

def load(args):
    cfg = load_cfg(envfile(args.env))
    log = setup_logging(cfg.log_level)
    viewer_cfg = load_viewer_cfg(args.config)
    if getattr(args, "timeframe", None):
        viewer_cfg.leaderboard.timeframe = args.timeframe
    if getattr(args, "sort_by", None):
        viewer_cfg.view.sort_by = args.sort_by
    if getattr(args, "order", None):
        viewer_cfg.view.sort_order = args.order
    if getattr(args, "no_auto_refresh", False):
        viewer_cfg.poll.auto_refresh = False
    log.info("Config loaded", base_url=cfg.base_url, ws_url=cfg.ws_url, timeframe=viewer_cfg.leaderboard.timeframe)
    return cfg, viewer_cfg, log

async def pull_once(args):
    cfg, viewer_cfg, log = load(args)
    engine = LeaderboardEngine(cfg, viewer_cfg)
    errors = []
    engine.on_error(errors.append)
    await engine.refresh_now()
    if errors:
        log.error("Leaderboard fetch failed", err=str(errors[0]))
        print(f"Error fetching leaderboard: {errors[0]}")
        return None, log
    log.info("Leaderboard fetched", count=len(engine.store.current_entries()), revision=str(engine.store.revision))
    return engine, log

async def run_watch(args):
    cfg, viewer_cfg, log = load(args)
    log.info("=== LIVE LEADERBOARD ===", search=args.search or "")
    await run_live_watch(cfg, viewer_cfg, search=args.search or "", duration=args.duration)

async def run_snapshot(args):
    engine, log = await pull_once(args)
    if engine is None:
        return
    print(render_table(engine.view(args.search or "")))
    if args.search:
        picked = engine.find_trader(args.search)
        print(f"\nselected: {format_wallet(picked) if picked else '(none)'}")

async def run_stats(args):
    engine, log = await pull_once(args)
    if engine is None:
        return
    print("=== STATS (derived) ===")
    print(render_stats(engine.stats()))
    print("\n=== PERFORMANCE DISTRIBUTION ===")
    for b in engine.distribution():
        print(f"{b.name:<22} {b.value}")
    if args.server:
        try:
            server = await engine.source.fetch_stats()
        except (httpx.HTTPError, ValueError) as e:
            log.error("Error fetching server stats", error=str(e))
            print(f"Error fetching server stats: {e}")
            return
        print("\n=== STATS (server) ===")
        print(render_stats(server))

async def run_export(args):
    engine, log = await pull_once(args)
    if engine is None:
        return
    text = engine.export_text(args.search or "")
    os.makedirs(args.out_dir, exist_ok=True)
    path = os.path.join(args.out_dir, engine.export_filename())
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)
    log.info("Export written", path=path, rows=text.count("\n") - 1)
    print(path)

def add_view_args(p):
    p.add_argument("--sort-by", choices=list(SORT_KEYS))
    p.add_argument("--order", choices=["asc", "desc"])
    p.add_argument("--search", default="")
    p.add_argument("--timeframe", choices=list(TIMEFRAMES))

def main():
    ap = argparse.ArgumentParser(prog="leaderboard-viewer")
    ap.add_argument("--env", default="local", choices=["local", "production"])
    ap.add_argument("--config", default=VIEWER_CFG)
    sub = ap.add_subparsers(dest="cmd")

    w = sub.add_parser("watch")
    add_view_args(w)
    w.add_argument("--no-auto-refresh", action="store_true")
    w.add_argument("--duration", type=float, default=0.0, help="seconds to run (0 = until Ctrl-C)")
    w.set_defaults(func=run_watch)

    s = sub.add_parser("snapshot")
    add_view_args(s)
    s.set_defaults(func=run_snapshot)

    st = sub.add_parser("stats")
    st.add_argument("--timeframe", choices=list(TIMEFRAMES))
    st.add_argument("--server", action="store_true", help="also fetch /api/stats")
    st.set_defaults(func=run_stats)

    e = sub.add_parser("export")
    add_view_args(e)
    e.add_argument("--out-dir", default=".")
    e.set_defaults(func=run_export)

    args = ap.parse_args()
    if not getattr(args, "func", None):
        ap.print_help(); return
    try:
        asyncio.run(args.func(args))
    except KeyboardInterrupt:
        pass

if __name__ == "__main__":
    main()
