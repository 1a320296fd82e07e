from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from .models import LeaderboardEntry, Stats, to_decimal

CENTS = Decimal("0.01")


def format_currency(value) -> str:
    num = to_decimal(value)
    if num is None:
        return str(value)
    if num >= 1_000_000:
        return f"${(num / 1_000_000).quantize(CENTS, ROUND_HALF_UP)}M"
    if num >= 1_000:
        return f"${(num / 1_000).quantize(CENTS, ROUND_HALF_UP)}K"
    return f"${num.quantize(CENTS, ROUND_HALF_UP)}"


def format_wallet(wallet: str) -> str:
    if len(wallet) <= 10:
        return wallet
    return f"{wallet[:6]}...{wallet[-4:]}"


def format_pct(value) -> str:
    num = to_decimal(value)
    if num is None:
        return str(value)
    return f"{num.quantize(CENTS, ROUND_HALF_UP)}%"


def render_table(entries: Iterable[LeaderboardEntry]) -> str:
    rows = list(entries)
    if not rows:
        return "(no matches)"
    out = [f"{'Rank':>5}  {'Wallet':<15} {'Account':>12} {'PnL':>12} {'ROI':>10} {'Volume':>12}",
           "-" * 72]
    for e in rows:
        out.append(f"{e.rank:>5}  {format_wallet(e.wallet):<15} {format_currency(e.account_value):>12} "
                   f"{format_currency(e.pnl):>12} {format_pct(e.roi):>10} {format_currency(e.volume):>12}")
    return "\n".join(out)


def render_stats(stats: Stats) -> str:
    return (f"traders={stats.total_traders} volume={format_currency(stats.total_volume)} "
            f"avg_roi={format_pct(stats.average_roi)} top={format_wallet(stats.top_performer) or 'N/A'} "
            f"pnl={format_currency(stats.total_pnl)}")
