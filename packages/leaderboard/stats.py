from decimal import Decimal
from typing import Iterable

from .models import DistributionBucket, LeaderboardEntry, Stats
from .ranker import wallet_key

ZERO = Decimal("0")


def aggregate(entries: Iterable[LeaderboardEntry]) -> Stats:
    """Summary metrics over the entries, in exact decimal arithmetic.

    Malformed numeric fields drop out of the sum or mean they would
    contribute to; the entry still counts toward total_traders.
    """
    rows = list(entries)
    total_volume = ZERO
    total_pnl = ZERO
    roi_sum = ZERO
    roi_n = 0
    top = None
    top_roi = None

    for e in rows:
        vol = e.decimal("volume")
        if vol is not None:
            total_volume += vol
        pnl = e.decimal("pnl")
        if pnl is not None:
            total_pnl += pnl
        roi = e.decimal("roi")
        if roi is None:
            continue
        roi_sum += roi
        roi_n += 1
        if top is None or roi > top_roi or (roi == top_roi and wallet_key(e) < wallet_key(top)):
            top, top_roi = e, roi

    return Stats(
        total_traders=len(rows),
        total_volume=total_volume,
        average_roi=(roi_sum / roi_n) if roi_n else ZERO,
        top_performer=top.wallet if top is not None else "",
        total_pnl=total_pnl,
    )


def performance_distribution(entries: Iterable[LeaderboardEntry]) -> list[DistributionBucket]:
    high = medium = low = negative = 0
    for e in entries:
        roi = e.decimal("roi")
        if roi is None:
            continue
        if roi > 50:
            high += 1
        elif roi >= 10:
            medium += 1
        elif roi >= 0:
            low += 1
        else:
            negative += 1
    return [
        DistributionBucket(name="High ROI (>50%)", value=high),
        DistributionBucket(name="Medium ROI (10-50%)", value=medium),
        DistributionBucket(name="Low ROI (0-10%)", value=low),
        DistributionBucket(name="Negative ROI", value=negative),
    ]
