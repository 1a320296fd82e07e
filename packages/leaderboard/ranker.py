from decimal import Decimal
from typing import Iterable, Optional

from .models import LeaderboardEntry

# sortBy wire name -> entry field
SORT_KEYS = {
    "roi": "roi",
    "pnl": "pnl",
    "volume": "volume",
    "accountValue": "account_value",
}


def wallet_key(e: LeaderboardEntry):
    return (e.wallet.lower(), e.wallet)


def sort_key(e: LeaderboardEntry, sort_by: str) -> Optional[Decimal]:
    field = SORT_KEYS.get(sort_by)
    if field is None:
        raise ValueError(f"Unknown sort key: {sort_by}")
    return e.decimal(field)


def matches(e: LeaderboardEntry, search_text: str) -> bool:
    return search_text.lower() in e.wallet.lower()


def view(entries: Iterable[LeaderboardEntry], sort_by: str = "roi", sort_order: str = "desc",
         search_text: str = "") -> list[LeaderboardEntry]:
    """Filtered, sorted projection of the entries.

    Comparison is numeric on the decimal value. Ties fall back to wallet
    ascending in both orders; entries whose sort value is malformed go last.
    """
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {sort_by}")
    if sort_order not in ("asc", "desc"):
        raise ValueError(f"Unknown sort order: {sort_order}")

    needle = search_text or ""
    pool = [e for e in entries if matches(e, needle)] if needle else list(entries)

    pool.sort(key=wallet_key)
    ranked = [e for e in pool if sort_key(e, sort_by) is not None]
    unranked = [e for e in pool if sort_key(e, sort_by) is None]
    # reverse=True keeps equal elements in wallet order
    ranked.sort(key=lambda e: sort_key(e, sort_by), reverse=(sort_order == "desc"))
    return ranked + unranked


def find_trader(entries: Iterable[LeaderboardEntry], search_text: str) -> Optional[str]:
    needle = search_text or ""
    if not needle:
        return None
    return next((e.wallet for e in entries if matches(e, needle)), None)
