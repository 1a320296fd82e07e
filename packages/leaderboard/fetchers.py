from decimal import Decimal
from typing import Any, Optional

import httpx
from pydantic import TypeAdapter

from packages.config.constants import LEADERBOARD_PATH, STATS_PATH
from packages.feed.revision import RevisionClock, revision_from_timestamp
from .models import LeaderboardEntry, Snapshot, SourceKind, Stats

_ENTRIES = TypeAdapter(list[LeaderboardEntry])


def parse_leaderboard(raw: Any, clock: RevisionClock) -> Snapshot:
    """Snapshot for a pull response shaped {"data": {"leaderboard": [...]}}.

    Revision is the response's own timestamp (top level or under data) when
    present, else the next local revision.
    """
    if not isinstance(raw, dict):
        raise ValueError("leaderboard response is not an object")
    if raw.get("errors"):
        raise ValueError(f"leaderboard query failed: {raw['errors']}")
    data = raw.get("data")
    rows = data.get("leaderboard") if isinstance(data, dict) else None
    if not isinstance(rows, list):
        raise ValueError("leaderboard response has no data.leaderboard list")
    entries = _ENTRIES.validate_python(rows)

    ts = raw.get("timestamp")
    if ts is None:
        ts = data.get("timestamp")
    revision = revision_from_timestamp(ts)
    if revision is None:
        revision = clock.next()
    return Snapshot(entries=tuple(entries), revision=revision, source_kind=SourceKind.POLL)


class LeaderboardHTTPSource:
    def __init__(self, base_url: str, timeout: float = 10.0, clock: Optional[RevisionClock] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url
        self.timeout = timeout
        self.clock = clock or RevisionClock()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    async def fetch(self, timeframe: str = "24h", limit: int = 100, offset: int = 0,
                    sort_by: str = "roi", sort_order: str = "desc") -> Snapshot:
        params = {"timeframe": timeframe, "limit": limit, "offset": offset,
                  "sortBy": sort_by, "sortOrder": sort_order}
        async with self._client() as h:
            r = await h.get(LEADERBOARD_PATH, params=params)
            r.raise_for_status()
            raw = r.json(parse_float=Decimal)
        return parse_leaderboard(raw, self.clock)

    async def fetch_stats(self) -> Stats:
        async with self._client() as h:
            r = await h.get(STATS_PATH)
            r.raise_for_status()
            raw = r.json(parse_float=Decimal)
        if not isinstance(raw, dict):
            raise ValueError("stats response is not an object")
        # bare Stats object, or wrapped as {"data": {...}}
        body = raw["data"] if isinstance(raw.get("data"), dict) else raw
        return Stats.model_validate(body)
