import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Optional

from packages.leaderboard.models import to_decimal

# below this an epoch number is taken as seconds, not milliseconds
_EPOCH_MS_FLOOR = Decimal(100_000_000_000)


class RevisionClock:
    """Local revisions in epoch milliseconds, strictly increasing per client
    even if the wall clock stalls or steps backwards."""

    def __init__(self, now: Callable[[], float] = time.time):
        self._now = now
        self._last = 0

    def next(self) -> Decimal:
        rev = max(int(self._now() * 1000), self._last + 1)
        self._last = rev
        return Decimal(rev)


def revision_from_timestamp(value: Any) -> Optional[Decimal]:
    """Epoch milliseconds for a server timestamp (epoch s, epoch ms or ISO-8601)."""
    if value is None or value == "":
        return None
    num = to_decimal(value)
    if num is not None:
        return num * 1000 if abs(num) < _EPOCH_MS_FLOOR else num
    if not isinstance(value, str):
        return None
    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return Decimal(round(dt.timestamp() * 1000))
