import time
from decimal import Decimal
from typing import Any, Callable, List, Optional

import structlog

from .models import LeaderboardEntry, Snapshot, SourceKind

log = structlog.get_logger(__name__)

Subscriber = Callable[[Snapshot], Any]


class LeaderboardStore:
    """Owner of the canonical leaderboard.

    - ingest(snapshot): accepts a snapshot only when its revision is strictly
      greater than the current one, then replaces the whole entry map
    - current_entries(): copy of the accepted entries, in snapshot order
    - subscribe(handler): handler(snapshot) runs after every accepted ingest

    Producers (push and poll) race freely; whichever delivers last, the
    accepted state is always the highest revision seen so far.
    """

    def __init__(self) -> None:
        self._entries: dict[str, LeaderboardEntry] = {}
        self._revision: Optional[Decimal] = None
        self._source_kind: Optional[SourceKind] = None
        self._subscribers: List[Subscriber] = []
        self.last_accepted_at: Optional[float] = None

    @property
    def revision(self) -> Optional[Decimal]:
        return self._revision

    @property
    def source_kind(self) -> Optional[SourceKind]:
        return self._source_kind

    def ingest(self, snapshot: Snapshot) -> bool:
        if self._revision is not None and snapshot.revision <= self._revision:
            # normal race outcome, not an error
            log.debug("store.stale", revision=str(snapshot.revision), current=str(self._revision),
                      source=snapshot.source_kind.value)
            return False

        entries: dict[str, LeaderboardEntry] = {}
        for e in snapshot.entries:
            # first occurrence of a wallet wins
            entries.setdefault(e.wallet, e)
        if len(entries) != len(snapshot.entries):
            log.debug("store.duplicate_wallets", dropped=len(snapshot.entries) - len(entries))

        self._entries = entries
        self._revision = snapshot.revision
        self._source_kind = snapshot.source_kind
        self.last_accepted_at = time.time()
        log.debug("store.accepted", revision=str(snapshot.revision), source=snapshot.source_kind.value,
                  count=len(entries))
        self._publish(snapshot)
        return True

    def current_entries(self) -> list[LeaderboardEntry]:
        return list(self._entries.values())

    def get(self, wallet: str) -> Optional[LeaderboardEntry]:
        return self._entries.get(wallet)

    def subscribe(self, handler: Subscriber) -> Callable[[], None]:
        self._subscribers.append(handler)

        def unsubscribe() -> None:
            if handler in self._subscribers:
                self._subscribers.remove(handler)

        return unsubscribe

    def _publish(self, snapshot: Snapshot) -> None:
        for handler in list(self._subscribers):
            try:
                handler(snapshot)
            except Exception as e:
                log.error("store.subscriber_failed", err=str(e), revision=str(snapshot.revision))
