import time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

NUMERIC_FIELDS = ("account_value", "pnl", "roi", "volume")


def to_decimal(value: Any) -> Optional[Decimal]:
    """Exact decimal for a wire value, or None when it is missing or malformed.

    Floats are converted through their shortest repr so a stray JSON float
    does not drag binary noise into the result. NaN and infinities count
    as malformed.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, int):
        d = Decimal(value)
    elif isinstance(value, float):
        d = Decimal(repr(value))
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            d = Decimal(text)
        except InvalidOperation:
            return None
    return d if d.is_finite() else None


class SourceKind(str, Enum):
    INITIAL = "initial"
    PUSH = "push"
    POLL = "poll"


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class LeaderboardEntry(BaseModel):
    """One ranked account, numeric fields kept as the decimal text received."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    rank: int = Field(ge=1)
    wallet: str = Field(min_length=1, validation_alias=AliasChoices("wallet", "traderWallet", "trader_wallet"))
    account_value: str = ""
    pnl: str = ""
    roi: str = ""
    volume: str = ""
    last_updated: str = ""

    @field_validator("account_value", "pnl", "roi", "volume", "last_updated", mode="before")
    @classmethod
    def _as_text(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, float):
            return repr(v)
        return str(v)

    def decimal(self, field: str) -> Optional[Decimal]:
        return to_decimal(getattr(self, field))

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    entries: tuple[LeaderboardEntry, ...]
    revision: Decimal
    source_kind: SourceKind
    asof_ts: float = Field(default_factory=time.time)


class Stats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_traders: int = 0
    total_volume: Decimal = Decimal("0")
    average_roi: Decimal = Field(Decimal("0"), alias="averageROI")
    top_performer: str = ""
    total_pnl: Decimal = Decimal("0")


class DistributionBucket(BaseModel):
    name: str
    value: int
