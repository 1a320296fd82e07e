import json
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from packages.leaderboard.models import LeaderboardEntry, Snapshot, SourceKind
from .revision import RevisionClock, revision_from_timestamp


class FrameError(ValueError):
    """Inbound frame that is not a valid envelope."""


class FrameKind(str, Enum):
    INITIAL = "initial"
    PUSH = "push"
    UNKNOWN = "unknown"


_KINDS = {
    "initial": FrameKind.INITIAL,
    "leaderboard_updated": FrameKind.PUSH,
    "periodic_update": FrameKind.PUSH,
}

_ENTRIES = TypeAdapter(list[LeaderboardEntry])


class Envelope(BaseModel):
    type: str
    data: Any = None
    revision: Optional[Decimal] = None


def parse_frame(raw: Union[str, bytes]) -> Envelope:
    try:
        payload = json.loads(raw, parse_float=Decimal)
    except (TypeError, ValueError) as e:
        raise FrameError(f"invalid json: {e}") from e
    if not isinstance(payload, dict):
        raise FrameError("frame is not an object")
    try:
        return Envelope.model_validate(payload)
    except ValidationError as e:
        raise FrameError(f"invalid envelope: {e.error_count()} error(s)") from e


def classify(env: Envelope) -> FrameKind:
    return _KINDS.get(env.type, FrameKind.UNKNOWN)


def to_snapshot(env: Envelope, clock: RevisionClock) -> Snapshot:
    """Full-replacement snapshot for a recognised frame. Every recognised
    type is a push; a frame without a revision takes the next local one.

    The revision is normalised exactly like a poll response timestamp, so
    both channels compare in epoch milliseconds.
    """
    if env.data is None:
        raise FrameError(f"{env.type} frame without data")
    try:
        entries = _ENTRIES.validate_python(env.data)
    except ValidationError as e:
        raise FrameError(f"invalid entries: {e.error_count()} error(s)") from e
    revision = revision_from_timestamp(env.revision)
    if revision is None:
        revision = clock.next()
    return Snapshot(entries=tuple(entries), revision=revision, source_kind=SourceKind.PUSH)
