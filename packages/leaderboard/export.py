from datetime import date
from typing import Iterable, Optional

from .models import LeaderboardEntry, to_decimal

HEADERS = ("Rank", "Wallet", "Account Value", "PNL", "ROI", "Volume", "Last Updated")
DELIMITER = ","


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def _numeric_cell(raw: str) -> str:
    # well-formed numbers go out unquoted as received; anything else is quoted
    if to_decimal(raw) is not None:
        return raw.strip()
    return _quote(raw) if raw else ""


def _text_cell(raw: str) -> str:
    if any(ch in raw for ch in (DELIMITER, '"', "\n", "\r")):
        return _quote(raw)
    return raw


def to_tabular(entries: Iterable[LeaderboardEntry]) -> str:
    """CSV text: a header row, then one newline-terminated row per entry."""
    lines = [DELIMITER.join(HEADERS)]
    for e in entries:
        lines.append(DELIMITER.join((
            str(e.rank),
            _quote(e.wallet),
            _numeric_cell(e.account_value),
            _numeric_cell(e.pnl),
            _numeric_cell(e.roi),
            _numeric_cell(e.volume),
            _text_cell(e.last_updated),
        )))
    return "".join(line + "\n" for line in lines)


def export_filename(timeframe: str, day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"leaderboard_{timeframe}_{day.isoformat()}.csv"
