# config environment
import os
from typing import Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_BASE_URL, DEFAULT_LIMIT, DEFAULT_POLL_INTERVAL_MS,
    DEFAULT_RECONNECT_DELAY_SEC, WS_PATH,
)

Timeframe = Literal["24h", "7d", "30d", "all"]
SortKey = Literal["roi", "pnl", "volume", "accountValue"]
SortOrder = Literal["asc", "desc"]


class Cfg(BaseModel):
    base_url: str
    ws_url: str
    request_timeout_sec: float
    log_level: str


def ws_url_for(base_url: str) -> str:
    # http -> ws, https -> wss
    return base_url.rstrip("/").replace("http", "ws", 1) + WS_PATH


def load_cfg(env_file: str) -> Cfg:
    load_dotenv(env_file)
    base_url = os.environ.get("BASE_URL", DEFAULT_BASE_URL).rstrip("/")
    return Cfg(
        base_url=base_url,
        ws_url=os.environ.get("WS_URL") or ws_url_for(base_url),
        request_timeout_sec=float(os.environ.get("REQUEST_TIMEOUT_SEC", "10")),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )


class LeaderboardSection(BaseModel):
    timeframe: Timeframe = "24h"
    limit: int = Field(DEFAULT_LIMIT, ge=1)


class PollSection(BaseModel):
    interval_ms: int = Field(DEFAULT_POLL_INTERVAL_MS, gt=0)
    auto_refresh: bool = True


class StreamSection(BaseModel):
    reconnect_delay_sec: float = Field(DEFAULT_RECONNECT_DELAY_SEC, gt=0)


class ViewSection(BaseModel):
    sort_by: SortKey = "roi"
    sort_order: SortOrder = "desc"


class ViewerCfg(BaseModel):
    leaderboard: LeaderboardSection = Field(default_factory=LeaderboardSection)
    poll: PollSection = Field(default_factory=PollSection)
    stream: StreamSection = Field(default_factory=StreamSection)
    view: ViewSection = Field(default_factory=ViewSection)


def load_viewer_cfg(path: Optional[str]) -> ViewerCfg:
    if not path or not os.path.exists(path):
        return ViewerCfg()
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return ViewerCfg.model_validate(raw)
