"""Builders and in-memory fakes shared by the test modules."""

import asyncio
import json

from packages.leaderboard.models import LeaderboardEntry, Snapshot, SourceKind


def entry(wallet: str, roi="0", rank: int = 1, **fields) -> LeaderboardEntry:
    return LeaderboardEntry(wallet=wallet, rank=rank, roi=roi, **fields)


def snap(revision, *entries: LeaderboardEntry, kind: SourceKind = SourceKind.PUSH) -> Snapshot:
    return Snapshot(entries=tuple(entries), revision=revision, source_kind=kind)


def frame(type_: str, rows, revision=None) -> str:
    body = {"type": type_, "data": rows}
    if revision is not None:
        body["revision"] = revision
    return json.dumps(body)


async def until(predicate, timeout: float = 2.0) -> None:
    async def _wait():
        while not predicate():
            await asyncio.sleep(0.005)
    await asyncio.wait_for(_wait(), timeout)


class QueueSocket:
    """Async-iterable socket; frames are fed through .q, None closes it."""

    def __init__(self, *frames):
        self.q: asyncio.Queue = asyncio.Queue()
        for f in frames:
            self.q.put_nowait(f)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self.q.get()
        if item is None:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item


class FakeConnect:
    """Stands in for websockets.connect; plays back a script of sockets or errors.

    Once the script runs out every call returns a socket that stays open.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.urls = []

    @property
    def calls(self) -> int:
        return len(self.urls)

    def __call__(self, url):
        self.urls.append(url)
        item = self.script.pop(0) if self.script else QueueSocket()
        if isinstance(item, BaseException):
            raise item
        return item


class FakeSource:
    """Pull source returning scripted snapshots (or raising scripted errors)."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    async def fetch(self, **params):
        self.calls.append(params)
        item = self.results.pop(0)
        if isinstance(item, Exception):
            raise item
        return item
