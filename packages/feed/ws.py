import asyncio
from typing import Any, Callable, List, Optional, Union

import structlog
import websockets
from websockets.exceptions import WebSocketException

from packages.leaderboard.models import ConnectionState, Snapshot
from .envelope import FrameError, FrameKind, classify, parse_frame, to_snapshot
from .revision import RevisionClock

log = structlog.get_logger(__name__)

TRANSPORT_ERRORS = (OSError, WebSocketException, asyncio.TimeoutError)


class ConnectionManager:
    """Push channel for leaderboard snapshots.

    State machine:
        start()               Disconnected -> Connecting
        socket open           Connecting   -> Connected
        error / close         *            -> Disconnected, one reconnect after a fixed delay
        reconnect timer fires Disconnected -> Connecting
        stop()                *            -> Disconnected, pending reconnect cancelled

    Reconnects retry forever with the same delay. Frames that fail to parse
    are dropped and logged; they do not touch the connection.
    """

    def __init__(self, url: str, reconnect_delay: float = 5.0, clock: Optional[RevisionClock] = None,
                 connect: Callable[[str], Any] = websockets.connect):
        self.url = url
        self.reconnect_delay = reconnect_delay
        self.clock = clock or RevisionClock()
        self._connect = connect
        self._state = ConnectionState.DISCONNECTED
        self._snapshot_handlers: List[Callable[[Snapshot], Any]] = []
        self._state_handlers: List[Callable[[ConnectionState], Any]] = []
        self._task: Optional[asyncio.Task] = None
        self._reconnect: Optional[asyncio.TimerHandle] = None
        self._running = False

    def state(self) -> ConnectionState:
        return self._state

    def on_snapshot(self, handler: Callable[[Snapshot], Any]) -> None:
        self._snapshot_handlers.append(handler)

    def on_state_change(self, handler: Callable[[ConnectionState], Any]) -> None:
        self._state_handlers.append(handler)

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._open()

    async def stop(self) -> None:
        self._running = False
        if self._reconnect is not None:
            self._reconnect.cancel()
            self._reconnect = None
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._set_state(ConnectionState.DISCONNECTED)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        self._state = state
        for handler in list(self._state_handlers):
            try:
                handler(state)
            except Exception as e:
                log.error("ws.handler_failed", kind="state", state=state.value, err=str(e))

    def _open(self) -> None:
        self._reconnect = None
        if not self._running:
            return
        if self._task is not None and not self._task.done():
            return
        self._set_state(ConnectionState.CONNECTING)
        self._task = asyncio.get_running_loop().create_task(self._session())

    async def _session(self) -> None:
        err = "closed"
        try:
            async with self._connect(self.url) as ws:
                self._set_state(ConnectionState.CONNECTED)
                log.info("ws.connected", url=self.url)
                async for raw in ws:
                    self._on_frame(raw)
        except TRANSPORT_ERRORS as e:
            err = str(e) or type(e).__name__
        self._on_closed(err)

    def _on_closed(self, err: str) -> None:
        if not self._running:
            return
        self._set_state(ConnectionState.DISCONNECTED)
        log.warning("ws.disconnected", url=self.url, err=err)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._reconnect is not None or not self._running:
            return
        self._reconnect = asyncio.get_running_loop().call_later(self.reconnect_delay, self._open)
        log.info("ws.reconnect_scheduled", delay=self.reconnect_delay)

    def _on_frame(self, raw: Union[str, bytes]) -> None:
        try:
            env = parse_frame(raw)
            kind = classify(env)
            if kind is FrameKind.UNKNOWN:
                log.debug("ws.frame_ignored", type=env.type)
                return
            elif kind in (FrameKind.INITIAL, FrameKind.PUSH):
                snapshot = to_snapshot(env, self.clock)
            else:
                raise FrameError(f"unhandled frame kind: {kind}")
        except FrameError as e:
            log.warning("ws.frame_dropped", err=str(e))
            return
        for handler in list(self._snapshot_handlers):
            try:
                handler(snapshot)
            except Exception as e:
                log.error("ws.handler_failed", kind="snapshot", revision=str(snapshot.revision), err=str(e))
