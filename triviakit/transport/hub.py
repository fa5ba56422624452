# triviakit/transport/hub.py
from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from fastapi import WebSocket

from triviakit.domain.common.events import EventChannel, Subscription
from triviakit.domain.game import Game
from triviakit.domain.state import GameState
from triviakit.transport.protocols import (
    OutActivities,
    OutGameState,
    OutHeartbeat,
    OutgoingEvent,
    encode,
)

logger = logging.getLogger(__name__)

HEARTBEAT_INTERVAL_MS = 1500


@dataclass
class Conn:
    cid: int
    ws: WebSocket
    is_host: bool = False
    outbox: "asyncio.Queue[str]" = field(default_factory=asyncio.Queue)
    subscription: Optional[Subscription[str]] = None
    tasks: List[asyncio.Task] = field(default_factory=list)


class BroadcastHub:
    """
    In-memory connection registry + fan-out.
    - one engine subscription; each snapshot is encoded once into a frame
    - each connection subscribes to the frame channel and owns an outbox
      drained by its writer task, plus its own heartbeat task
    Transport-only: no game rules.
    """

    def __init__(self, game: Game, *, heartbeat_interval_ms: int = HEARTBEAT_INTERVAL_MS) -> None:
        self.game = game
        self.heartbeat_interval_ms = heartbeat_interval_ms
        self.frames: EventChannel[str] = EventChannel("frames")
        self._conns: Dict[int, Conn] = {}
        self._ids = itertools.count()
        self._game_sub = game.state_changed.subscribe(self._on_state_changed)

    # ---- registry ----

    def add(self, ws: WebSocket, *, is_host: bool) -> Conn:
        """
        Register an accepted socket. The new client's baseline (catalog, then
        current snapshot) is queued before it can see any incremental update.
        """
        conn = Conn(cid=next(self._ids), ws=ws, is_host=is_host)
        conn.outbox.put_nowait(encode(OutActivities(activities=dict(self.game.catalog.activities))))
        conn.outbox.put_nowait(encode(OutGameState(state=self.game.get_state())))
        conn.subscription = self.frames.subscribe(conn.outbox.put_nowait)
        conn.tasks = [
            asyncio.create_task(self._writer(conn)),
            asyncio.create_task(self._heartbeat(conn)),
        ]
        self._conns[conn.cid] = conn
        logger.info("Connection %s opened (%s live)", conn.cid, len(self._conns))
        return conn

    def remove(self, conn: Conn) -> None:
        if conn.subscription is not None:
            conn.subscription.cancel()
            conn.subscription = None
        current = asyncio.current_task()
        for task in conn.tasks:
            if task is not current:
                task.cancel()
        conn.tasks = []
        if self._conns.pop(conn.cid, None) is not None:
            logger.info("Connection %s closed (%s live)", conn.cid, len(self._conns))

    def close(self) -> None:
        self._game_sub.cancel()
        for conn in list(self._conns.values()):
            self.remove(conn)

    def size(self) -> int:
        return len(self._conns)

    # ---- fan-out ----

    def broadcast(self, event: OutgoingEvent) -> None:
        """Relay one event to every live connection, sender included."""
        self.frames.emit(encode(event))

    def _on_state_changed(self, state: GameState) -> None:
        self.broadcast(OutGameState(state=state))

    async def _writer(self, conn: Conn) -> None:
        while True:
            frame = await conn.outbox.get()
            try:
                await conn.ws.send_text(frame)
            except Exception as e:
                logger.info("Connection %s send failed, dropping: %s", conn.cid, e)
                self.remove(conn)
                return

    async def _heartbeat(self, conn: Conn) -> None:
        period = self.heartbeat_interval_ms / 1000
        while True:
            await asyncio.sleep(period)
            conn.outbox.put_nowait(encode(OutHeartbeat()))
