# triviakit/client/connection.py
from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

import websockets
from pydantic import ValidationError
from websockets.exceptions import ConnectionClosed, WebSocketException

from triviakit.domain.common.events import EventChannel
from triviakit.domain.effects import Effect
from triviakit.domain.state import GameState
from triviakit.transport.protocols import (
    GameCommand,
    OutActivities,
    OutEffect,
    OutGameState,
    OutHeartbeat,
    decode,
    parse_event,
)

logger = logging.getLogger(__name__)

HEARTBEAT_TIMEOUT_MS = 5000
RECONNECT_STEP_MS = 1000
RECONNECT_MAX_MS = 5000


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class GameConnection:
    """
    One logical connection to the game server, kept alive across socket drops.

    Lifecycle: DISCONNECTED -> CONNECTING -> CONNECTED, back to CONNECTING
    after any failure. A socket is considered dead when it errors, closes, or
    goes ``heartbeat_timeout_ms`` without a Heartbeat. Reconnects wait 0 ms,
    then one more ``reconnect_step_ms`` per failure up to ``reconnect_max_ms``;
    a successful open resets the wait to 0.

    Snapshots are only surfaced when their ``time`` is not older than the last
    one surfaced. Activities and effects are always surfaced.

    Usage::

        conn = GameConnection("ws://host:8334/ws")
        conn.game_state.subscribe(render)
        conn.start()
        ...
        await conn.send_command(GameCommand.BUZZ, {"playerId": 3})
        await conn.close()
    """

    def __init__(
        self,
        url: str,
        *,
        heartbeat_timeout_ms: int = HEARTBEAT_TIMEOUT_MS,
        reconnect_step_ms: int = RECONNECT_STEP_MS,
        reconnect_max_ms: int = RECONNECT_MAX_MS,
        connect: Callable[[str], Awaitable[Any]] = websockets.connect,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.url = url
        self.heartbeat_timeout_ms = heartbeat_timeout_ms
        self.reconnect_step_ms = reconnect_step_ms
        self.reconnect_max_ms = reconnect_max_ms
        self._connect = connect
        self._sleep = sleep

        self.connected: EventChannel[None] = EventChannel("connected")
        self.connecting: EventChannel[None] = EventChannel("connecting")
        self.disconnected: EventChannel[None] = EventChannel("disconnected")
        self.game_state: EventChannel[GameState] = EventChannel("game_state")
        self.activities: EventChannel[Dict[Any, Any]] = EventChannel("activities")
        self.effect: EventChannel[Effect] = EventChannel("effect")

        self.status = ConnectionStatus.DISCONNECTED
        self.reconnect_delay_ms = 0
        self.last_state_time = 0

        self._ws: Optional[Any] = None
        self._heartbeat_deadline: Optional[float] = None
        self._closed = False
        self._task: Optional[asyncio.Task] = None

    # ---- public ----

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    async def send_command(self, command: GameCommand, data: Optional[Dict[str, Any]] = None) -> bool:
        """
        Send ``{command, data}`` if the socket is open. Otherwise the command
        is dropped; nothing is queued. Returns whether it went out.
        """
        ws = self._ws
        if ws is None or self.status is not ConnectionStatus.CONNECTED:
            logger.debug("Dropping command %s, socket not open", command)
            return False
        try:
            await ws.send(json.dumps({"command": int(command), "data": data}))
        except ConnectionClosed:
            logger.debug("Dropping command %s, socket closed mid-send", command)
            return False
        return True

    async def close(self) -> None:
        """Close the socket and stop reconnecting."""
        self._closed = True
        self._heartbeat_deadline = None
        ws, self._ws = self._ws, None
        if ws is not None:
            await ws.close()
        self.status = ConnectionStatus.DISCONNECTED

        task = self._task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def __aenter__(self) -> "GameConnection":
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ---- lifecycle ----

    async def _run(self) -> None:
        while not self._closed:
            self.status = ConnectionStatus.CONNECTING
            self.connecting.emit(None)
            logger.info("Attempting connection to server at %s", self.url)

            try:
                ws = await self._connect(self.url)
            except (OSError, asyncio.TimeoutError, WebSocketException) as e:
                logger.error("Socket error: %s", e)
            else:
                self._ws = ws
                self._on_open()
                await self._receive(ws)

            if self._closed:
                break
            await self._on_disconnect()

    def _on_open(self) -> None:
        logger.info("Connected to server")
        self.reconnect_delay_ms = 0
        self.status = ConnectionStatus.CONNECTED
        self._arm_heartbeat()
        self.connected.emit(None)

    async def _receive(self, ws: Any) -> None:
        loop = asyncio.get_running_loop()
        while not self._closed:
            deadline = self._heartbeat_deadline
            remaining = (deadline - loop.time()) if deadline is not None else None
            if remaining is not None and remaining <= 0:
                logger.error("Missed heartbeat, closing socket")
                return
            try:
                raw = await asyncio.wait_for(ws.recv(), timeout=remaining)
            except asyncio.TimeoutError:
                logger.error("Missed heartbeat, closing socket")
                return
            except ConnectionClosed as e:
                logger.info("Socket closed: %s", e)
                return
            self._handle_raw(raw)

    async def _on_disconnect(self) -> None:
        self.status = ConnectionStatus.DISCONNECTED
        self.disconnected.emit(None)

        ws, self._ws = self._ws, None
        if ws is not None:
            try:
                await ws.close()
            except (OSError, WebSocketException) as e:
                logger.debug("Error while closing socket: %s", e)
        self._heartbeat_deadline = None

        await self._sleep(self.reconnect_delay_ms / 1000)
        self.reconnect_delay_ms = min(self.reconnect_delay_ms + self.reconnect_step_ms, self.reconnect_max_ms)

    def _arm_heartbeat(self) -> None:
        self._heartbeat_deadline = asyncio.get_running_loop().time() + self.heartbeat_timeout_ms / 1000

    # ---- inbound ----

    def _handle_raw(self, raw: Any) -> None:
        try:
            payload = decode(raw)
        except ValueError as e:
            # dropped; no resync is requested
            logger.error("Received malformed JSON: %s", e)
            return
        try:
            event = parse_event(payload)
        except ValidationError as e:
            logger.warning("Dropping unrecognised event: %s", e)
            return

        if isinstance(event, OutHeartbeat):
            self._arm_heartbeat()
        elif isinstance(event, OutGameState):
            if event.time >= self.last_state_time:
                self.last_state_time = event.time
                self.game_state.emit(event.state)
            else:
                logger.debug("Discarding stale GameState (%s < %s)", event.time, self.last_state_time)
        elif isinstance(event, OutActivities):
            self.activities.emit(event.activities)
        elif isinstance(event, OutEffect):
            self.effect.emit(event.effect)
