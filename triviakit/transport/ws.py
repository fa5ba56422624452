# triviakit/transport/ws.py
from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from triviakit.domain.common.validation import is_host
from triviakit.transport.dispatcher import dispatch_message
from triviakit.transport.hub import BroadcastHub

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def ws_game(websocket: WebSocket):
    await websocket.accept()

    hub: BroadcastHub = websocket.app.state.hub
    conn = hub.add(websocket, is_host=is_host(websocket))

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            # text or binary; either way the dispatcher decodes it as JSON
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue

            to_all = dispatch_message(game=hub.game, raw=raw, is_host=conn.is_host)

            # effects go to everyone, the sender included
            for e in to_all:
                hub.broadcast(e)

    except WebSocketDisconnect as e:
        logger.info("Connection %s disconnected (code=%s)", conn.cid, e.code)

    finally:
        hub.remove(conn)
