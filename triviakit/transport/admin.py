# triviakit/transport/admin.py
from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/state")
async def current_state(request: Request):
    """
    Current snapshot, as a newly connected client would receive it (debug/admin).
    """
    game = request.app.state.game
    return game.get_state().to_wire()


@router.get("/connections")
async def connections(request: Request):
    hub = request.app.state.hub
    return {"connected": hub.size()}


@router.get("/activities")
async def activities(request: Request):
    game = request.app.state.game
    return {
        "count": len(game.catalog),
        "ids": [str(aid) for aid in game.catalog],
        "nodes": len(game.catalog.nodes),
    }
