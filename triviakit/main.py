# triviakit/main.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from triviakit.catalog.loader import build_game
from triviakit.domain.game import Game
from triviakit.settings import Settings, get_settings
from triviakit.transport.admin import router as admin_router
from triviakit.transport.hub import BroadcastHub
from triviakit.transport.ws import router as ws_router

logger = logging.getLogger(__name__)


def create_app(game: Optional[Game] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the server. Without an explicit ``game`` the roster and catalog are
    loaded from MEDIA_HOME at startup.
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(title=settings.APP_NAME)
    allowed_origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.MEDIA_HOME and Path(settings.MEDIA_HOME).is_dir():
        app.mount("/media", StaticFiles(directory=settings.MEDIA_HOME), name="media")

    @app.on_event("startup")
    async def _startup() -> None:
        g = game if game is not None else build_game(settings)
        app.state.game = g
        app.state.hub = BroadcastHub(g, heartbeat_interval_ms=settings.HEARTBEAT_INTERVAL_MS)
        logger.info("Game ready: %s players, %s activities", len(g.players), len(g.catalog))

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        hub: BroadcastHub = app.state.hub
        hub.close()

    @app.get("/health")
    async def health():
        hub: BroadcastHub = app.state.hub
        return {"ok": True, "connections": hub.size()}

    app.include_router(ws_router)
    app.include_router(admin_router)
    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run("triviakit.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


app = create_app()
