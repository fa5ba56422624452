# triviakit/settings.py
from __future__ import annotations

from pydantic import BaseModel
import os


class Settings(BaseModel):
    APP_NAME: str = "triviakit-server"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8334

    # Dev
    LOG_LEVEL: str = "INFO"

    # Game media: game-settings.yaml, the activities yaml and the files they point at
    MEDIA_HOME: str = ""
    # Public prefix for media URLs; derived from the LAN IP + PORT when empty
    MEDIA_BASE_URL: str = ""
    # Use this IP instead of auto-discovering one
    NET_INTERFACE_IP: str = ""

    # CORS (comma-separated)
    CORS_ORIGINS: str = "*"

    # Live connections
    HEARTBEAT_INTERVAL_MS: int = 1500


def get_settings() -> Settings:
    return Settings(
        APP_NAME=os.getenv("APP_NAME", "triviakit-server"),
        HOST=os.getenv("HOST", "0.0.0.0"),
        PORT=int(os.getenv("PORT", "8334")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),

        MEDIA_HOME=os.getenv("MEDIA_HOME", ""),
        MEDIA_BASE_URL=os.getenv("MEDIA_BASE_URL", ""),
        NET_INTERFACE_IP=os.getenv("NET_INTERFACE_IP", ""),

        CORS_ORIGINS=os.getenv("CORS_ORIGINS", "*"),
        HEARTBEAT_INTERVAL_MS=int(os.getenv("HEARTBEAT_INTERVAL_MS", "1500")),
    )
