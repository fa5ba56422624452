from __future__ import annotations

from .connection import ConnectionStatus, GameConnection

__all__ = [
    "ConnectionStatus",
    "GameConnection",
]
