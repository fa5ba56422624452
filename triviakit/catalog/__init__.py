from __future__ import annotations

from .loader import CatalogError, GameSettings, build_game, load_game_settings, parse_activities

__all__ = [
    "CatalogError",
    "GameSettings",
    "build_game",
    "load_game_settings",
    "parse_activities",
]
