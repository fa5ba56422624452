# triviakit/catalog/loader.py
from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from triviakit.domain.common.types import ACTIVITY_KINDS, FOUR_CHOICE, MEDIA_LIST, REVEAL, ActivityId
from triviakit.domain.game import Game
from triviakit.domain.media import (
    Catalog,
    FourChoiceActivity,
    MediaActivity,
    MediaListActivity,
    RevealActivity,
)
from triviakit.netinfo import media_base_url
from triviakit.settings import Settings

logger = logging.getLogger(__name__)

_EXT_TO_MEDIA = {
    **{ext: "img" for ext in ("png", "jpg", "jpeg", "svg", "webp", "avif")},
    **{ext: "video" for ext in ("mp4", "mov")},
    **{ext: "audio" for ext in ("mp3", "aac", "wav")},
    "txt": "txt",
}
_FITS = ("cover", "contain")


class CatalogError(ValueError):
    pass


class RosterEntry(BaseModel):
    name: str
    img: str = ""


class GameSettings(BaseModel):
    activities: str
    players: List[RosterEntry] = Field(default_factory=list)


# =========================
# Activities
# =========================

def parse_activities(
    text: str,
    media_url_root: str,
    media_home: Optional[Union[str, Path]] = None,
) -> Catalog:
    """
    Build the catalog from an activities YAML document.

    The document needs a non-empty top-level ``activities`` mapping. An entry
    that fails to validate is logged and skipped; the rest still load.
    ``media_home`` is where media files live on disk (folder listings and
    missing-file warnings); without it neither happens.
    """
    try:
        root = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise CatalogError(f"Activities file is not valid YAML: {e}") from e

    if not isinstance(root, dict) or root.get("activities") is None:
        raise CatalogError('Must have an "activities" entry at the top level')
    entries = root["activities"]
    if not isinstance(entries, dict):
        raise CatalogError('"activities" must be a mapping of id -> activity')
    if not entries:
        raise CatalogError("Must have at least one activity")

    home = Path(media_home) if media_home is not None else None
    activities: Dict[ActivityId, Any] = {}
    for aid, obj in entries.items():
        try:
            activities[aid] = _activity(aid, obj, media_url_root, home, parent_id=None, top_id=aid)
        except CatalogError as e:
            logger.warning("%s", e)

    return Catalog(activities)


def _activity(
    aid: ActivityId,
    obj: Any,
    url_root: str,
    home: Optional[Path],
    *,
    parent_id: Optional[ActivityId],
    top_id: ActivityId,
) -> Any:
    if not isinstance(obj, dict):
        raise CatalogError(f"[{aid}] Activity must be a mapping")

    if isinstance(obj.get("file"), str):
        return _media(aid, obj["file"], obj, url_root, home, parent_id=parent_id)

    kind = obj.get("type")
    if kind not in ACTIVITY_KINDS:
        raise CatalogError(f"[{aid}] Unsupported activity type {kind}")

    if kind == REVEAL:
        if not isinstance(obj.get("question"), dict) or not isinstance(obj.get("answer"), dict):
            raise CatalogError(f"[{aid}] Reveal questions must have 'question' and 'answer' properties")
        q = _activity(f"{aid}-q", obj["question"], url_root, home, parent_id=top_id, top_id=top_id)
        ans = _activity(f"{aid}-ans", obj["answer"], url_root, home, parent_id=top_id, top_id=top_id)
        if not isinstance(q, MediaActivity) or not isinstance(ans, MediaActivity):
            raise CatalogError(
                f"[{aid}] Reveal 'question' and 'answer' activities must be MediaActivities (link to a file)"
            )
        return RevealActivity(id=aid, parent_id=parent_id, question=q, answer=ans)

    if kind == MEDIA_LIST:
        files: List[Any] = []
        folder = obj.get("itemsFolder")
        if isinstance(folder, str):
            files.extend(_folder_listing(aid, folder, home))
        items = obj.get("items")
        if isinstance(items, list):
            files.extend(items)
        elif not files:
            raise CatalogError(f"[{aid}] MediaList activities must have an array property 'items'")

        medias = []
        for i, file in enumerate(files):
            if not isinstance(file, str):
                raise CatalogError(f"[{aid}] All items in MediaList activities must be file paths")
            medias.append(_media(f"{aid}-{i}", file, obj, url_root, home, parent_id=top_id))
        return MediaListActivity(id=aid, parent_id=parent_id, items=medias)

    if kind == FOUR_CHOICE:
        if not all(isinstance(obj.get(o), dict) for o in "abcd"):
            raise CatalogError(f"[{aid}] 4 choice questions must have abcd properties")
        options = {
            o: _activity(f"{aid}-{o}", obj[o], url_root, home, parent_id=top_id, top_id=top_id)
            for o in "abcd"
        }
        return FourChoiceActivity(id=aid, parent_id=parent_id, **options)

    raise CatalogError(f"[{aid}] Unsupported other activity type {kind}")


def _media(
    aid: ActivityId,
    file: str,
    obj: Dict[str, Any],
    url_root: str,
    home: Optional[Path],
    *,
    parent_id: Optional[ActivityId],
) -> MediaActivity:
    ext = file.split(".")[-1].strip().lower()
    media_type = _EXT_TO_MEDIA.get(ext)
    if media_type is None:
        raise CatalogError(f"[{aid}] Unsupported media extension {ext}")

    if home is not None and not (home / file).exists():
        logger.warning("[%s] Media not found (%s)", aid, file)

    fit = obj.get("fit") if obj.get("fit") in _FITS else None

    auto_play = obj.get("autoPlay")
    if not isinstance(auto_play, bool):
        auto_play = True

    return MediaActivity(
        id=aid,
        parent_id=parent_id,
        type=media_type,
        file=url_root + file,
        fit=fit,
        auto_play=auto_play,
        pause_at=_pause_at(aid, obj.get("pauseAt")),
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _pause_at(aid: ActivityId, value: Any) -> Any:
    if value is None:
        return None
    if _is_number(value):
        return value
    if isinstance(value, list):
        if not value:
            return None
        if all(_is_number(v) for v in value):
            return value
        raise CatalogError(
            f"[{aid}] Unsupported type encountered in pauseAt list. All list elements must be numbers."
        )
    raise CatalogError(
        f"[{aid}] Unsupported type '{type(value).__name__}' for pauseAt property. Must be number or list of numbers."
    )


def _natural_key(name: str) -> List[Any]:
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r"(\d+)", name)]


def _folder_listing(aid: ActivityId, folder: str, home: Optional[Path]) -> List[str]:
    if home is None:
        raise CatalogError(f"[{aid}] itemsFolder needs a media directory")
    try:
        names = os.listdir(home / folder)
    except OSError as e:
        raise CatalogError(f"[{aid}] Cannot list itemsFolder {folder}: {e}") from e
    return [f"{folder}/{name}" for name in sorted(names, key=_natural_key)]


# =========================
# Settings + roster
# =========================

def load_game_settings(path: Union[str, Path]) -> GameSettings:
    try:
        root = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise CatalogError(f"YAML parse error for {path}: {e}") from e

    if not isinstance(root, dict) or not isinstance(root.get("game"), dict):
        raise CatalogError(f"{path} is not a valid GameSettings object")
    try:
        return GameSettings.model_validate(root["game"])
    except ValidationError as e:
        raise CatalogError(f"{path} is not a valid GameSettings object: {e}") from e


def build_game(settings: Settings) -> Game:
    """
    Boot-time wiring: roster from game-settings.yaml, catalog from the
    activities file it names. Raises CatalogError (or OSError) when the media
    directory or its files are unusable.
    """
    if not settings.MEDIA_HOME:
        raise CatalogError(
            "Missing MEDIA_HOME environment variable. Point it at the folder where the game media is located."
        )
    home = Path(settings.MEDIA_HOME).resolve()
    if not home.is_dir():
        raise CatalogError(f"MEDIA_HOME {home} is not a directory")
    logger.info("Media root directory is at %s", home)

    base_url = media_base_url(settings)

    logger.info("Reading game-settings.yaml...")
    game_settings = load_game_settings(home / "game-settings.yaml")

    logger.info("Loading activities from %s.yaml...", game_settings.activities)
    text = (home / f"{game_settings.activities}.yaml").read_text(encoding="utf-8")
    catalog = parse_activities(text, base_url, home)
    logger.info("Loaded %s activities", len(catalog))

    game = Game(catalog)
    for p in game_settings.players:
        game.add_player(p.name, base_url + p.img)
    return game
