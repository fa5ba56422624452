# triviakit/domain/common/types.py
from __future__ import annotations

from enum import IntEnum
from typing import Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

ActivityId = Union[int, str]

MediaKind = Literal["img", "audio", "video", "txt"]
MediaFit = Literal["cover", "contain"]

REVEAL = "reveal"
FOUR_CHOICE = "4 choice"
MEDIA_LIST = "media list"
ActivityKind = Literal["reveal", "4 choice", "media list"]

MEDIA_KINDS = ("img", "audio", "video", "txt")
ACTIVITY_KINDS = (REVEAL, FOUR_CHOICE, MEDIA_LIST)
FOUR_CHOICE_OPTIONS = ("a", "b", "c", "d")


class EffectType(IntEnum):
    PLAYBACK = 0


class PlaybackAction(IntEnum):
    PLAY = 0
    PAUSE = 1
    RESTART = 2


class WireModel(BaseModel):
    """
    Base for everything that crosses the socket.
    Python side is snake_case, wire side is camelCase (imgUrl, showAnswer, ...).
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
