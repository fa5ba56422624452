# triviakit/domain/state.py
from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import Field

from triviakit.domain.common.types import WireModel
from triviakit.domain.media import Activity


class Player(WireModel):
    id: int
    name: str
    img_url: str = ""


class BuzzEntry(WireModel):
    player_id: int
    time: Optional[int] = None


# ---- Interaction state of the selected activity ----

class ActiveReveal(WireModel):
    type: Literal["reveal"] = "reveal"
    show_answer: bool


class ActiveMediaList(WireModel):
    type: Literal["media list"] = "media list"
    active_index: Union[int, float]


BranchState = Annotated[Union[ActiveReveal, ActiveMediaList], Field(discriminator="type")]


class ActiveFourChoice(WireModel):
    """Per-option state. An option never nests another four-choice state."""
    type: Literal["4 choice"] = "4 choice"
    a: Optional[BranchState] = None
    b: Optional[BranchState] = None
    c: Optional[BranchState] = None
    d: Optional[BranchState] = None


ActiveState = Annotated[
    Union[ActiveReveal, ActiveFourChoice, ActiveMediaList],
    Field(discriminator="type"),
]


# ---- Broadcast snapshot ----

class BuzzersView(WireModel):
    enabled: bool = False
    state: Optional[List[BuzzEntry]] = None  # only while enabled


class ActiveView(WireModel):
    activity: Optional[Activity] = None
    state: Optional[ActiveState] = None


class GameState(WireModel):
    players: Dict[int, Player] = Field(default_factory=dict)
    buzzers: BuzzersView = Field(default_factory=BuzzersView)
    active: ActiveView = Field(default_factory=ActiveView)
