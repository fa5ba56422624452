# triviakit/transport/protocols.py
from __future__ import annotations

import json
from enum import IntEnum
from typing import Any, ClassVar, Dict, Optional, Type, Union

from pydantic import ConfigDict, Field, ValidationError
from pydantic_core import PydanticCustomError

from triviakit.domain.common.types import ActivityId, WireModel
from triviakit.domain.effects import Effect
from triviakit.domain.media import Activity
from triviakit.domain.state import GameState
from triviakit.util.timeutil import now_ms


# =========================
# Tags (integers on the wire)
# =========================

class GameCommand(IntEnum):
    BUZZ = 0
    # host only
    RESET_BUZZERS = 1
    ENABLE_BUZZERS = 2
    SET_ACTIVITY = 3
    # --
    SEND_EFFECT = 4


class EventMessageType(IntEnum):
    GAME_STATE = 0
    HEARTBEAT = 1
    ACTIVITIES = 2
    EFFECT = 3


# =========================
# Incoming (Client -> Server)
# =========================

class InBase(WireModel):
    """
    Envelope only. ``data`` is checked by the dispatcher against the
    matching payload model below, not here.
    """
    command: GameCommand
    data: Any = None

    host_only: ClassVar[bool] = False


class InBuzz(InBase):
    command: GameCommand = GameCommand.BUZZ


class InResetBuzzers(InBase):
    command: GameCommand = GameCommand.RESET_BUZZERS
    host_only: ClassVar[bool] = True


class InEnableBuzzers(InBase):
    command: GameCommand = GameCommand.ENABLE_BUZZERS
    host_only: ClassVar[bool] = True


class InSetActivity(InBase):
    command: GameCommand = GameCommand.SET_ACTIVITY
    host_only: ClassVar[bool] = True


class InSendEffect(InBase):
    command: GameCommand = GameCommand.SEND_EFFECT


IncomingMessage = Union[
    InBuzz,
    InResetBuzzers,
    InEnableBuzzers,
    InSetActivity,
    InSendEffect,
]


# ---- Payloads ----

class PayloadModel(WireModel):
    model_config = ConfigDict(strict=True)


class BuzzData(PayloadModel):
    player_id: int


class EnableBuzzersData(PayloadModel):
    enabled: bool


class SetActivityData(PayloadModel):
    activity_id: Optional[ActivityId]
    # absent and null differ: absent clears the stored state, null is rejected
    state: Optional[Dict[str, Any]] = None


class SendEffectData(PayloadModel):
    effect: Dict[str, Any]


# =========================
# Outgoing (Server -> Client)
# =========================

class OutBase(WireModel):
    type: EventMessageType
    time: int = Field(default_factory=now_ms)


class OutGameState(OutBase):
    type: EventMessageType = EventMessageType.GAME_STATE
    state: GameState


class OutHeartbeat(OutBase):
    type: EventMessageType = EventMessageType.HEARTBEAT


class OutActivities(OutBase):
    type: EventMessageType = EventMessageType.ACTIVITIES
    activities: Dict[ActivityId, Activity] = Field(default_factory=dict)


class OutEffect(OutBase):
    type: EventMessageType = EventMessageType.EFFECT
    effect: Effect


OutgoingEvent = Union[
    OutGameState,
    OutHeartbeat,
    OutActivities,
    OutEffect,
]


# =========================
# Parser helpers
# =========================

_INCOMING_BY_COMMAND: Dict[int, Type[InBase]] = {
    GameCommand.BUZZ: InBuzz,
    GameCommand.RESET_BUZZERS: InResetBuzzers,
    GameCommand.ENABLE_BUZZERS: InEnableBuzzers,
    GameCommand.SET_ACTIVITY: InSetActivity,
    GameCommand.SEND_EFFECT: InSendEffect,
}

_OUTGOING_BY_TYPE: Dict[int, Type[OutBase]] = {
    EventMessageType.GAME_STATE: OutGameState,
    EventMessageType.HEARTBEAT: OutHeartbeat,
    EventMessageType.ACTIVITIES: OutActivities,
    EventMessageType.EFFECT: OutEffect,
}


def _tag_error(title: str, field: str, msg: str) -> ValidationError:
    return ValidationError.from_exception_data(
        title=title,
        line_errors=[{"type": PydanticCustomError("invalid_tag", msg), "loc": (field,), "input": None}],
    )


def _lookup(table: Dict[int, Any], payload: Any, field: str, title: str) -> Any:
    if not isinstance(payload, dict):
        raise _tag_error(title, field, "Message must be a JSON object")
    tag = payload.get(field)
    # bool is an int subclass; True is not a tag
    if not isinstance(tag, int) or isinstance(tag, bool):
        raise _tag_error(title, field, f"Missing/invalid {field}")
    cls = table.get(tag)
    if cls is None:
        raise _tag_error(title, field, f"Unknown {field}: {tag}")
    return cls


def parse_command(payload: Dict[str, Any]) -> IncomingMessage:
    """
    Convert raw dict -> routable command envelope.
    Raises ValidationError if the tag is missing or unknown.
    """
    cls = _lookup(_INCOMING_BY_COMMAND, payload, "command", "IncomingMessage")
    return cls.model_validate(payload)


def parse_event(payload: Dict[str, Any]) -> OutgoingEvent:
    """Client side: raw dict -> validated event. Raises ValidationError."""
    cls = _lookup(_OUTGOING_BY_TYPE, payload, "type", "OutgoingEvent")
    return cls.model_validate(payload)


def encode(message: WireModel) -> str:
    return json.dumps(message.to_wire())


def decode(raw: Union[str, bytes]) -> Any:
    """Raises ValueError on malformed JSON."""
    return json.loads(raw)
