# triviakit/transport/dispatcher.py
from __future__ import annotations

import logging
from typing import Any, List, Optional, Type, TypeVar

from pydantic import ValidationError

from triviakit.domain.active_state import ActiveStateError, validate_active_state
from triviakit.domain.effects import EffectError, validate_effect
from triviakit.domain.game import Game
from triviakit.transport.protocols import (
    BuzzData,
    EnableBuzzersData,
    InBase,
    InBuzz,
    InEnableBuzzers,
    InResetBuzzers,
    InSendEffect,
    InSetActivity,
    OutEffect,
    OutgoingEvent,
    PayloadModel,
    SendEffectData,
    SetActivityData,
    decode,
    parse_command,
)

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=PayloadModel)


def dispatch_message(*, game: Game, raw: Any, is_host: bool) -> List[OutgoingEvent]:
    """
    Transport layer calls this once per inbound frame.
    - Decodes + parses the command envelope
    - Applies it to the game, or validates it as an effect
    - Returns events to relay to every connection (only ever effects;
      state snapshots flow through ``game.state_changed``)

    Nothing here raises for bad input: malformed or invalid commands are
    logged and dropped.
    """
    try:
        payload = decode(raw) if isinstance(raw, (str, bytes)) else raw
        msg = parse_command(payload)
    except (ValidationError, ValueError) as e:
        logger.warning("Dropping unroutable message: %s", e)
        return []

    if isinstance(msg, InSendEffect):
        event = _relayable_effect(game, msg)
        return [event] if event is not None else []

    apply_game_command(game, msg, is_host=is_host)
    return []


def apply_game_command(game: Game, msg: InBase, *, is_host: bool) -> None:
    """Route a state command into the engine, enforcing host-only commands."""
    if msg.host_only and not is_host:
        logger.warning("Dropping %s from non-host connection", msg.command.name)
        return

    if isinstance(msg, InBuzz):
        data = _payload(BuzzData, msg)
        if data is not None:
            game.buzz_in(data.player_id)
        return

    if isinstance(msg, InEnableBuzzers):
        data = _payload(EnableBuzzersData, msg)
        if data is not None:
            game.enable_buzzers(data.enabled)
        return

    if isinstance(msg, InResetBuzzers):
        game.reset_buzzers()
        return

    if isinstance(msg, InSetActivity):
        data = _payload(SetActivityData, msg)
        if data is None:
            return
        if "state" not in data.model_fields_set:
            game.set_activity(data.activity_id)
            return
        if data.state is None:
            logger.warning("Dropping SetActivity command - state must be an object")
            return
        try:
            state = validate_active_state(data.state)
        except ActiveStateError as e:
            logger.warning("Dropping SetActivity command - state failed to validate: %s", e)
            return
        game.set_activity(data.activity_id, state)
        return

    logger.warning("No engine handler for command %s", msg.command.name)


def _relayable_effect(game: Game, msg: InSendEffect) -> Optional[OutEffect]:
    data = _payload(SendEffectData, msg)
    if data is None:
        return None
    try:
        effect = validate_effect(data.effect, game.catalog)
    except EffectError as e:
        logger.warning("Received invalid SendEffect command: %s", e)
        return None
    return OutEffect(effect=effect)


def _payload(model: Type[P], msg: InBase) -> Optional[P]:
    try:
        return model.model_validate(msg.data)
    except ValidationError as e:
        logger.warning("Dropping %s with invalid data: %s", msg.command.name, e)
        return None
