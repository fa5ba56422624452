# triviakit/domain/effects.py
from __future__ import annotations

"""
One-shot effects: relayed to every connection once, never stored.
"""

from typing import Any, Optional

from triviakit.domain.common.types import ActivityId, EffectType, PlaybackAction, WireModel
from triviakit.domain.media import Catalog


class EffectError(ValueError):
    pass


class PlaybackEffect(WireModel):
    type: EffectType = EffectType.PLAYBACK
    action: PlaybackAction
    target_activity_id: ActivityId
    parent_activity_id: Optional[ActivityId] = None


Effect = PlaybackEffect


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_activity_id(value: Any) -> bool:
    return isinstance(value, str) or _is_int(value)


def validate_effect(raw: Any, catalog: Catalog) -> Effect:
    """
    Validate an untrusted effect payload against the catalog.
    Raises EffectError; nothing is relayed for a rejected effect.
    """
    if not isinstance(raw, dict):
        raise EffectError("Effect must be an object")

    kind = raw.get("type")
    if not _is_int(kind) or kind not in {e.value for e in EffectType}:
        raise EffectError("No EffectType specified")

    if kind == EffectType.PLAYBACK:
        action = raw.get("action")
        if not _is_int(action) or action not in {a.value for a in PlaybackAction}:
            raise EffectError("PlaybackEffect must have an 'action' property containing a PlaybackAction")

        target = raw.get("targetActivityId")
        if not _is_activity_id(target):
            raise EffectError("PlaybackEffect must have targetActivityId")

        parent = raw.get("parentActivityId")
        if parent is not None and not _is_activity_id(parent):
            raise EffectError("PlaybackEffect parentActivityId must be a string or number")

        # nested ids resolve through the flat node index, not only top-level ids
        lookup = parent if parent is not None else target
        if lookup not in catalog:
            raise EffectError(f"No activity found for PlaybackEffect targeting {target}")

        return PlaybackEffect(
            action=PlaybackAction(action),
            target_activity_id=target,
            parent_activity_id=parent,
        )

    raise EffectError(f"Unsupported EffectType {kind}")
