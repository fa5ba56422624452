# triviakit/domain/active_state.py
from __future__ import annotations

from typing import Any, Dict, Optional

from triviakit.domain.common.types import FOUR_CHOICE, FOUR_CHOICE_OPTIONS, MEDIA_LIST, REVEAL
from triviakit.domain.state import ActiveFourChoice, ActiveMediaList, ActiveReveal, ActiveState


class ActiveStateError(ValueError):
    pass


def validate_active_state(raw: Any) -> ActiveState:
    """
    Turn an untrusted state tree into a normalized ActiveState.

    - 4 choice: each object-shaped option is validated recursively; an option
      resolving to another 4 choice state is dropped, as are absent or
      non-object options.
    - reveal: needs a boolean ``showAnswer``.
    - media list: needs a numeric ``activeIndex``.

    Raises ActiveStateError for anything else.
    """
    if not isinstance(raw, dict):
        raise ActiveStateError("ActiveState must be an object")

    kind = raw.get("type")

    if kind == FOUR_CHOICE:
        branches: Dict[str, Any] = {}
        for option in FOUR_CHOICE_OPTIONS:
            child = raw.get(option)
            if not isinstance(child, dict):
                continue
            child_state = validate_active_state(child)
            if child_state.type == FOUR_CHOICE:
                continue
            branches[option] = child_state
        return ActiveFourChoice(**branches)

    if kind == REVEAL:
        show_answer = raw.get("showAnswer")
        if not isinstance(show_answer, bool):
            raise ActiveStateError("ActiveState for Reveal activities must include 'showAnswer'")
        return ActiveReveal(show_answer=show_answer)

    if kind == MEDIA_LIST:
        index = raw.get("activeIndex")
        if isinstance(index, bool) or not isinstance(index, (int, float)):
            raise ActiveStateError("ActiveState for MediaList activities must include 'activeIndex'")
        return ActiveMediaList(active_index=index)

    raise ActiveStateError(f"Unsupported activity type {kind}")


def active_state_equals(a: ActiveState, b: ActiveState) -> bool:
    if a.type != b.type:
        return False
    if isinstance(a, ActiveFourChoice):
        return all(_option_equals(getattr(a, o), getattr(b, o)) for o in FOUR_CHOICE_OPTIONS)
    if isinstance(a, ActiveReveal):
        return a.show_answer == b.show_answer
    if isinstance(a, ActiveMediaList):
        return a.active_index == b.active_index
    return False


def _option_equals(a: Optional[ActiveState], b: Optional[ActiveState]) -> bool:
    # present on one side only counts as a difference
    if a is None or b is None:
        return a is None and b is None
    return active_state_equals(a, b)
