# triviakit/domain/game.py
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Set

from triviakit.domain.active_state import active_state_equals
from triviakit.domain.common.events import EventChannel
from triviakit.domain.common.types import ActivityId
from triviakit.domain.media import Catalog
from triviakit.domain.state import (
    ActiveState,
    ActiveView,
    BuzzEntry,
    BuzzersView,
    GameState,
    Player,
)
from triviakit.util.timeutil import now_ms

logger = logging.getLogger(__name__)


class Game:
    """
    The authoritative game state.

    All mutation goes through the methods below. Every accepted change emits
    one fresh snapshot on ``state_changed``; calls that would not change the
    observable state are no-ops and emit nothing.
    """

    def __init__(self, catalog: Optional[Catalog] = None, *, clock: Callable[[], int] = now_ms) -> None:
        self.catalog = catalog if catalog is not None else Catalog()
        self.state_changed: EventChannel[GameState] = EventChannel("state_changed")
        self._clock = clock

        self._next_player_id = 0
        self._players: Dict[int, Player] = {}
        self._scores: Dict[int, int] = {}

        self._buzzers_on = False
        self._buzzed_in: Set[int] = set()
        self._buzzes: List[BuzzEntry] = []

        self._activity = None
        self._activity_state: Optional[ActiveState] = None

    # ---- roster ----

    def add_player(self, name: str, img_url: str, initial_score: Optional[int] = None) -> Player:
        """Roster setup only; meant to run before any connection is accepted."""
        pid = self._next_player_id
        self._next_player_id += 1
        player = Player(id=pid, name=name, img_url=img_url)
        self._players[pid] = player
        self._scores[pid] = initial_score or 0
        return player

    def score(self, player_id: int) -> int:
        return self._scores.get(player_id, 0)

    @property
    def players(self) -> Dict[int, Player]:
        return dict(self._players)

    # ---- buzzers ----

    def buzz_in(self, player_id: int) -> None:
        if not self._buzzers_on:
            logger.debug("Ignoring buzz from %s, buzzers are off", player_id)
            return
        if player_id in self._buzzed_in:
            logger.debug("Ignoring repeat buzz from %s", player_id)
            return
        player = self._players.get(player_id)
        if player is None:
            logger.warning("Received buzz for unknown player id %s", player_id)
            return

        logger.info("BuzzIn %s", player.name)
        self._buzzes.append(BuzzEntry(player_id=player_id, time=self._clock()))
        self._buzzed_in.add(player_id)
        self._notify()

    def enable_buzzers(self, enabled: bool) -> None:
        if self._buzzers_on == enabled:
            return
        self._buzzers_on = enabled
        self._notify()

    def reset_buzzers(self) -> None:
        if not self._buzzes:
            return
        self._buzzes = []
        self._buzzed_in.clear()
        self._notify()

    # ---- active activity ----

    def set_activity(self, activity_id: Optional[ActivityId], state: Optional[ActiveState] = None) -> None:
        """
        Select an activity (or clear the selection with None).

        A supplied state must carry the same tag as the activity. Selecting an
        activity without a state clears whatever state was stored.
        """
        changed = False

        if activity_id is None:
            if self._activity is None:
                return
            self._activity = None
            self._activity_state = None
            changed = True
        else:
            activity = self.catalog.get(activity_id)
            if activity is None:
                logger.warning("Received setActivity with unknown id %s", activity_id)
                return

            if state is not None:
                if activity.type != state.type:
                    logger.warning(
                        "Received setActivity with state type mismatch (%s != %s)",
                        activity.type,
                        state.type,
                    )
                    return
                if self._activity_state is None or not active_state_equals(state, self._activity_state):
                    self._activity_state = state
                    changed = True
            elif self._activity_state is not None:
                self._activity_state = None
                changed = True

            if self._activity is None or self._activity.id != activity_id:
                self._activity = activity
                changed = True

        if changed:
            self._notify()

    # ---- snapshot ----

    def get_state(self) -> GameState:
        return GameState(
            players=dict(self._players),
            buzzers=BuzzersView(
                enabled=self._buzzers_on,
                state=list(self._buzzes) if self._buzzers_on else None,
            ),
            active=ActiveView(activity=self._activity, state=self._activity_state),
        )

    def _notify(self) -> None:
        self.state_changed.emit(self.get_state())
