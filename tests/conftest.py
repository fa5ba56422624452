from __future__ import annotations

from typing import List

import pytest

from triviakit.domain.game import Game
from triviakit.domain.media import (
    Catalog,
    FourChoiceActivity,
    MediaActivity,
    MediaListActivity,
    RevealActivity,
)
from triviakit.domain.state import GameState


def media(aid, kind="img", parent=None):
    return MediaActivity(id=aid, type=kind, file=f"http://media/{aid}", parent_id=parent)


def reveal(aid, parent=None):
    top = parent or aid
    return RevealActivity(
        id=aid,
        parent_id=parent,
        question=media(f"{aid}-q", parent=top),
        answer=media(f"{aid}-ans", parent=top),
    )


def make_catalog() -> Catalog:
    return Catalog(
        {
            "intro": media("intro", kind="video"),
            "q1": reveal("q1"),
            "q2": FourChoiceActivity(
                id="q2",
                a=reveal("q2-a", parent="q2"),
                b=media("q2-b", parent="q2"),
                c=media("q2-c", kind="audio", parent="q2"),
                d=media("q2-d", parent="q2"),
            ),
            "list": MediaListActivity(
                id="list",
                items=[media("list-0", parent="list"), media("list-1", parent="list")],
            ),
            7: media(7, kind="txt"),
        }
    )


class Recorder:
    def __init__(self):
        self.states: List[GameState] = []

    def __call__(self, state: GameState) -> None:
        self.states.append(state)

    def __len__(self) -> int:
        return len(self.states)


@pytest.fixture()
def catalog() -> Catalog:
    return make_catalog()


@pytest.fixture()
def game(catalog) -> Game:
    g = Game(catalog, clock=iter(range(1000, 100000, 10)).__next__)
    g.add_player("Alice", "http://media/alice.png")
    g.add_player("Bob", "http://media/bob.png")
    g.add_player("Cara", "http://media/cara.png")
    return g


@pytest.fixture()
def recorder(game) -> Recorder:
    rec = Recorder()
    game.state_changed.subscribe(rec)
    return rec
