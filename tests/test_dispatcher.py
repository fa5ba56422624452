import json

from triviakit.domain.state import ActiveFourChoice, ActiveReveal
from triviakit.transport.dispatcher import dispatch_message
from triviakit.transport.protocols import OutEffect


def send(game, payload, *, is_host=True):
    raw = payload if isinstance(payload, str) else json.dumps(payload)
    return dispatch_message(game=game, raw=raw, is_host=is_host)


def test_buzz_command(game, recorder):
    send(game, {"command": 2, "data": {"enabled": True}})
    send(game, {"command": 0, "data": {"playerId": 1}})
    state = game.get_state()
    assert state.buzzers.enabled is True
    assert [b.player_id for b in state.buzzers.state] == [1]
    assert len(recorder) == 2


def test_buzz_with_bad_payload_dropped(game, recorder):
    send(game, {"command": 2, "data": {"enabled": True}})
    send(game, {"command": 0, "data": {"playerId": "1"}})
    send(game, {"command": 0})
    assert game.get_state().buzzers.state == []
    assert len(recorder) == 1


def test_reset_buzzers_command(game, recorder):
    send(game, {"command": 2, "data": {"enabled": True}})
    send(game, {"command": 0, "data": {"playerId": 0}})
    send(game, {"command": 1})
    assert game.get_state().buzzers.state == []
    assert len(recorder) == 3


def test_set_activity_with_state(game, recorder):
    send(game, {"command": 3, "data": {"activityId": "q1", "state": {"type": "reveal", "showAnswer": True}}})
    active = game.get_state().active
    assert active.activity.id == "q1"
    assert active.state == ActiveReveal(show_answer=True)


def test_set_activity_four_choice_state_normalized(game):
    send(
        game,
        {
            "command": 3,
            "data": {
                "activityId": "q2",
                "state": {
                    "type": "4 choice",
                    "a": {"type": "reveal", "showAnswer": True},
                    "b": {"type": "4 choice"},
                },
            },
        },
    )
    assert game.get_state().active.state == ActiveFourChoice(a=ActiveReveal(show_answer=True))


def test_set_activity_invalid_state_dropped(game, recorder):
    send(game, {"command": 3, "data": {"activityId": "q1", "state": {"type": "reveal"}}})
    send(game, {"command": 3, "data": {"activityId": "q1", "state": {"type": "media list", "activeIndex": 0}}})
    assert game.get_state().active.activity is None
    assert len(recorder) == 0


def test_set_activity_null_clears(game, recorder):
    send(game, {"command": 3, "data": {"activityId": "list"}})
    send(game, {"command": 3, "data": {"activityId": None}})
    assert game.get_state().active.activity is None
    assert len(recorder) == 2


def test_host_only_commands_need_host(game, recorder):
    send(game, {"command": 2, "data": {"enabled": True}}, is_host=False)
    send(game, {"command": 3, "data": {"activityId": "q1"}}, is_host=False)
    send(game, {"command": 1}, is_host=False)
    assert len(recorder) == 0


def test_buzz_allowed_for_non_host(game):
    game.enable_buzzers(True)
    send(game, {"command": 0, "data": {"playerId": 2}}, is_host=False)
    assert game.get_state().buzzers.state[0].player_id == 2


def test_send_effect_returns_relay_event_without_touching_state(game, recorder):
    out = send(game, {"command": 4, "data": {"effect": {"type": 0, "action": 0, "targetActivityId": "intro"}}}, is_host=False)
    assert len(out) == 1
    assert isinstance(out[0], OutEffect)
    assert out[0].effect.target_activity_id == "intro"
    assert len(recorder) == 0


def test_send_effect_unknown_target_not_relayed(game):
    out = send(game, {"command": 4, "data": {"effect": {"type": 0, "action": 0, "targetActivityId": "ghost"}}})
    assert out == []


def test_malformed_and_unknown_messages_are_dropped(game, recorder):
    assert send(game, "{not json") == []
    assert send(game, {"command": 42}) == []
    assert send(game, "[1, 2]") == []
    assert len(recorder) == 0


def test_set_activity_explicit_null_state_dropped(game, recorder):
    send(game, {"command": 3, "data": {"activityId": "q1", "state": {"type": "reveal", "showAnswer": True}}})
    send(game, {"command": 3, "data": {"activityId": "q1", "state": None}})
    send(game, {"command": 3, "data": {"activityId": "intro", "state": None}})

    active = game.get_state().active
    assert active.activity.id == "q1"
    assert active.state == ActiveReveal(show_answer=True)
    assert len(recorder) == 1
