from __future__ import annotations

import json
import time

import pytest
from fastapi.testclient import TestClient

from triviakit.main import create_app
from triviakit.settings import Settings
from triviakit.transport.protocols import EventMessageType, GameCommand


@pytest.fixture()
def client(game):
    app = create_app(game=game, settings=Settings(HEARTBEAT_INTERVAL_MS=60000))
    with TestClient(app) as c:
        yield c


def baseline(ws):
    first = ws.receive_json()
    second = ws.receive_json()
    assert first["type"] == EventMessageType.ACTIVITIES
    assert second["type"] == EventMessageType.GAME_STATE
    return first, second


def test_new_connection_gets_catalog_then_snapshot(client):
    with client.websocket_connect("/ws") as ws:
        activities, state = baseline(ws)

    assert set(activities["activities"]) == {"intro", "q1", "q2", "list", "7"}
    assert activities["activities"]["q1"]["question"]["parentId"] == "q1"
    assert state["state"]["players"]["1"]["name"] == "Bob"
    assert state["state"]["buzzers"] == {"enabled": False}
    assert state["state"]["active"] == {}


def test_state_change_reaches_every_connection(client):
    with client.websocket_connect("/ws") as host, client.websocket_connect("/ws") as other:
        baseline(host)
        baseline(other)

        host.send_json({"command": GameCommand.ENABLE_BUZZERS, "data": {"enabled": True}})
        for ws in (host, other):
            msg = ws.receive_json()
            assert msg["type"] == EventMessageType.GAME_STATE
            assert msg["state"]["buzzers"] == {"enabled": True, "state": []}

        other.send_json({"command": GameCommand.BUZZ, "data": {"playerId": 2}})
        for ws in (host, other):
            msg = ws.receive_json()
            assert [b["playerId"] for b in msg["state"]["buzzers"]["state"]] == [2]


def test_effect_is_relayed_to_sender_too(client):
    effect = {"type": 0, "action": 1, "targetActivityId": "q2-c", "parentActivityId": "q2"}
    with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
        baseline(a)
        baseline(b)

        a.send_json({"command": GameCommand.SEND_EFFECT, "data": {"effect": effect}})
        for ws in (a, b):
            msg = ws.receive_json()
            assert msg["type"] == EventMessageType.EFFECT
            assert msg["effect"] == effect


def test_invalid_effect_is_never_delivered(client):
    with client.websocket_connect("/ws") as ws:
        baseline(ws)
        ws.send_json(
            {"command": GameCommand.SEND_EFFECT, "data": {"effect": {"type": 0, "action": 0, "targetActivityId": "nope"}}}
        )
        ws.send_json({"command": GameCommand.SEND_EFFECT, "data": {"effect": {"type": 9}}})
        ws.send_text("{garbage")
        ws.send_json({"command": GameCommand.SET_ACTIVITY, "data": {"activityId": "intro"}})

        msg = ws.receive_json()
        assert msg["type"] == EventMessageType.GAME_STATE
        assert msg["state"]["active"]["activity"]["id"] == "intro"


def test_late_joiner_sees_current_state(client):
    with client.websocket_connect("/ws") as first:
        baseline(first)
        first.send_json({"command": GameCommand.SET_ACTIVITY, "data": {"activityId": "q1"}})
        first.receive_json()

        with client.websocket_connect("/ws") as late:
            _, state = baseline(late)
            assert state["state"]["active"]["activity"]["id"] == "q1"


def test_health_and_admin(client):
    assert client.get("/health").json() == {"ok": True, "connections": 0}

    with client.websocket_connect("/ws") as ws:
        baseline(ws)
        assert client.get("/admin/connections").json() == {"connected": 1}
        assert client.get("/health").json()["connections"] == 1

    state = client.get("/admin/state").json()
    assert state["players"]["0"]["name"] == "Alice"

    acts = client.get("/admin/activities").json()
    assert acts["count"] == 5
    assert acts["nodes"] > acts["count"]


def test_heartbeat_sent_on_interval(game):
    app = create_app(game=game, settings=Settings(HEARTBEAT_INTERVAL_MS=20))
    with TestClient(app) as c:
        with c.websocket_connect("/ws") as ws:
            baseline(ws)
            msg = ws.receive_json()
            assert msg["type"] == EventMessageType.HEARTBEAT
            assert isinstance(msg["time"], int)


def test_binary_frames_are_dispatched_too(client):
    with client.websocket_connect("/ws") as ws:
        baseline(ws)
        ws.send_bytes(b"not json")
        ws.send_bytes(json.dumps({"command": GameCommand.ENABLE_BUZZERS, "data": {"enabled": True}}).encode())

        msg = ws.receive_json()
        assert msg["type"] == EventMessageType.GAME_STATE
        assert msg["state"]["buzzers"]["enabled"] is True

        ws.send_json({"command": GameCommand.SET_ACTIVITY, "data": {"activityId": "intro"}})
        assert ws.receive_json()["state"]["active"]["activity"]["id"] == "intro"


def _wait_for(cond, timeout: float = 2.0) -> None:
    end = time.monotonic() + timeout
    while not cond():
        if time.monotonic() > end:
            raise AssertionError("condition not reached")
        time.sleep(0.01)


def test_closing_socket_tears_down_connection(client):
    hub = client.app.state.hub

    with client.websocket_connect("/ws") as ws:
        baseline(ws)
        (conn,) = hub._conns.values()
        tasks = list(conn.tasks)
        assert len(hub.frames) == 1
        assert len(tasks) == 2

    _wait_for(lambda: hub.size() == 0)
    _wait_for(lambda: all(t.done() for t in tasks))
    assert len(hub.frames) == 0
    assert conn.subscription is None
