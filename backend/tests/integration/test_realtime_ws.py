"""WebSocket subscription endpoint"""
import pytest
from fastapi.testclient import TestClient

from queueflow.api.routes.realtime import parse_channels
from queueflow.container import build_container
from queueflow.main import create_app


@pytest.fixture
def ws_setup(settings):
    # Lifespan is not entered: the socket only touches the broadcaster
    container = build_container(settings)
    return container, TestClient(create_app(container=container))


def test_parse_channels():
    assert parse_channels(None) == []
    assert parse_channels("kiosk, service:1,,") == ["kiosk", "service:1"]


def test_ping_and_channel_changes(ws_setup):
    container, client = ws_setup

    with client.websocket_connect("/api/ws?channels=monitor") as websocket:
        websocket.send_json({"action": "ping"})
        pong = websocket.receive_json()
        assert pong["event"] == "pong"
        assert pong["data"]["timestamp"].endswith("Z")

        websocket.send_json({"action": "join", "channel": "service:2"})
        assert websocket.receive_json() == {
            "event": "subscribed", "data": {"channels": ["monitor", "service:2"]},
        }

        websocket.send_json({"action": "leave", "channel": "monitor"})
        assert websocket.receive_json() == {
            "event": "subscribed", "data": {"channels": ["service:2"]},
        }
        assert container.broadcaster.subscriber_count == 1

    assert container.broadcaster.subscriber_count == 0


def test_unknown_actions_are_ignored(ws_setup):
    _, client = ws_setup

    with client.websocket_connect("/api/ws") as websocket:
        websocket.send_json({"action": "dance"})
        websocket.send_json(["not", "an", "object"])
        websocket.send_json({"action": "ping"})
        assert websocket.receive_json()["event"] == "pong"
