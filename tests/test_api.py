"""
Tests for the HTTP and WebSocket bridge.
"""

import pytest
from fastapi.testclient import TestClient

from pulsenet import __version__
from pulsenet.adapters import UnsupportedDnsAdapterManager
from pulsenet.api import create_app
from pulsenet.engine import DiagnosticsEngine
from pulsenet.models import PingResult


class StubPinger:
    async def ping(self, host):
        return PingResult.success(host, 3.25)


@pytest.fixture
def client():
    engine = DiagnosticsEngine(adapter_manager=UnsupportedDnsAdapterManager())
    engine.pinger = StubPinger()
    return TestClient(create_app(engine))


def test_version(client):
    assert client.get("/api/version").json() == {"version": __version__}


def test_ping(client):
    assert client.get("/api/ping", params={"host": "example.com"}).json() == {
        "alive": True,
        "time": 3.25,
        "error": None,
        "detail": None,
    }


def test_dns_invalid_domain(client):
    response = client.post("/api/dns/test", json={"domain": "https://", "customServers": ["1.2.3.4"]})

    assert response.status_code == 200
    assert response.json() == {"error": "invalid-domain", "results": []}


def test_dns_request_requires_domain(client):
    assert client.post("/api/dns/test", json={}).status_code == 422


def test_close_action_roundtrip(client):
    assert client.get("/api/settings/close-action").json() == {"action": "ask"}
    assert client.put("/api/settings/close-action", json={"action": "exit"}).json() == {"action": "exit"}
    assert client.put("/api/settings/close-action", json={"action": "nope"}).json() == {"action": "exit"}


def test_adapters_unsupported(client):
    assert client.get("/api/dns/adapters").json() == {"adapters": [], "error": "unsupported-platform"}


def test_set_adapter_unsupported(client):
    response = client.post(
        "/api/dns/adapters/set",
        json={"adapterName": "Ethernet", "primaryDns": "1.1.1.1"},
    )
    assert response.json() == {"success": False, "error": "unsupported-platform"}


def test_reset_adapter_unsupported(client):
    response = client.post("/api/dns/adapters/reset", json={"adapterName": "Ethernet"})
    assert response.json()["error"] == "unsupported-platform"


class TestWebSocket:

    def test_heartbeat(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"action": "heartbeat"})
            assert ws.receive_json() == {"type": "pong"}

    def test_unknown_action(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"action": "teleport"})
            assert ws.receive_json() == {
                "type": "error",
                "action": "teleport",
                "message": "invalid-input",
            }

    def test_ping_action(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"action": "ping", "host": "example.com"})
            message = ws.receive_json()

        assert message["type"] == "result"
        assert message["action"] == "ping"
        assert message["data"]["alive"] is True

    def test_dns_invalid_domain(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"action": "dns", "domain": ""})
            message = ws.receive_json()

        assert message == {
            "type": "result",
            "action": "dns",
            "data": {"error": "invalid-domain", "results": []},
        }

    def test_adapters_action(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"action": "adapters"})
            message = ws.receive_json()

        assert message["data"]["error"] == "unsupported-platform"
