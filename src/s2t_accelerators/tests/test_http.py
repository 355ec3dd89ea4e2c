"""Tests for the HTTP application: health, origin policy and both MCP bindings."""

from __future__ import annotations

import json
from collections.abc import Iterator

import pytest
from starlette.testclient import TestClient

from s2t_accelerators.ext.http import create_app, is_origin_allowed
from s2t_accelerators.ext.mcp import session_factory
from s2t_accelerators.foundation.config import SERVER_NAME, SERVER_VERSION
from s2t_accelerators.foundation.testing import FakeRemote
from s2t_accelerators.tools import build_registry
from s2t_accelerators.tools.interview import InterviewStore

ACCEPT = "application/json, text/event-stream"
SESSION_HEADER = "mcp-session-id"
PROTOCOL_VERSION = "2025-03-26"

INITIALIZE = {
    "jsonrpc": "2.0",
    "id": 1,
    "method": "initialize",
    "params": {
        "protocolVersion": PROTOCOL_VERSION,
        "capabilities": {},
        "clientInfo": {"name": "pytest", "version": "0.0.1"},
    },
}


class Ticker:
    """Monotonic clock that advances a fixed step per reading."""

    def __init__(self, step: float) -> None:
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


def make_app(**kwargs):
    factory = session_factory(build_registry(), FakeRemote(response={}), InterviewStore())
    return create_app(factory, json_response=True, **kwargs)


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(make_app()) as c:
        yield c


def initialize(client: TestClient) -> str:
    response = client.post("/mcp", json=INITIALIZE, headers={"Accept": ACCEPT})
    assert response.status_code == 200
    assert response.json()["result"]["serverInfo"]["name"] == SERVER_NAME
    return response.headers[SESSION_HEADER]


def session_headers(session_id: str) -> dict[str, str]:
    return {"Accept": ACCEPT, SESSION_HEADER: session_id, "mcp-protocol-version": PROTOCOL_VERSION}


# ═════════════════════════════════════════════════════════════════════════════
# Health
# ═════════════════════════════════════════════════════════════════════════════


def test_health() -> None:
    with TestClient(make_app(clock=Ticker(7.5))) as c:
        body = c.get("/health").json()
    assert body == {
        "status": "ok",
        "server": SERVER_NAME,
        "version": SERVER_VERSION,
        "transport": {"streamableHttp": True, "legacySse": True},
        "sessions": {"streamable": 0, "sse": 0},
        "uptime": 7,
    }


# ═════════════════════════════════════════════════════════════════════════════
# Origin policy
# ═════════════════════════════════════════════════════════════════════════════


class TestOrigins:
    @pytest.mark.parametrize(("origin", "allowed", "expected"), [
        (None, frozenset({"https://app.example.com"}), True),
        ("https://evil.example", frozenset(), True),
        ("https://app.example.com", frozenset({"https://app.example.com"}), True),
        ("https://s2tconsulting.com", frozenset({"https://app.example.com"}), True),
        ("https://dev.s2tconsulting.com", frozenset({"https://app.example.com"}), True),
        ("https://evils2tconsulting.com", frozenset({"https://app.example.com"}), False),
        ("https://evil.example", frozenset({"https://app.example.com"}), False),
    ])
    def test_is_origin_allowed(self, origin: str | None, allowed: frozenset[str], expected: bool) -> None:
        assert is_origin_allowed(origin, allowed) is expected

    def test_preflight(self, client: TestClient) -> None:
        response = client.options("/mcp", headers={"Origin": "https://app.example.com"})
        assert response.status_code == 204
        assert response.headers["access-control-allow-origin"] == "https://app.example.com"
        assert response.headers["access-control-allow-methods"] == "GET, POST, DELETE, OPTIONS"
        assert "Mcp-Session-Id" in response.headers["access-control-allow-headers"]
        assert response.headers["access-control-expose-headers"] == "Mcp-Session-Id"

    def test_wildcard_without_origin(self, client: TestClient) -> None:
        assert client.get("/health").headers["access-control-allow-origin"] == "*"

    def test_disallowed_origin_gets_no_allow_header(self) -> None:
        with TestClient(make_app(allowed_origins=frozenset({"https://app.example.com"}))) as c:
            denied = c.get("/health", headers={"Origin": "https://evil.example"})
            allowed = c.get("/health", headers={"Origin": "https://app.example.com"})
        assert denied.status_code == 200
        assert "access-control-allow-origin" not in denied.headers
        assert denied.headers["vary"] == "Origin"
        assert allowed.headers["access-control-allow-origin"] == "https://app.example.com"


# ═════════════════════════════════════════════════════════════════════════════
# Streamable HTTP
# ═════════════════════════════════════════════════════════════════════════════


def _error_message(response) -> str:
    body = response.json()
    assert body["jsonrpc"] == "2.0"
    assert body["id"] is None
    assert body["error"]["code"] == -32000
    return body["error"]["message"]


class TestStreamableRouting:
    def test_post_without_session_must_initialize(self, client: TestClient) -> None:
        response = client.post("/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "tools/list"},
                               headers={"Accept": ACCEPT})
        assert response.status_code == 400
        assert _error_message(response) == "Bad request: no valid session. Send an initialize request first."

    def test_post_unparseable_body(self, client: TestClient) -> None:
        response = client.post("/mcp", content=b"not json", headers={"Accept": ACCEPT,
                                                                     "Content-Type": "application/json"})
        assert response.status_code == 400
        assert "no valid session" in _error_message(response)

    def test_post_unknown_session(self, client: TestClient) -> None:
        response = client.post("/mcp", json={"jsonrpc": "2.0", "id": 2, "method": "tools/list"},
                               headers=session_headers("deadbeef"))
        assert response.status_code == 400
        assert "no valid session" in _error_message(response)

    @pytest.mark.parametrize("method", ["GET", "DELETE"])
    def test_get_and_delete_need_known_session(self, client: TestClient, method: str) -> None:
        for headers in ({}, {SESSION_HEADER: "deadbeef"}):
            response = client.request(method, "/mcp", headers=headers)
            assert response.status_code == 400
            assert _error_message(response) == "Bad request: invalid or missing session ID."

    def test_session_lifecycle(self, client: TestClient) -> None:
        """initialize -> list tools -> DELETE -> stale id rejected."""
        session_id = initialize(client)
        assert client.get("/health").json()["sessions"]["streamable"] == 1

        notified = client.post("/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"},
                               headers=session_headers(session_id))
        assert notified.status_code == 202

        listed = client.post("/mcp", json={"jsonrpc": "2.0", "id": 2, "method": "tools/list"},
                             headers=session_headers(session_id))
        assert listed.status_code == 200
        tools = listed.json()["result"]["tools"]
        assert len(tools) == 36
        assert tools[0]["name"] == "s2t_embed"

        deleted = client.delete("/mcp", headers=session_headers(session_id))
        assert deleted.status_code == 200
        assert client.get("/health").json()["sessions"]["streamable"] == 0

        stale = client.post("/mcp", json={"jsonrpc": "2.0", "id": 3, "method": "tools/list"},
                            headers=session_headers(session_id))
        assert stale.status_code == 400
        assert "no valid session" in _error_message(stale)

    @pytest.mark.parametrize(("headers", "status"), [
        ({"Accept": "text/plain", "Content-Type": "application/json"}, 406),
        ({"Accept": ACCEPT, "Content-Type": "text/plain"}, 415),
    ])
    def test_rejected_initialize_leaves_no_session(self, client: TestClient, headers: dict[str, str],
                                                   status: int) -> None:
        for _ in range(3):
            response = client.post("/mcp", content=json.dumps(INITIALIZE), headers=headers)
            assert response.status_code == status
        assert client.get("/health").json()["sessions"]["streamable"] == 0
        assert len(client.app.state.streamable.sessions) == 0

        assert initialize(client)
        assert client.get("/health").json()["sessions"]["streamable"] == 1

    def test_sessions_are_independent(self, client: TestClient) -> None:
        first, second = initialize(client), initialize(client)
        assert first != second
        assert client.get("/health").json()["sessions"]["streamable"] == 2

        client.delete("/mcp", headers=session_headers(first))
        assert client.get("/health").json()["sessions"]["streamable"] == 1


# ═════════════════════════════════════════════════════════════════════════════
# Legacy SSE
# ═════════════════════════════════════════════════════════════════════════════


class TestLegacyMessages:
    def test_missing_session_id(self, client: TestClient) -> None:
        response = client.post("/messages", json={"jsonrpc": "2.0", "id": 1, "method": "ping"})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing sessionId query parameter"}

    def test_unknown_session(self, client: TestClient) -> None:
        response = client.post("/messages?sessionId=feedface", json={"jsonrpc": "2.0", "id": 1, "method": "ping"})
        assert response.status_code == 404
        assert response.json() == {"error": "Session not found. Connect via GET /sse first."}

    def test_wrong_method(self, client: TestClient) -> None:
        assert client.get("/messages").status_code == 405
