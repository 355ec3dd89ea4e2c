"""Legacy SSE round trip against a live server: endpoint event, replies on the stream, cleanup."""

from __future__ import annotations

import json
import socket
import threading
import time
from collections.abc import Iterator

import httpx
import pytest
import uvicorn

from s2t_accelerators.ext.http import create_app
from s2t_accelerators.ext.mcp import session_factory
from s2t_accelerators.foundation.config import SERVER_NAME
from s2t_accelerators.foundation.testing import FakeRemote
from s2t_accelerators.tools import build_registry
from s2t_accelerators.tools.interview import InterviewStore

PROTOCOL_VERSION = "2024-11-05"


@pytest.fixture
def base_url() -> Iterator[str]:
    """Serve the app with uvicorn on an ephemeral port in a background thread."""
    app = create_app(session_factory(build_registry(), FakeRemote(response={}), InterviewStore()))
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]

    server = uvicorn.Server(uvicorn.Config(app, log_level="warning"))
    thread = threading.Thread(target=server.run, kwargs={"sockets": [sock]}, daemon=True)
    thread.start()
    deadline = time.monotonic() + 10
    while not server.started:
        assert time.monotonic() < deadline, "server did not start"
        time.sleep(0.02)

    yield f"http://127.0.0.1:{port}"

    server.should_exit = True
    thread.join(timeout=10)
    sock.close()


def sse_events(lines: Iterator[str]) -> Iterator[tuple[str, str]]:
    """Parse ``(event, data)`` pairs from SSE lines, skipping comments."""
    event, data = "message", []
    for line in lines:
        if not line:
            if data:
                yield event, "\n".join(data)
            event, data = "message", []
        elif not line.startswith(":"):
            key, _, value = line.partition(":")
            value = value.removeprefix(" ")
            if key == "event":
                event = value
            elif key == "data":
                data.append(value)


def next_message(events: Iterator[tuple[str, str]]) -> dict:
    event, data = next(events)
    assert event == "message"
    return json.loads(data)


def sse_count(http: httpx.Client) -> int:
    return http.get("/health").json()["sessions"]["sse"]


def test_round_trip(base_url: str) -> None:
    with httpx.Client(base_url=base_url, timeout=10) as http:
        with http.stream("GET", "/sse") as stream:
            assert stream.status_code == 200
            assert stream.headers["content-type"].startswith("text/event-stream")
            events = sse_events(stream.iter_lines())

            event, endpoint = next(events)
            assert event == "endpoint"
            assert endpoint.startswith("/messages?sessionId=")
            assert sse_count(http) == 1

            accepted = http.post(endpoint, json={
                "jsonrpc": "2.0", "id": 1, "method": "initialize",
                "params": {"protocolVersion": PROTOCOL_VERSION, "capabilities": {},
                           "clientInfo": {"name": "pytest", "version": "0.0.1"}},
            })
            assert accepted.status_code == 202
            reply = next_message(events)
            assert reply["id"] == 1
            assert reply["result"]["serverInfo"]["name"] == SERVER_NAME

            assert http.post(endpoint, json={"jsonrpc": "2.0", "method": "notifications/initialized"}).status_code == 202

            http.post(endpoint, json={"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
            listed = next_message(events)
            assert listed["id"] == 2
            assert len(listed["result"]["tools"]) == 36

            http.post(endpoint, json={"jsonrpc": "2.0", "id": 3, "method": "tools/call",
                                      "params": {"name": "s2t_nope", "arguments": {}}})
            called = next_message(events)
            assert called["id"] == 3
            assert called["result"]["isError"] is True
            assert called["result"]["content"][0]["text"] == "Error: Unknown tool: s2t_nope"

        deadline = time.monotonic() + 5
        while sse_count(http) != 0:
            assert time.monotonic() < deadline, "legacy connection was not released after disconnect"
            time.sleep(0.05)

        gone = http.post(endpoint, json={"jsonrpc": "2.0", "id": 4, "method": "ping"})
        assert gone.status_code == 404


def test_connections_are_independent(base_url: str) -> None:
    with httpx.Client(base_url=base_url, timeout=10) as http:
        with http.stream("GET", "/sse") as first, http.stream("GET", "/sse") as second:
            _, first_endpoint = next(sse_events(first.iter_lines()))
            _, second_endpoint = next(sse_events(second.iter_lines()))
            assert first_endpoint != second_endpoint
            assert sse_count(http) == 2
