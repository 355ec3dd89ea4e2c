"""Streamable HTTP binding: many concurrent sessions keyed by ``Mcp-Session-Id``.

Session lifecycle::

    UNINITIALIZED --POST initialize, no id--> ACTIVE --DELETE / stream close--> CLOSED

- POST with a known id is routed to that session's transport.
- POST without an id must be an ``initialize`` request; it creates a session,
  registers it and hands the request to the new transport. If the transport
  refuses the handshake (wrong Accept or Content-Type, bad protocol headers)
  the session is terminated and unregistered before the response returns.
- GET (server push stream) and DELETE require a known id.
- Anything else is rejected with a JSON-RPC error body and status 400,
  before any session is touched.

Session servers run in a task group owned by the binding; wrap the serving
lifetime in ``running()``.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import uuid4

import anyio
import orjson
from mcp.server.streamable_http import MCP_SESSION_ID_HEADER, StreamableHTTPServerTransport
from starlette.requests import Request
from starlette.responses import JSONResponse

from s2t_accelerators.runtime.observability import get_logger

from .sessions import SessionStore

if TYPE_CHECKING:
    from anyio.abc import TaskGroup, TaskStatus
    from starlette.types import Message, Receive, Scope, Send

    from .server import ServerFactory

log = get_logger("streamable")

NO_VALID_SESSION = "Bad request: no valid session. Send an initialize request first."
INVALID_SESSION = "Bad request: invalid or missing session ID."


@dataclass(slots=True)
class StreamableSession:
    """One live Streamable HTTP session."""

    session_id: str
    transport: StreamableHTTPServerTransport
    created_at: float = field(default_factory=time.time)

    async def close(self) -> None:
        await self.transport.terminate()


def bad_request(message: str) -> JSONResponse:
    return JSONResponse(
        {"jsonrpc": "2.0", "error": {"code": -32000, "message": message}, "id": None},
        status_code=400,
    )


def is_initialize_request(body: object) -> bool:
    return isinstance(body, dict) and body.get("jsonrpc") == "2.0" and body.get("method") == "initialize" \
        and "id" in body


def _replay(body: bytes, receive: Receive) -> Receive:
    """Receive callable that yields an already-read body once, then defers to the real channel."""
    delivered = False

    async def replay() -> Message:
        nonlocal delivered
        if not delivered:
            delivered = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay


async def _handle_recording_status(
    transport: StreamableHTTPServerTransport, scope: Scope, receive: Receive, send: Send,
) -> int:
    """Let ``transport`` answer the request; return the HTTP status it sent (0 if none)."""
    status = 0

    async def recording_send(message: Message) -> None:
        nonlocal status
        if message["type"] == "http.response.start":
            status = message["status"]
        await send(message)

    await transport.handle_request(scope, receive, recording_send)
    return status


class StreamableHTTPBinding:
    """Session router for ``/mcp``.

    Args:
        server_factory: Builds a fresh MCP server (and dispatcher) per session
        json_response: Answer POSTs with plain JSON instead of an SSE stream
    """

    __slots__ = ("_factory", "_json_response", "_tg", "sessions")

    def __init__(self, server_factory: ServerFactory, *, json_response: bool = False) -> None:
        self._factory = server_factory
        self._json_response = json_response
        self._tg: TaskGroup | None = None
        self.sessions: SessionStore[StreamableSession] = SessionStore()

    @asynccontextmanager
    async def running(self) -> AsyncIterator[None]:
        """Own the task group session servers run in. Leaving cancels any still running."""
        async with anyio.create_task_group() as tg:
            self._tg = tg
            try:
                yield
            finally:
                self._tg = None
                tg.cancel_scope.cancel()

    async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        session_id = request.headers.get(MCP_SESSION_ID_HEADER)
        session = self.sessions.get(session_id)

        match request.method:
            case "POST" if session is not None:
                await session.transport.handle_request(scope, receive, send)
            case "POST" if session_id is None:
                body = await request.body()
                try:
                    parsed = orjson.loads(body)
                except orjson.JSONDecodeError:
                    parsed = None
                if not is_initialize_request(parsed):
                    await bad_request(NO_VALID_SESSION)(scope, receive, send)
                    return
                session = await self._open()
                status = await _handle_recording_status(session.transport, scope, _replay(body, receive), send)
                if not 200 <= status < 300:
                    await self._abandon(session, status)
            case "POST":
                await bad_request(NO_VALID_SESSION)(scope, receive, send)
            case "GET" if session is not None:
                await session.transport.handle_request(scope, receive, send)
            case "DELETE" if session is not None:
                await session.transport.handle_request(scope, receive, send)
                self.sessions.discard(session.session_id)
                log.info("Streamable HTTP session terminated via DELETE", sessionId=session.session_id)
            case _:
                await bad_request(INVALID_SESSION)(scope, receive, send)

    async def _open(self) -> StreamableSession:
        if self._tg is None:
            raise RuntimeError("StreamableHTTPBinding is not running; use 'async with binding.running()'")
        session_id = uuid4().hex
        session = StreamableSession(session_id, StreamableHTTPServerTransport(
            mcp_session_id=session_id, is_json_response_enabled=self._json_response,
        ))
        await self._tg.start(self._serve, session)
        self.sessions.add(session_id, session)
        log.info("Streamable HTTP session created", sessionId=session_id)
        return session

    async def _serve(self, session: StreamableSession, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        server = self._factory()
        async with session.transport.connect() as (read_stream, write_stream):
            task_status.started()
            try:
                await server.run(read_stream, write_stream, server.create_initialization_options())
            except Exception:
                log.exception("Streamable HTTP session failed", sessionId=session.session_id)
            finally:
                self._release(session.session_id)

    async def _abandon(self, session: StreamableSession, status: int) -> None:
        self.sessions.discard(session.session_id)
        await session.close()
        log.warning("Streamable HTTP initialize rejected", sessionId=session.session_id, status=status)

    def _release(self, session_id: str) -> None:
        if self.sessions.discard(session_id) is not None:
            log.info("Streamable HTTP session closed", sessionId=session_id)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.handle(scope, receive, send)
