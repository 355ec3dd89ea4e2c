"""Legacy HTTP+SSE binding (protocol revision 2024-11-05).

``GET /sse`` opens one long-lived event stream per connection. Its first
event names the message endpoint, ``/messages?sessionId=<id>``; clients POST
JSON-RPC messages there and read replies from the stream.

Connections carry two ids: a connection id used as the store key and in
logs, and the protocol session id handed to the client. Message submission
only knows the latter, so it is matched by scanning open connections. There
is no termination request; a connection ends when its stream closes.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import anyio
from mcp import types
from mcp.shared.message import SessionMessage
from pydantic import ValidationError
from sse_starlette import EventSourceResponse
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from s2t_accelerators.runtime.observability import get_logger

from .sessions import SessionStore

if TYPE_CHECKING:
    from anyio.streams.memory import MemoryObjectSendStream
    from starlette.types import Receive, Scope, Send

    from .server import ServerFactory

log = get_logger("legacy_sse")

MESSAGE_PATH = "/messages"


@dataclass(slots=True)
class LegacyConnection:
    """One open ``/sse`` stream and the inbound side of its MCP session."""

    connection_id: str
    session_id: str
    inbound: MemoryObjectSendStream[SessionMessage | Exception]
    created_at: float = field(default_factory=time.time)


class ASGIEndpoint:
    """Route endpoint Starlette passes raw ASGI arguments to, unwrapped."""

    __slots__ = ("_handler",)

    def __init__(self, handler: Callable[[Scope, Receive, Send], Awaitable[None]]) -> None:
        self._handler = handler

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self._handler(scope, receive, send)


class LegacySSEBinding:
    """Connection router for ``/sse`` and ``/messages``."""

    __slots__ = ("_factory", "_message_path", "connections", "stream_endpoint", "message_endpoint")

    def __init__(self, server_factory: ServerFactory, *, message_path: str = MESSAGE_PATH) -> None:
        self._factory = server_factory
        self._message_path = message_path
        self.connections: SessionStore[LegacyConnection] = SessionStore()
        self.stream_endpoint = ASGIEndpoint(self.open_stream)
        self.message_endpoint = ASGIEndpoint(self.post_message)

    async def open_stream(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Serve one connection until the client disconnects or its session ends."""
        connection_id = str(uuid4())
        session_id = uuid4().hex
        log.info("Legacy SSE connection opening", connectionId=connection_id)

        inbound_writer, inbound_reader = anyio.create_memory_object_stream[SessionMessage | Exception](0)
        outbound_writer, outbound_reader = anyio.create_memory_object_stream[SessionMessage](0)
        events_writer, events_reader = anyio.create_memory_object_stream[dict[str, Any]](0)
        endpoint = f"{scope.get('root_path', '')}{self._message_path}?sessionId={session_id}"

        async def pump_events() -> None:
            async with events_writer, outbound_reader:
                await events_writer.send({"event": "endpoint", "data": endpoint})
                async for message in outbound_reader:
                    await events_writer.send({
                        "event": "message",
                        "data": message.message.model_dump_json(by_alias=True, exclude_none=True),
                    })

        self.connections.add(connection_id, LegacyConnection(connection_id, session_id, inbound_writer))
        server = self._factory()
        try:
            async with anyio.create_task_group() as tg:
                async def stream_response() -> None:
                    await EventSourceResponse(events_reader, data_sender_callable=pump_events)(scope, receive, send)
                    # Client went away: end the session
                    await inbound_writer.aclose()
                    await outbound_reader.aclose()

                tg.start_soon(stream_response)
                try:
                    await server.run(inbound_reader, outbound_writer, server.create_initialization_options())
                except Exception:
                    log.exception("Legacy SSE session failed", connectionId=connection_id)
                tg.cancel_scope.cancel()
        finally:
            if self.connections.discard(connection_id) is not None:
                log.info("Legacy SSE connection closed", connectionId=connection_id)

    async def post_message(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        session_id = request.query_params.get("sessionId")
        if not session_id:
            await JSONResponse({"error": "Missing sessionId query parameter"}, status_code=400)(scope, receive, send)
            return

        connection = self.connections.find(lambda c: c.session_id == session_id)
        if connection is None:
            await JSONResponse({"error": "Session not found. Connect via GET /sse first."},
                               status_code=404)(scope, receive, send)
            return

        body = await request.body()
        try:
            message = types.JSONRPCMessage.model_validate_json(body)
        except ValidationError as e:
            log.warning("Could not parse legacy SSE message", connectionId=connection.connection_id, error=str(e))
            await Response("Could not parse message", status_code=400)(scope, receive, send)
            await connection.inbound.send(e)
            return

        await Response("Accepted", status_code=202)(scope, receive, send)
        await connection.inbound.send(SessionMessage(message))
