"""Starlette application hosting both HTTP bindings.

Endpoints:
    POST   /mcp       Streamable HTTP requests (JSON-RPC over HTTP)
    GET    /mcp       Streamable HTTP server push stream
    DELETE /mcp       Session termination
    GET    /sse       Legacy SSE connection
    POST   /messages  Legacy SSE message submission
    GET    /health    Liveness and session counts

Example:
    >>> app = create_app(session_factory(registry, client, interviews),
    ...                  allowed_origins=frozenset({"https://app.example.com"}))
    >>> uvicorn.run(app, port=3001)
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from starlette.applications import Starlette
from starlette.datastructures import Headers, MutableHeaders
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from s2t_accelerators.ext.mcp import LegacySSEBinding, StreamableHTTPBinding
from s2t_accelerators.foundation.config import SERVER_NAME, SERVER_VERSION

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

    from s2t_accelerators.ext.mcp import ServerFactory

TRUSTED_DOMAIN = "s2tconsulting.com"

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Accept, Mcp-Session-Id, Last-Event-ID, X-S2T-API-Key",
    "Access-Control-Expose-Headers": "Mcp-Session-Id",
    "Vary": "Origin",
}


def is_origin_allowed(origin: str | None, allowed: frozenset[str]) -> bool:
    """Requests without an Origin, or with no allow-list configured, pass.

    Otherwise the origin must match exactly or be served from
    ``s2tconsulting.com`` or one of its subdomains.
    """
    if not origin or not allowed or origin in allowed:
        return True
    try:
        host = urlsplit(origin).hostname or ""
    except ValueError:
        return False
    return host == TRUSTED_DOMAIN or host.endswith(f".{TRUSTED_DOMAIN}")


class OriginMiddleware:
    """CORS headers on every response; preflight requests answered with 204.

    Pure ASGI so streaming responses pass through untouched.
    """

    __slots__ = ("app", "allowed")

    def __init__(self, app: ASGIApp, allowed_origins: frozenset[str] = frozenset()) -> None:
        self.app = app
        self.allowed = allowed_origins

    def _headers(self, origin: str | None) -> dict[str, str]:
        out: dict[str, str] = {}
        if is_origin_allowed(origin, self.allowed):
            out["Access-Control-Allow-Origin"] = origin or "*"
        return {**out, **CORS_HEADERS}

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        cors = self._headers(Headers(scope=scope).get("origin"))
        if scope["method"] == "OPTIONS":
            await Response(status_code=204, headers=cors)(scope, receive, send)
            return

        async def send_with_cors(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for key, value in cors.items():
                    headers[key] = value
            await send(message)

        await self.app(scope, receive, send_with_cors)


def create_app(
    server_factory: ServerFactory,
    *,
    allowed_origins: frozenset[str] = frozenset(),
    json_response: bool = False,
    clock: Callable[[], float] = time.monotonic,
) -> Starlette:
    """Build the ASGI app. Bindings are reachable as ``app.state.streamable`` and ``app.state.legacy``."""
    streamable = StreamableHTTPBinding(server_factory, json_response=json_response)
    legacy = LegacySSEBinding(server_factory)
    started = clock()

    async def health(request: Request) -> JSONResponse:
        return JSONResponse({
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "transport": {"streamableHttp": True, "legacySse": True},
            "sessions": {"streamable": len(streamable.sessions), "sse": len(legacy.connections)},
            "uptime": int(clock() - started),
        })

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with streamable.running():
            yield

    app = Starlette(
        routes=[
            Route("/mcp", streamable, methods=["GET", "POST", "DELETE"]),
            Route("/sse", legacy.stream_endpoint, methods=["GET"]),
            Route("/messages", legacy.message_endpoint, methods=["POST"]),
            Route("/health", health, methods=["GET"]),
        ],
        lifespan=lifespan,
    )
    app.add_middleware(OriginMiddleware, allowed_origins=allowed_origins)
    app.state.streamable = streamable
    app.state.legacy = legacy
    return app
