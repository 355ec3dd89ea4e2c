"""MCP protocol bindings: stdio, Streamable HTTP and legacy HTTP+SSE."""

from .legacy_sse import ASGIEndpoint, LegacyConnection, LegacySSEBinding
from .server import ServerFactory, build_server, session_factory, to_tool
from .sessions import SessionStore
from .stdio import serve_stdio
from .streamable import StreamableHTTPBinding, StreamableSession

__all__ = [
    "ASGIEndpoint",
    "LegacyConnection",
    "LegacySSEBinding",
    "ServerFactory",
    "SessionStore",
    "StreamableHTTPBinding",
    "StreamableSession",
    "build_server",
    "serve_stdio",
    "session_factory",
    "to_tool",
]
