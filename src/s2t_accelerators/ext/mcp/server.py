"""MCP protocol surface: one low-level ``Server`` per transport session.

The server answers ``tools/list`` from the registry and routes
``tools/call`` through a Dispatcher, so every tool outcome reaches the
client as a CallToolResult. Input validation is left to the operations so
that missing-field messages keep their documented wording.

Example:
    >>> factory = session_factory(build_registry(), client, InterviewStore())
    >>> server = factory()
    >>> await server.run(read_stream, write_stream, server.create_initialization_options())
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from mcp import types
from mcp.server.lowlevel import Server

from s2t_accelerators.dispatch import Dispatcher
from s2t_accelerators.foundation.config import SERVER_NAME, SERVER_VERSION

if TYPE_CHECKING:
    from s2t_accelerators.foundation.registry import OperationDescriptor, OperationRegistry
    from s2t_accelerators.io import RemoteCaller
    from s2t_accelerators.tools.interview import InterviewStore

ServerFactory = Callable[[], Server]


def to_tool(descriptor: OperationDescriptor) -> types.Tool:
    """Descriptor -> MCP Tool definition."""
    return types.Tool(
        name=descriptor.name,
        title=descriptor.title,
        description=descriptor.description,
        inputSchema=descriptor.input_schema,
        annotations=types.ToolAnnotations(**descriptor.annotations.as_hints()),
    )


def build_server(dispatcher: Dispatcher) -> Server:
    """Create an MCP server bound to ``dispatcher``."""
    server: Server = Server(SERVER_NAME, version=SERVER_VERSION)
    tools = [to_tool(d) for d in dispatcher.list_operations()]

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return tools

    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
        result = await dispatcher.invoke(name, arguments)
        return result.to_mcp()

    return server


def session_factory(registry: OperationRegistry, client: RemoteCaller, interviews: InterviewStore) -> ServerFactory:
    """Factory producing a fresh server and dispatcher per session over shared collaborators."""
    def create() -> Server:
        return build_server(Dispatcher(registry, client, interviews))
    return create
