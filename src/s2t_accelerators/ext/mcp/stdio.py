"""Point-to-point binding: a single session over the process's stdin/stdout."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcp.server.stdio import stdio_server

from s2t_accelerators.runtime.observability import get_logger

if TYPE_CHECKING:
    from .server import ServerFactory

log = get_logger("stdio")


async def serve_stdio(server_factory: ServerFactory) -> None:
    """Run one MCP session until stdin closes. Stdout is reserved for protocol frames."""
    server = server_factory()
    async with stdio_server() as (read_stream, write_stream):
        log.info("S2T Accelerators MCP server running on stdio")
        await server.run(read_stream, write_stream, server.create_initialization_options())
