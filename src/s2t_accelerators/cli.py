"""Process entry points.

    s2t-accelerators            stdio binding (one session over stdin/stdout)
    s2t-accelerators-http       Streamable HTTP + legacy SSE on PORT (default 3001)
    python -m s2t_accelerators [stdio|http]

Both exit with status 1 before serving when S2T_API_KEY is missing.
"""

from __future__ import annotations

import sys

import anyio
import uvicorn

from s2t_accelerators.ext.http import create_app
from s2t_accelerators.ext.mcp import serve_stdio, session_factory
from s2t_accelerators.foundation.config import S2TSettings, load_settings
from s2t_accelerators.foundation.errors import ConfigurationError
from s2t_accelerators.io import RemoteClient
from s2t_accelerators.runtime import GracefulServer, ShutdownCoordinator
from s2t_accelerators.runtime.observability import configure_logging, get_logger
from s2t_accelerators.tools import build_registry
from s2t_accelerators.tools.interview import InterviewStore

log = get_logger("cli")

USAGE = "usage: python -m s2t_accelerators [stdio|http]"


def _settings_or_exit() -> S2TSettings:
    try:
        return load_settings()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        if e.hint:
            print(e.hint, file=sys.stderr)
        sys.exit(1)


async def run_stdio(settings: S2TSettings) -> None:
    async with RemoteClient.from_settings(settings) as client:
        await serve_stdio(session_factory(build_registry(), client, InterviewStore()))


async def run_http(settings: S2TSettings) -> None:
    async with RemoteClient.from_settings(settings) as client:
        app = create_app(
            session_factory(build_registry(), client, InterviewStore()),
            allowed_origins=settings.allowed_origins,
        )
        server = GracefulServer(uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_level="warning",
            timeout_graceful_shutdown=max(1, int(settings.shutdown_timeout / 2)),
        ))
        server.attach(ShutdownCoordinator(
            app.state.streamable.sessions,
            app.state.legacy.connections,
            server.stop,
            timeout=settings.shutdown_timeout,
        ))
        base = f"http://localhost:{settings.port}"
        log.info("S2T Accelerators MCP HTTP server listening", port=settings.port, endpoints={
            "streamableHttp": f"{base}/mcp",
            "legacySse": f"{base}/sse",
            "health": f"{base}/health",
        })
        await server.serve()


def main_stdio() -> None:
    settings = _settings_or_exit()
    # stdout carries protocol frames
    configure_logging(settings.logging.format, settings.logging.level, output=sys.stderr)
    try:
        anyio.run(run_stdio, settings)
    except KeyboardInterrupt:
        pass


def main_http() -> None:
    settings = _settings_or_exit()
    configure_logging(settings.logging.format, settings.logging.level)
    try:
        anyio.run(run_http, settings)
    except KeyboardInterrupt:
        pass


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    match args[:1]:
        case [] | ["stdio"]: main_stdio()
        case ["http"]: main_http()
        case _:
            print(USAGE, file=sys.stderr)
            sys.exit(2)
