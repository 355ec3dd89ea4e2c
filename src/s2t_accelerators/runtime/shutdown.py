"""Graceful shutdown for the HTTP server.

On the first SIGINT/SIGTERM the coordinator:

1. Closes every Streamable HTTP session concurrently, collecting each outcome
   so one failure never stops the sweep
2. Clears the Streamable store, then the legacy SSE store
3. Stops the HTTP listener and lets in-flight work drain

A watchdog thread force-exits with status 1 if this takes longer than the
shutdown timeout. A second signal stops uvicorn without waiting.
"""

from __future__ import annotations

import asyncio
import os
import signal
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from types import FrameType
from typing import TYPE_CHECKING, Protocol

import anyio
import uvicorn

from s2t_accelerators.runtime.observability import get_logger

if TYPE_CHECKING:
    from s2t_accelerators.ext.mcp import SessionStore

log = get_logger("shutdown")

DEFAULT_TIMEOUT = 10.0


class Closable(Protocol):
    async def close(self) -> None: ...


@dataclass(frozen=True, slots=True)
class CloseOutcome:
    """Result of closing one session."""
    session_id: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ShutdownCoordinator:
    """Drives the shutdown sequence over the two session stores.

    Args:
        streamable: Store of sessions with an async ``close()``
        legacy: Store cleared without per-connection close
        stop_server: Stops accepting connections; awaited before the sequence ends
        timeout: Seconds before the watchdog forces exit
        exit: Process exit function (injectable for tests)
    """

    __slots__ = ("_streamable", "_legacy", "_stop_server", "_timeout", "_exit", "_watchdog", "_started")

    def __init__(
        self,
        streamable: SessionStore[Closable],
        legacy: SessionStore[object],
        stop_server: Callable[[], Awaitable[None]],
        *,
        timeout: float = DEFAULT_TIMEOUT,
        exit: Callable[[int], object] = os._exit,  # noqa: A002
    ) -> None:
        self._streamable = streamable
        self._legacy = legacy
        self._stop_server = stop_server
        self._timeout = timeout
        self._exit = exit
        self._watchdog: threading.Timer | None = None
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def close_sessions(self) -> list[CloseOutcome]:
        """Close every Streamable session concurrently, then clear both stores."""
        entries = self._streamable.snapshot()
        outcomes: list[CloseOutcome | None] = [None] * len(entries)

        async def close_one(index: int, session_id: str, session: Closable) -> None:
            log.info("Closing streamable session", sessionId=session_id)
            try:
                await session.close()
            except Exception as e:
                log.error("Error closing streamable transport", sessionId=session_id, error=str(e))
                outcomes[index] = CloseOutcome(session_id, str(e) or type(e).__name__)
            else:
                outcomes[index] = CloseOutcome(session_id)

        async with anyio.create_task_group() as tg:
            for i, (sid, session) in enumerate(entries):
                tg.start_soon(close_one, i, sid, session)

        self._streamable.clear()
        self._legacy.clear()
        return [o for o in outcomes if o is not None]

    async def shutdown(self, signal_name: str) -> list[CloseOutcome]:
        """Run the full sequence once. Later calls return immediately with no outcomes."""
        if self._started:
            return []
        self._started = True
        log.info(f"Received {signal_name}, shutting down gracefully")
        self._arm_watchdog()
        outcomes = await self.close_sessions()
        await self._stop_server()
        return outcomes

    def finished(self) -> None:
        """Disarm the watchdog once the server has fully stopped."""
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None

    def _arm_watchdog(self) -> None:
        self._watchdog = threading.Timer(self._timeout, self._force_exit)
        self._watchdog.daemon = True
        self._watchdog.start()

    def _force_exit(self) -> None:
        log.warning("Graceful shutdown timed out, forcing exit")
        self._exit(1)


class GracefulServer(uvicorn.Server):
    """uvicorn Server whose first exit signal runs the ShutdownCoordinator.

    Example:
        >>> server = GracefulServer(uvicorn.Config(app, port=3001))
        >>> server.attach(ShutdownCoordinator(
        ...     app.state.streamable.sessions, app.state.legacy.connections, server.stop))
        >>> await server.serve()
    """

    def __init__(self, config: uvicorn.Config) -> None:
        super().__init__(config)
        self.coordinator: ShutdownCoordinator | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task[list[CloseOutcome]] | None = None

    def attach(self, coordinator: ShutdownCoordinator) -> None:
        self.coordinator = coordinator

    async def serve(self, sockets: list | None = None) -> None:  # type: ignore[override]
        self._loop = asyncio.get_running_loop()
        try:
            await super().serve(sockets)
        finally:
            log.info("HTTP server closed")
            if self.coordinator is not None:
                self.coordinator.finished()

    async def stop(self) -> None:
        """Stop accepting connections; uvicorn drains and returns from serve()."""
        self.should_exit = True

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        coordinator = self.coordinator
        if coordinator is None or coordinator.started or self._loop is None:
            super().handle_exit(sig, frame)
            return
        name = signal.Signals(sig).name
        self._loop.call_soon_threadsafe(self._begin_shutdown, coordinator, name)

    def _begin_shutdown(self, coordinator: ShutdownCoordinator, name: str) -> None:
        if self._task is None:
            self._task = asyncio.ensure_future(coordinator.shutdown(name))
