"""Structured logging for the accelerator server.

Provides context-aware structured logging:
- JSON Lines for production (one object per line, orjson encoded)
- Human-readable console output for development
- Bound context (session ids, tool names) carried by immutable loggers

Every JSON entry carries ``ts``, ``level``, ``server``, ``version`` and
``message`` followed by bound and call-site fields. Error entries always go
to stderr; the stdio transport routes everything to stderr since stdout
carries protocol frames.

Quick Start:
    >>> from s2t_accelerators.runtime.observability import configure_logging, get_logger
    >>> configure_logging(format="json")
    >>> log = get_logger("http")
    >>> log.info("Streamable HTTP session created", sessionId="4f1c...")
    {"ts":"2026-10-17T09:12:44.120Z","level":"info","server":"s2t-accelerators",...}
"""

from __future__ import annotations

import logging
import sys
import time
import traceback
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol, TextIO, runtime_checkable

import orjson

from s2t_accelerators.foundation.config import SERVER_NAME, SERVER_VERSION
from s2t_accelerators.foundation.errors import JsonDict, JsonValue

# Context var for scoped context (persists across awaits within a task)
_log_context: ContextVar[JsonDict] = ContextVar("log_context", default={})


# ─────────────────────────────────────────────────────────────────────────────
# Core Logger
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class BoundLogger:
    """Structured logger with bound context. bind() returns a new logger with merged context.

    Example:
        >>> log = BoundLogger(context={"transport": "sse"})
        >>> log.info("Legacy SSE connection opening", connectionId="c0ffee")
    """

    context: JsonDict = field(default_factory=dict)
    _renderer: LogRenderer | None = None
    _level: int | None = None

    def bind(self, **kw: JsonValue) -> BoundLogger:
        """Create new logger with additional bound context."""
        return BoundLogger(context={**self.context, **kw}, _renderer=self._renderer, _level=self._level)

    def unbind(self, *keys: str) -> BoundLogger:
        """Create new logger without specified keys."""
        return BoundLogger(context={k: v for k, v in self.context.items() if k not in keys},
                           _renderer=self._renderer, _level=self._level)

    def _log(self, level: int, message: str, **kw: JsonValue) -> None:
        if level < (self._level if self._level is not None else _state.level):
            return
        merged = {**_log_context.get(), **self.context, **kw}
        (self._renderer or _state.renderer).render(LogEntry(time.time(), level, message, merged))

    def debug(self, message: str, **kw: JsonValue) -> None: self._log(logging.DEBUG, message, **kw)
    def info(self, message: str, **kw: JsonValue) -> None: self._log(logging.INFO, message, **kw)
    def warning(self, message: str, **kw: JsonValue) -> None: self._log(logging.WARNING, message, **kw)
    def error(self, message: str, **kw: JsonValue) -> None: self._log(logging.ERROR, message, **kw)

    def exception(self, message: str, **kw: JsonValue) -> None:
        """Log error with the active exception's traceback."""
        self._log(logging.ERROR, message, exc_info=traceback.format_exc(), **kw)


@dataclass(slots=True)
class LogEntry:
    """One log record with merged context."""

    timestamp: float
    levelno: int
    message: str
    context: JsonDict

    @property
    def level(self) -> str:
        return _LEVEL_NAMES.get(self.levelno, logging.getLevelName(self.levelno).lower())

    @property
    def ts_iso(self) -> str:
        """ISO-8601 UTC with millisecond precision and a Z suffix."""
        dt = datetime.fromtimestamp(self.timestamp, tz=UTC)
        return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    @property
    def ts_human(self) -> str:
        return datetime.fromtimestamp(self.timestamp, tz=UTC).strftime("%H:%M:%S.%f")[:-3]


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class LogRenderer(Protocol):
    """Protocol for log output renderers."""

    def render(self, entry: LogEntry) -> None: ...


@dataclass(slots=True)
class JsonRenderer:
    """JSON Lines output for log aggregation. Errors are written to ``error_output``."""

    output: TextIO = field(default_factory=lambda: sys.stdout)
    error_output: TextIO = field(default_factory=lambda: sys.stderr)

    def render(self, entry: LogEntry) -> None:
        record = {"ts": entry.ts_iso, "level": entry.level, "server": SERVER_NAME,
                  "version": SERVER_VERSION, "message": entry.message, **entry.context}
        line = orjson.dumps(record, option=orjson.OPT_NON_STR_KEYS, default=str).decode()
        stream = self.error_output if entry.levelno >= logging.ERROR else self.output
        print(line, file=stream, flush=True)


@dataclass(slots=True)
class ConsoleRenderer:
    """Human-readable colored console output. Format: timestamp [level] message key=value ..."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None  # None = auto-detect

    def __post_init__(self) -> None:
        if self.colors is None:
            self.colors = getattr(self.output, "isatty", lambda: False)()

    def render(self, entry: LogEntry) -> None:
        c = _COLORS if self.colors else _NO_COLORS
        lvl = _LEVEL_COLORS.get(entry.level, c["dim"]) if self.colors else ""
        parts = [f"{c['dim']}{entry.ts_human}{c['reset']}",
                 f"{lvl}[{entry.level}]{c['reset']}",
                 f"{c['bold']}{entry.message}{c['reset']}"]
        parts += [f"{c['cyan']}{k}{c['reset']}={_format_value(v, c)}"
                  for k, v in sorted(entry.context.items()) if k != "exc_info"]
        print(" ".join(parts), file=self.output, flush=True)
        if "exc_info" in entry.context:
            print(f"{c['red']}{entry.context['exc_info']}{c['reset']}", file=self.output)


@dataclass(slots=True)
class MemoryRenderer:
    """Collects entries in memory for assertions in tests."""

    entries: list[LogEntry] = field(default_factory=list)

    def render(self, entry: LogEntry) -> None:
        self.entries.append(entry)

    def messages(self, level: str | None = None) -> list[str]:
        return [e.message for e in self.entries if level is None or e.level == level]


@dataclass(slots=True)
class NoOpRenderer:
    """Silent renderer."""

    def render(self, entry: LogEntry) -> None:
        pass


# ─────────────────────────────────────────────────────────────────────────────
# Global Configuration
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class _LoggingState:
    # Process-wide rather than a ContextVar so signal handlers and watchdog threads see it
    renderer: LogRenderer = field(default_factory=lambda: JsonRenderer())
    level: int = logging.INFO


_state = _LoggingState()


def configure_logging(
    format: str = "json",  # noqa: A002 - shadows builtin but matches settings field
    level: str = "INFO",
    *,
    output: TextIO | None = None,
    error_output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Configure global structured logging. Format: "json" (machine), "console" (human), "none"."""
    _state.level = getattr(logging, level.upper(), logging.INFO)
    match format:
        case "json": renderer: LogRenderer = JsonRenderer(output=output or sys.stdout,
                                                           error_output=error_output or sys.stderr)
        case "console": renderer = ConsoleRenderer(output=output or sys.stderr, colors=colors)
        case "none": renderer = NoOpRenderer()
        case _: raise ValueError(f"Unknown format: {format}. Use 'json', 'console', or 'none'")
    _state.renderer = renderer
    return renderer


def set_renderer(renderer: LogRenderer) -> LogRenderer:
    """Install a specific renderer (e.g. MemoryRenderer in tests). Returns the previous one."""
    previous, _state.renderer = _state.renderer, renderer
    return previous


def get_logger(name: str | None = None, **initial_context: JsonValue) -> BoundLogger:
    """Get a structured logger with optional initial context. Name is added to context as 'logger'."""
    ctx = {**({"logger": name} if name else {}), **initial_context}
    return BoundLogger(context=ctx)


class log_context:
    """Context manager adding key-value pairs to every entry logged within the scope."""

    __slots__ = ("_ctx", "_token")

    def __init__(self, **kw: JsonValue) -> None:
        self._ctx: JsonDict = dict(kw)
        self._token: object | None = None

    def __enter__(self) -> log_context:
        self._token = _log_context.set({**_log_context.get(), **self._ctx})
        return self

    def __exit__(self, *_: object) -> None:
        if self._token is not None:
            _log_context.reset(self._token)  # type: ignore[arg-type]


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


_LEVEL_NAMES = {logging.DEBUG: "debug", logging.INFO: "info", logging.WARNING: "warn", logging.ERROR: "error"}
_COLORS = {"reset": "\033[0m", "bold": "\033[1m", "dim": "\033[2m", "red": "\033[31m",
           "green": "\033[32m", "yellow": "\033[33m", "blue": "\033[34m", "cyan": "\033[36m", "white": "\033[37m"}
_NO_COLORS = {k: "" for k in _COLORS}
_LEVEL_COLORS = {"debug": _COLORS["dim"], "info": _COLORS["green"], "warn": _COLORS["yellow"], "error": _COLORS["red"]}


def _format_value(v: object, c: dict[str, str]) -> str:
    match v:
        case str(): return f'{c["yellow"]}"{v}"{c["reset"]}'
        case bool(): return f'{c["blue"]}{str(v).lower()}{c["reset"]}'
        case int() | float(): return f'{c["blue"]}{v}{c["reset"]}'
        case dict(): return f'{c["dim"]}{{{len(v)} items}}{c["reset"]}'
        case list() | tuple(): return f'{c["dim"]}[{len(v)} items]{c["reset"]}'
        case _: return f'{c["white"]}{v!r}{c["reset"]}'
