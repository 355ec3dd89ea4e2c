"""S2T Accelerators: MCP server for the S2T accelerator platform.

Exposes a fixed catalog of remote accelerator operations (and a handful of
local interview tools) to MCP clients over stdio, Streamable HTTP and the
legacy SSE transport.

Quick Start:
    >>> from s2t_accelerators import build_registry, Dispatcher
    >>> registry = build_registry()
    >>> dispatcher = Dispatcher(registry, client, interviews)
    >>> result = await dispatcher.invoke("s2t_catalog", {})
"""

from __future__ import annotations

from .dispatch import CallResult, Dispatcher
from .foundation.config import SERVER_NAME, SERVER_VERSION
from .foundation.registry import OperationDescriptor, OperationRegistry
from .tools import build_registry

__all__ = [
    "SERVER_NAME",
    "SERVER_VERSION",
    "CallResult",
    "Dispatcher",
    "OperationDescriptor",
    "OperationRegistry",
    "build_registry",
]
