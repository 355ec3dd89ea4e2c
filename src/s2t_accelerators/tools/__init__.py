"""The accelerator operation catalog.

Quick Start:
    >>> from s2t_accelerators.tools import build_registry
    >>> registry = build_registry()
    >>> len(registry)
    36
    >>> registry.names[:2]
    ('s2t_embed', 's2t_analyze_error_patterns')
"""

from __future__ import annotations

from s2t_accelerators.foundation.registry import Operation, OperationRegistry

from . import agents, ai, distributed, governance, infrastructure, interview, platform, security
from .base import LocalOperation, OperationContext, RemoteOperation, local, remote

# Catalog order as listed to clients
_GROUPS = (ai, infrastructure, security, platform, agents, distributed, governance, interview)


def all_operations() -> list[Operation]:
    return [op for group in _GROUPS for op in group.OPERATIONS]


def build_registry() -> OperationRegistry:
    """Build the full, ordered operation registry."""
    return OperationRegistry(all_operations())


__all__ = [
    "LocalOperation",
    "OperationContext",
    "RemoteOperation",
    "all_operations",
    "build_registry",
    "local",
    "remote",
]
