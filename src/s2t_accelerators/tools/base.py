"""Operation kinds and shared rendering helpers.

Two operation kinds cover the catalog:

- RemoteOperation: validate -> one call to the accelerator API -> format
- LocalOperation: validate -> in-process handler (interview engine)

Formatters are plain functions from the parsed API response to a markdown
document. They are pure: identical input renders identical text.

Example:
    >>> EMBED = OperationDescriptor("s2t_embed", "Generate Vector Embeddings", "...", shape)
    >>> @remote(EMBED, "/embed")
    ... def embed(r: JsonDict) -> str:
    ...     return f"Generated {r['summary']['total_chunks']} embedding(s)"
    >>> embed
    RemoteOperation('s2t_embed')
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

import orjson

from s2t_accelerators.foundation.registry import Operation, OperationDescriptor

if TYPE_CHECKING:
    from s2t_accelerators.foundation.errors import JsonDict
    from s2t_accelerators.io import RemoteCaller

    from .interview import InterviewStore

HttpMethod = Literal["GET", "POST", "PUT", "DELETE"]
Formatter = Callable[[Any], str]
LocalHandler = Callable[["JsonDict", "InterviewStore"], str]


@dataclass(frozen=True, slots=True)
class OperationContext:
    """Collaborators an operation may touch. One per session; both members are shared."""

    client: RemoteCaller
    interviews: InterviewStore


# ─────────────────────────────────────────────────────────────────────────────
# Operation kinds
# ─────────────────────────────────────────────────────────────────────────────


class RemoteOperation(Operation):
    """Pass-through to one fixed endpoint of the accelerator API."""

    __slots__ = ("endpoint", "method", "render")

    def __init__(self, descriptor: OperationDescriptor, endpoint: str, method: HttpMethod, render: Formatter) -> None:
        super().__init__(descriptor)
        self.endpoint = endpoint
        self.method = method
        self.render = render

    async def run(self, args: Mapping[str, object] | None, context: OperationContext) -> str:  # type: ignore[override]
        payload = self.descriptor.shape.validate(args, self.name)
        body = None if self.method == "GET" else payload
        data = await context.client.call(self.endpoint, self.method, body)
        return self.render(data)


class LocalOperation(Operation):
    """Operation answered in-process, without any remote call."""

    __slots__ = ("handler",)

    def __init__(self, descriptor: OperationDescriptor, handler: LocalHandler) -> None:
        super().__init__(descriptor)
        self.handler = handler

    async def run(self, args: Mapping[str, object] | None, context: OperationContext) -> str:  # type: ignore[override]
        payload = self.descriptor.shape.validate(args, self.name)
        return self.handler(payload, context.interviews)


def remote(descriptor: OperationDescriptor, endpoint: str, method: HttpMethod = "POST") -> Callable[[Formatter], RemoteOperation]:
    """Decorator binding a formatter to a descriptor and endpoint."""
    def decorator(render: Formatter) -> RemoteOperation:
        return RemoteOperation(descriptor, endpoint, method, render)
    return decorator


def local(descriptor: OperationDescriptor) -> Callable[[LocalHandler], LocalOperation]:
    """Decorator binding an in-process handler to a descriptor."""
    def decorator(handler: LocalHandler) -> LocalOperation:
        return LocalOperation(descriptor, handler)
    return decorator


# ─────────────────────────────────────────────────────────────────────────────
# Rendering helpers
# ─────────────────────────────────────────────────────────────────────────────

CHECK, WARN, SEARCH, CROSS = "✅", "⚠️", "\U0001f50d", "❌"
RED, ORANGE, YELLOW, GREEN = "\U0001f534", "\U0001f7e0", "\U0001f7e1", "\U0001f7e2"
TREND_UP, TREND_DOWN, TREND_FLAT = "\U0001f4c8", "\U0001f4c9", "➡️"
SAVE, BOOK, TRASH = "\U0001f4be", "\U0001f4d6", "\U0001f5d1️"
LOCKED, BLOCKED = "\U0001f512", "\U0001f6ab"

SEVERITY_ICONS: dict[str, str] = {"CRITICAL": RED, "HIGH": ORANGE, "MEDIUM": YELLOW, "LOW": GREEN}


def percent(ratio: float) -> int:
    """0.875 -> 88. Halves round up."""
    return math.floor(ratio * 100 + 0.5)


def level_icon(value: float, good: float = 0.8, fair: float = 0.5) -> str:
    """Traffic light for ratios and scores where higher is better."""
    return GREEN if value >= good else YELLOW if value >= fair else RED


def yes_no(flag: object) -> str:
    return "Yes" if flag else "No"


def money(amount: float) -> str:
    return f"${amount:,.2f}"


def signed(value: float) -> str:
    return f"{value:+.2f}"


def json_block(value: object) -> str:
    """Pretty JSON (two-space indent) fenced as a ```json block."""
    return f"```json\n{orjson.dumps(value, option=orjson.OPT_INDENT_2).decode()}\n```"


def code_list(items: list[str], limit: int) -> str:
    return ", ".join(f"`{item}`" for item in items[:limit])


def summary_counts(summary: Mapping[str, Any], *, include_low: bool = True) -> list[str]:
    """Severity bullet lines, omitting zero counts."""
    levels = ("critical", "high", "medium", "low") if include_low else ("critical", "high", "medium")
    return [f"- {SEVERITY_ICONS[lvl.upper()]} {lvl.title()}: {summary[lvl]}"
            for lvl in levels if summary.get(lvl, 0) > 0]


# ─────────────────────────────────────────────────────────────────────────────
# Footers
# ─────────────────────────────────────────────────────────────────────────────

GOVERNANCE_KIT = "Agent Governance Kit (ACC-ACI-002) -- $5,000"
COORDINATION_SUITE = "Agent Coordination Suite (ACC-ACI-004) -- $7,500"
RESILIENCE_ENGINE = "Agent Resilience Engine (ACC-ACI-003) -- $3,500"

CATALOG_URL = "https://www.s2tconsulting.com/accelerators"


def product_footer(product: str) -> str:
    """Footer naming the full implementation behind an agent or distributed primitive."""
    return (
        "\n\n---\n*Powered by S2T Consulting | 36 Production-Ready Tools*\n"
        f"*Full implementation: {product} | [Browse all]({CATALOG_URL})*\n"
    )


ACI_FOOTER = (
    "\n\n---\n*S2T ACI Governance | Decisions logged for audit trail*\n"
    f"*[Agent Governance Kit]({CATALOG_URL})*\n"
)
