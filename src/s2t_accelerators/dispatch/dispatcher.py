"""Single chokepoint between transports and operations.

Every failure raised while validating, calling the remote API or rendering
is converted here into an error CallResult. Transports never see an
exception from operation execution.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Self

from mcp import types

from s2t_accelerators.foundation.errors import ErrorCode, ToolError
from s2t_accelerators.runtime.observability import get_logger, log_context
from s2t_accelerators.tools import OperationContext

if TYPE_CHECKING:
    from s2t_accelerators.foundation.registry import OperationDescriptor, OperationRegistry
    from s2t_accelerators.io import RemoteCaller
    from s2t_accelerators.tools.interview import InterviewStore

log = get_logger("dispatch")


@dataclass(frozen=True, slots=True)
class CallResult:
    """Outcome of one operation call: text blocks plus the error flag."""

    content: tuple[str, ...]
    is_error: bool = False

    @classmethod
    def ok(cls, text: str) -> Self:
        return cls((text,))

    @classmethod
    def error(cls, error: ToolError) -> Self:
        return cls((error.render(),), is_error=True)

    @property
    def text(self) -> str:
        return "\n".join(self.content)

    def to_mcp(self) -> types.CallToolResult:
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=t) for t in self.content],
            isError=self.is_error,
        )


class Dispatcher:
    """Resolves operation names against the registry and normalizes outcomes.

    Cheap to construct; each transport session gets its own, while the
    registry, remote client and interview store are shared.

    Example:
        >>> dispatcher = Dispatcher(build_registry(), client, InterviewStore())
        >>> result = await dispatcher.invoke("s2t_does_not_exist", {})
        >>> result.is_error, result.text
        (True, 'Error: Unknown tool: s2t_does_not_exist')
    """

    __slots__ = ("_registry", "_context")

    def __init__(self, registry: OperationRegistry, client: RemoteCaller, interviews: InterviewStore) -> None:
        self._registry = registry
        self._context = OperationContext(client, interviews)

    @property
    def registry(self) -> OperationRegistry:
        return self._registry

    def list_operations(self) -> tuple[OperationDescriptor, ...]:
        return self._registry.descriptors()

    async def invoke(self, name: str, args: Mapping[str, object] | None = None) -> CallResult:
        """Run operation ``name`` with ``args``. Never raises."""
        op = self._registry.get(name)
        if op is None:
            log.warning("Unknown tool requested", tool=name)
            return CallResult.error(ToolError.create(name or "unknown", f"Unknown tool: {name}",
                                                     ErrorCode.NOT_FOUND, recoverable=False))
        with log_context(tool=name):
            try:
                return CallResult.ok(await op.run(args, self._context))
            except Exception as e:
                error = ToolError.from_exception(name, e)
                log.error("Tool call failed", code=str(error.code), error=error.message)
                return CallResult.error(error)
