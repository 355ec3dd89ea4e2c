"""Static, ordered catalog of accelerator operations.

The registry provides:
- Immutable, insertion-ordered operation lookup by exact name
- Descriptor listing for the MCP ``tools/list`` query
- Registration-time checks (unique names, usable descriptions)

It is built once at startup and shared by every session; there are no
mutation methods.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..schema import InputShape

if TYPE_CHECKING:
    from ..errors import JsonDict


@dataclass(frozen=True, slots=True)
class EffectAnnotations:
    """Advisory side-effect hints. Callers use them for confirmation policy; nothing here enforces them."""

    read_only: bool = True
    destructive: bool = False
    idempotent: bool = True
    open_world: bool = False

    def as_hints(self) -> dict[str, bool]:
        return {
            "readOnlyHint": self.read_only,
            "destructiveHint": self.destructive,
            "idempotentHint": self.idempotent,
            "openWorldHint": self.open_world,
        }


READ_ONLY = EffectAnnotations()
MUTATING = EffectAnnotations(read_only=False, idempotent=False)
MUTATING_IDEMPOTENT = EffectAnnotations(read_only=False, idempotent=True)


@dataclass(frozen=True, slots=True)
class OperationDescriptor:
    """Everything a client needs to discover and call one operation."""

    name: str
    title: str
    description: str
    shape: InputShape
    annotations: EffectAnnotations = READ_ONLY

    @property
    def input_schema(self) -> JsonDict:
        return self.shape.json_schema()


class Operation(ABC):
    """A named operation bound to its implementation.

    Subclasses validate raw arguments against ``descriptor.shape`` before
    doing any I/O and return the rendered text document.
    """

    __slots__ = ("descriptor",)

    def __init__(self, descriptor: OperationDescriptor) -> None:
        self.descriptor = descriptor

    @property
    def name(self) -> str:
        return self.descriptor.name

    @abstractmethod
    async def run(self, args: Mapping[str, object] | None, context: object) -> str:
        """Validate ``args``, execute, and render the result."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class OperationRegistry:
    """Ordered, immutable mapping from operation name to Operation.

    Example:
        >>> registry = OperationRegistry([embed_op, catalog_op])
        >>> registry.get("s2t_embed")
        RemoteOperation('s2t_embed')
        >>> [d.name for d in registry.descriptors()]
        ['s2t_embed', 's2t_catalog']
    """

    __slots__ = ("_ops",)

    def __init__(self, operations: Iterable[Operation]) -> None:
        ops: dict[str, Operation] = {}
        for op in operations:
            if op.name in ops:
                raise ValueError(f"Operation '{op.name}' already registered")
            if len(op.descriptor.description) < 10:
                raise ValueError(f"Operation '{op.name}' description too short for tool selection")
            ops[op.name] = op
        self._ops = ops

    def get(self, name: str) -> Operation | None:
        """Exact, case-sensitive lookup."""
        return self._ops.get(name)

    def __getitem__(self, name: str) -> Operation:
        return self._ops[name]

    def __contains__(self, name: object) -> bool:
        return name in self._ops

    def __len__(self) -> int:
        return len(self._ops)

    def __iter__(self) -> Iterator[Operation]:
        return iter(self._ops.values())

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._ops)

    def descriptors(self) -> tuple[OperationDescriptor, ...]:
        """All descriptors in catalog order."""
        return tuple(op.descriptor for op in self._ops.values())
