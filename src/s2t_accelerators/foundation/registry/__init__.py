"""Operation registry: descriptors, annotations and the ordered catalog."""

from .registry import (
    MUTATING,
    MUTATING_IDEMPOTENT,
    READ_ONLY,
    EffectAnnotations,
    Operation,
    OperationDescriptor,
    OperationRegistry,
)

__all__ = [
    "MUTATING",
    "MUTATING_IDEMPOTENT",
    "READ_ONLY",
    "EffectAnnotations",
    "Operation",
    "OperationDescriptor",
    "OperationRegistry",
]
