"""Declarative input shapes: JSON Schema rendering plus generic validation."""

from .shape import (
    EMPTY_SHAPE,
    MISSING,
    FieldKind,
    FieldSpec,
    InputShape,
    array_field,
    bool_field,
    int_field,
    num_field,
    object_field,
    str_field,
    union_field,
)

__all__ = [
    "EMPTY_SHAPE",
    "MISSING",
    "FieldKind",
    "FieldSpec",
    "InputShape",
    "array_field",
    "bool_field",
    "int_field",
    "num_field",
    "object_field",
    "str_field",
    "union_field",
]
