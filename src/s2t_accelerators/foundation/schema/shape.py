"""Declarative input shapes for accelerator operations.

Each operation declares its inputs once as a tuple of FieldSpec. InputShape
turns the declaration into a pydantic model; the model renders the JSON
Schema advertised to MCP clients and is the single validation routine that
runs before any remote call:

    >>> shape = InputShape((
    ...     str_field("action", "Command to classify", required=True, maxLength=2000),
    ...     str_field("environment", "Target environment", default="local",
    ...               enum=["local", "development", "staging", "production"]),
    ... ))
    >>> shape.validate({"action": "rm -rf /tmp/cache"})
    {'action': 'rm -rf /tmp/cache', 'environment': 'local'}
    >>> shape.validate({})
    Traceback (most recent call last):
    InputValidationError: Required parameter 'action' must be a non-empty string

The model checks presence and basic JSON type. Bounds, enums and nested item
shapes are published in the schema; the accelerator API enforces them.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Annotated, Any, Final, Mapping

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints, ValidationError, create_model

from ..errors import ErrorCode, InputValidationError, JsonDict, JsonValue, ToolException


class FieldKind(StrEnum):
    """Basic JSON type tag of a declared field."""
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    STRING_OR_OBJECT = "string|object"
    ANY = "any"


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()


def _integral(v: object) -> object:
    """JSON clients may send ``3.0`` for an integer."""
    return int(v) if isinstance(v, float) and v.is_integer() else v


_NonEmptyStr = Annotated[str, StringConstraints(min_length=1)]
_Integer = Annotated[int, BeforeValidator(_integral)]
_Object = dict[str, Any]

# kind -> (annotation when optional, annotation when required)
_ANNOTATIONS: dict[FieldKind, tuple[Any, Any]] = {
    FieldKind.STRING: (str, _NonEmptyStr),
    FieldKind.NUMBER: (float, float),
    FieldKind.INTEGER: (_Integer, _Integer),
    FieldKind.BOOLEAN: (bool, bool),
    FieldKind.ARRAY: (list[Any], list[Any]),
    FieldKind.OBJECT: (_Object, _Object),
    FieldKind.STRING_OR_OBJECT: (str | _Object, _NonEmptyStr | _Object),
    FieldKind.ANY: (Any, Any),
}

# Published in place of pydantic's anyOf rendering
_UNION_TYPES: dict[FieldKind, list[str]] = {
    FieldKind.STRING_OR_OBJECT: ["string", "object"],
    FieldKind.ANY: ["string", "object", "array", "number", "boolean"],
}

_CONSTRAINTS: dict[FieldKind, str] = {
    FieldKind.STRING: "a non-empty string",
    FieldKind.NUMBER: "a number",
    FieldKind.INTEGER: "an integer",
    FieldKind.BOOLEAN: "a boolean",
    FieldKind.ARRAY: "an array",
    FieldKind.OBJECT: "an object",
    FieldKind.STRING_OR_OBJECT: "a string or object",
    FieldKind.ANY: "provided",
}

_MODEL_CONFIG = ConfigDict(strict=True, extra="ignore", json_schema_extra={"additionalProperties": False})


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """One declared input field.

    ``schema`` carries the extra JSON Schema keywords (enum, minLength,
    maximum, items, properties, ...) published verbatim.
    """

    name: str
    kind: FieldKind
    description: str
    required: bool = False
    default: JsonValue | _Missing = MISSING
    schema: JsonDict = field(default_factory=dict)

    @property
    def has_default(self) -> bool:
        return not isinstance(self.default, _Missing)

    @property
    def constraint(self) -> str:
        if self.kind is FieldKind.STRING and not self.required:
            return "a string"
        return _CONSTRAINTS[self.kind]

    def definition(self) -> tuple[Any, Any]:
        """``(annotation, FieldInfo)`` pair for ``create_model``."""
        optional, required = _ANNOTATIONS[self.kind]
        if self.required:
            return required, Field(..., description=self.description, json_schema_extra=self._publish)
        default = self.default if self.has_default else None
        return optional, Field(default=default, description=self.description, json_schema_extra=self._publish)

    def _publish(self, schema: JsonDict) -> None:
        if (types := _UNION_TYPES.get(self.kind)) is not None:
            schema.pop("anyOf", None)
            schema["type"] = list(types)
        if not self.has_default:
            schema.pop("default", None)
        schema.update(copy.deepcopy(self.schema))

    def json_schema(self) -> JsonDict:
        return InputShape((self,)).json_schema()["properties"][self.name]


def _clean(schema: JsonDict) -> JsonDict:
    """Drop pydantic titles; clients only need types, descriptions and bounds."""
    schema.pop("title", None)
    schema["properties"] = {
        name: {k: v for k, v in prop.items() if k != "title"} for name, prop in schema.get("properties", {}).items()
    }
    schema.setdefault("required", [])
    return schema


@dataclass(frozen=True, slots=True)
class InputShape:
    """Ordered field declarations for one operation, backed by a pydantic model."""

    fields: tuple[FieldSpec, ...] = ()
    model: type[BaseModel] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        names = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate field names in input shape: {names}")
        model = create_model(  # type: ignore[call-overload]
            "InputShape", __config__=_MODEL_CONFIG, **{f.name: f.definition() for f in self.fields},
        )
        object.__setattr__(self, "model", model)

    @property
    def required(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields if f.required)

    def json_schema(self) -> JsonDict:
        """Render as the ``inputSchema`` object advertised to MCP clients."""
        return _clean(self.model.model_json_schema())

    def validate(self, args: Mapping[str, object] | None, tool_name: str = "input") -> JsonDict:
        """Validate ``args`` against the model, then build the outbound payload.

        Null counts as absent. The payload holds only declared fields:
        supplied values, or the declared default when a value is absent.
        Optional fields with neither are left out.

        Raises:
            InputValidationError: for the first failing field, required fields
                first, each group in declared order.
        """
        if args is None:
            args = {}
        elif not isinstance(args, Mapping):
            raise ToolException.create(tool_name, "Arguments must be an object", ErrorCode.INVALID_PARAMS, recoverable=False)

        supplied = {k: v for k, v in args.items() if v is not None}
        try:
            self.model.model_validate(supplied)
        except ValidationError as e:
            raise self._first_failure(e, tool_name) from None

        payload: JsonDict = {}
        for spec in self.fields:
            if spec.name in supplied:
                payload[spec.name] = supplied[spec.name]  # type: ignore[assignment]
            elif spec.has_default:
                payload[spec.name] = copy.deepcopy(spec.default)
        return payload

    def _first_failure(self, error: ValidationError, tool_name: str) -> InputValidationError:
        failed = {err["loc"][0] for err in error.errors() if err["loc"]}
        ordered = sorted((f for f in self.fields if f.name in failed), key=lambda f: not f.required)
        spec = ordered[0]
        if spec.required:
            return InputValidationError.required(spec.name, spec.constraint, tool_name)
        return InputValidationError.invalid(spec.name, spec.constraint, tool_name)


EMPTY_SHAPE: Final = InputShape()


# ─────────────────────────────────────────────────────────────────────────────
# Field constructors
# ─────────────────────────────────────────────────────────────────────────────


def str_field(name: str, description: str, *, required: bool = False,
              default: JsonValue | _Missing = MISSING, **schema: JsonValue) -> FieldSpec:
    return FieldSpec(name, FieldKind.STRING, description, required, default, schema)


def int_field(name: str, description: str, *, required: bool = False,
              default: JsonValue | _Missing = MISSING, **schema: JsonValue) -> FieldSpec:
    return FieldSpec(name, FieldKind.INTEGER, description, required, default, schema)


def num_field(name: str, description: str, *, required: bool = False,
              default: JsonValue | _Missing = MISSING, **schema: JsonValue) -> FieldSpec:
    return FieldSpec(name, FieldKind.NUMBER, description, required, default, schema)


def bool_field(name: str, description: str, *, default: JsonValue | _Missing = MISSING,
               **schema: JsonValue) -> FieldSpec:
    return FieldSpec(name, FieldKind.BOOLEAN, description, False, default, schema)


def array_field(name: str, description: str, items: JsonDict, *, required: bool = False,
                default: JsonValue | _Missing = MISSING, **schema: JsonValue) -> FieldSpec:
    return FieldSpec(name, FieldKind.ARRAY, description, required, default, {"items": items, **schema})


def object_field(name: str, description: str, *, required: bool = False,
                 properties: JsonDict | None = None, open_ended: bool = False,
                 **schema: JsonValue) -> FieldSpec:
    """Object-valued field. ``open_ended`` allows keys beyond ``properties``."""
    extra: JsonDict = {"properties": properties} if properties is not None else {}
    extra["additionalProperties"] = open_ended
    return FieldSpec(name, FieldKind.OBJECT, description, required, MISSING, {**extra, **schema})


def union_field(name: str, description: str, kind: FieldKind, *, required: bool = False) -> FieldSpec:
    return FieldSpec(name, kind, description, required)
