"""Tests for the operation catalog and registry invariants."""

from __future__ import annotations

import pytest

from s2t_accelerators.dispatch import Dispatcher
from s2t_accelerators.foundation.registry import (
    MUTATING,
    READ_ONLY,
    OperationDescriptor,
    OperationRegistry,
)
from s2t_accelerators.foundation.schema import EMPTY_SHAPE
from s2t_accelerators.foundation.testing import FakeRemote
from s2t_accelerators.tools import build_registry, local

REGISTRY = build_registry()
WITH_REQUIRED = [op for op in REGISTRY if op.descriptor.shape.required]
WITHOUT_REQUIRED = [op for op in REGISTRY if not op.descriptor.shape.required]


# ═════════════════════════════════════════════════════════════════════════════
# Catalog
# ═════════════════════════════════════════════════════════════════════════════


def test_catalog_size_and_order() -> None:
    """All 36 operations, grouped as listed to clients."""
    assert len(REGISTRY) == 36
    names = REGISTRY.names
    assert names[:2] == ("s2t_embed", "s2t_analyze_error_patterns")
    assert names.index("s2t_catalog") < names.index("s2t_classify_action_risk") < names.index("aci_classify_decision")
    assert names[-4:] == ("s2t_interview_create", "s2t_interview_message", "s2t_interview_summary", "s2t_interview_list")


def test_descriptor_listing_matches_registry() -> None:
    assert tuple(d.name for d in REGISTRY.descriptors()) == REGISTRY.names


def test_names_are_prefixed() -> None:
    assert all(n.startswith(("s2t_", "aci_")) for n in REGISTRY.names)
    assert sum(n.startswith("aci_") for n in REGISTRY.names) == 12


def test_every_schema_is_closed_object() -> None:
    for d in REGISTRY.descriptors():
        schema = d.input_schema
        assert schema["type"] == "object", d.name
        assert schema["additionalProperties"] is False, d.name
        assert set(schema["required"]) <= set(schema["properties"]), d.name


def test_lookup_is_exact() -> None:
    assert "s2t_embed" in REGISTRY
    assert REGISTRY.get("S2T_EMBED") is None
    assert REGISTRY["s2t_embed"].name == "s2t_embed"
    with pytest.raises(KeyError):
        REGISTRY["nope"]


def test_annotations() -> None:
    assert REGISTRY["s2t_catalog"].descriptor.annotations == READ_ONLY
    assert REGISTRY["s2t_interview_create"].descriptor.annotations == MUTATING
    assert REGISTRY["aci_governance_health"].descriptor.annotations.as_hints() == {
        "readOnlyHint": True, "destructiveHint": False, "idempotentHint": True, "openWorldHint": False,
    }


# ═════════════════════════════════════════════════════════════════════════════
# Registration checks
# ═════════════════════════════════════════════════════════════════════════════


def _op(name: str, description: str = "Does something useful for tests"):
    @local(OperationDescriptor(name, "Test", description, EMPTY_SHAPE))
    def handler(args, store) -> str:
        return "ok"
    return handler


def test_duplicate_name_rejected() -> None:
    with pytest.raises(ValueError, match="already registered"):
        OperationRegistry([_op("t_one"), _op("t_one")])


def test_short_description_rejected() -> None:
    with pytest.raises(ValueError, match="description too short"):
        OperationRegistry([_op("t_one", "short")])


# ═════════════════════════════════════════════════════════════════════════════
# Validation before I/O, across the whole catalog
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize("op", WITH_REQUIRED, ids=lambda op: op.name)
async def test_empty_arguments_name_first_required_field(op, dispatcher: Dispatcher, remote: FakeRemote) -> None:
    """Calling with {} fails on the first required field and never reaches the API."""
    first = next(f for f in op.descriptor.shape.fields if f.required)
    result = await dispatcher.invoke(op.name, {})
    assert result.is_error
    assert result.text == f"Error: Required parameter '{first.name}' must be {first.constraint}"
    remote.assert_not_called()


@pytest.mark.parametrize("op", WITHOUT_REQUIRED, ids=lambda op: op.name)
def test_operations_without_required_fields_accept_empty(op) -> None:
    assert isinstance(op.descriptor.shape.validate({}, op.name), dict)


def test_expected_operations_have_no_required_fields() -> None:
    names = {op.name for op in WITHOUT_REQUIRED}
    assert {"s2t_catalog", "s2t_usage", "s2t_create_trace_context", "aci_governance_health",
            "s2t_interview_list"} <= names
