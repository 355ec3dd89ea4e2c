"""Tests for ACI governance operations."""

from __future__ import annotations

import pytest

from s2t_accelerators.dispatch import Dispatcher
from s2t_accelerators.foundation.schema import FieldKind
from s2t_accelerators.foundation.testing import FakeRemote
from s2t_accelerators.tools import build_registry
from s2t_accelerators.tools.interview import InterviewStore

ACI_OPS = [op for op in build_registry() if op.name.startswith("aci_")]

_SAMPLE_VALUES = {
    FieldKind.STRING: "sample",
    FieldKind.NUMBER: 1,
    FieldKind.INTEGER: 1,
    FieldKind.BOOLEAN: True,
    FieldKind.ARRAY: [{"reviewer": "security"}],
    FieldKind.OBJECT: {},
    FieldKind.STRING_OR_OBJECT: "sample",
    FieldKind.ANY: "sample",
}


def minimal_args(op) -> dict:
    """Smallest argument set that passes local validation."""
    return {f.name: _SAMPLE_VALUES[f.kind] for f in op.descriptor.shape.fields if f.required}


CLASSIFY_RESPONSE = {
    "decision_id": "dec_001",
    "classification": "ESCALATE",
    "confidence": 0.875,
    "requires_human_approval": True,
    "reasoning": "Production database change outside the change window.",
    "domain_scores": {"security": 0.4, "ops": 0.91},
    "rule_matches": ["prod-db-write", "after-hours"],
    "metadata": {"pipeline_stages": ["rules", "llm"], "llm_invoked": True, "processing_time_ms": 140},
}

HEALTH_RESPONSE = {
    "org_id": "acme",
    "time_range": "30d",
    "health_score": 72,
    "metrics": {
        "total_decisions": 1200,
        "average_confidence": 0.8,
        "average_processing_time_ms": 95,
        "decisions_with_outcomes": 310,
        "false_positive_rate": 0.05,
        "false_negative_rate": 0.01,
        "classification_distribution": {"APPROVE": 900, "ESCALATE": 250, "BLOCK": 50},
    },
    "calibration_status": {
        "domains_calibrated": 2,
        "last_calibration": None,
        "domains": [{"domain": "security", "confidence_adjustment": -0.05, "sample_size": 80}],
    },
    "active_rules": 17,
    "rule_match_rate": 0.42,
    "metadata": {"processing_time_ms": 20},
}


# ═════════════════════════════════════════════════════════════════════════════
# Classification
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_classify_defaults(dispatcher: Dispatcher, remote: FakeRemote) -> None:
    remote.response = CLASSIFY_RESPONSE
    await dispatcher.invoke("aci_classify_decision", {"action": "ALTER TABLE orders"})
    remote.assert_called_with("/aci/classify", "POST", action="ALTER TABLE orders", environment="development")


@pytest.mark.asyncio
async def test_classify_report(dispatcher: Dispatcher, remote: FakeRemote) -> None:
    remote.response = CLASSIFY_RESPONSE
    result = await dispatcher.invoke("aci_classify_decision", {"action": "ALTER TABLE orders"})
    text = result.text
    assert text.startswith("# ACI Decision Classification")
    assert "**Decision ID:** `dec_001`" in text
    assert "ESCALATE" in text
    assert "88%" in text
    assert "**Requires Human Approval:** Yes" in text
    assert "## Domain Scores" in text
    assert "| security | 0.40 |" in text
    assert "| ops | 0.91 |" in text
    assert "## Rule Matches" in text
    assert "- `prod-db-write`" in text
    assert "**Pipeline:** rules -> llm" in text
    assert "*S2T ACI Governance | Decisions logged for audit trail*" in text


@pytest.mark.asyncio
async def test_classify_without_scores_or_rules(dispatcher: Dispatcher, remote: FakeRemote) -> None:
    remote.response = {**CLASSIFY_RESPONSE, "domain_scores": {}, "rule_matches": []}
    result = await dispatcher.invoke("aci_classify_decision", {"action": "ls"})
    assert "## Domain Scores" not in result.text
    assert "## Rule Matches" not in result.text


# ═════════════════════════════════════════════════════════════════════════════
# Health
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_health(dispatcher: Dispatcher, remote: FakeRemote) -> None:
    remote.response = HEALTH_RESPONSE
    result = await dispatcher.invoke("aci_governance_health", {})
    remote.assert_called_with("/aci/health", "POST", time_range="30d")
    assert remote.last_call is not None and "domain" not in (remote.last_call.body or {})

    text = result.text
    assert "**Organization:** acme" in text
    assert "72/100" in text
    assert "## Classification Distribution" in text
    assert "APPROVE: 900" in text
    assert "## Calibration Status" in text
    assert "- Last calibration: Never" in text
    assert "- security: -0.05 (80 samples)" in text
    assert "- Active rules: 17" in text
    assert "- Rule match rate: 42%" in text


# ═════════════════════════════════════════════════════════════════════════════
# Payload defaults and routing
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_parallel_review_defaults(dispatcher: Dispatcher, remote: FakeRemote) -> None:
    await dispatcher.invoke("aci_parallel_review", {"action": "deploy", "reviewers": ["security", "legal"]})
    remote.assert_called_with("/aci/parallel-review", "POST", timeout_seconds=300,
                              require_unanimity=False, minimum_approvals=2)


@pytest.mark.asyncio
async def test_recall_top_k_default(dispatcher: Dispatcher, remote: FakeRemote) -> None:
    await dispatcher.invoke("aci_recall_precedent", {"query": "drop production table"})
    remote.assert_called_with("/aci/recall", "POST", top_k=5)


@pytest.mark.asyncio
async def test_synthesize_endpoint(dispatcher: Dispatcher, remote: FakeRemote) -> None:
    await dispatcher.invoke("aci_synthesize_reviews", {
        "review_session_id": "rev_1",
        "reviews": [{"reviewer": "security", "decision": "APPROVE"}],
    })
    remote.assert_called_with("/aci/synthesize", "POST", review_session_id="rev_1")


def test_every_aci_operation_posts() -> None:
    assert len(ACI_OPS) == 12
    assert all(op.method == "POST" and op.endpoint.startswith("/aci/") for op in ACI_OPS)


# ═════════════════════════════════════════════════════════════════════════════
# Failure propagation
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize("op", ACI_OPS, ids=lambda op: op.name)
async def test_remote_failure_is_reported(op, interviews: InterviewStore) -> None:
    failing = FakeRemote(raises=RuntimeError("Network failure: 503"))
    result = await Dispatcher(build_registry(), failing, interviews).invoke(op.name, minimal_args(op))
    assert failing.call_count == 1
    assert result.is_error
    assert result.text == "Error: Network failure: 503"
