"""ACI governance operations.

Decision classification, financial and compliance gates, domain routing,
parallel review and synthesis, the audit log, precedent recall, outcome
calibration, blast-radius and rollback estimation, and governance health.
Every report closes with the ACI audit footer.
"""

from __future__ import annotations

from s2t_accelerators.foundation.errors import JsonDict
from s2t_accelerators.foundation.registry import MUTATING, MUTATING_IDEMPOTENT, OperationDescriptor
from s2t_accelerators.foundation.schema import (
    InputShape,
    array_field,
    bool_field,
    num_field,
    object_field,
    str_field,
)

from .base import (
    ACI_FOOTER,
    CHECK,
    CROSS,
    SEVERITY_ICONS,
    WARN,
    YELLOW,
    level_icon,
    money,
    percent,
    remote,
    signed,
    yes_no,
)

DOMAINS = ["security", "financial", "legal", "ops", "compliance", "data"]
ENVIRONMENTS = ["local", "development", "staging", "production"]
CLASSIFICATIONS = ["APPROVE", "ESCALATE", "BLOCK"]

CLASSIFY = OperationDescriptor(
    name="aci_classify_decision",
    title="Classify Agent Decision",
    description=(
        "Classify an AI agent action as APPROVE, ESCALATE, or BLOCK using rule-based analysis, domain scoring, "
        "and optional LLM evaluation. Use before any agent action that could affect production systems, "
        "finances, or compliance -- this is the primary governance gate. Records an immutable audit entry as a "
        "side effect. Returns classification with confidence score and reasoning."
    ),
    shape=InputShape((
        str_field("action", "The action to classify (e.g., 'aws s3 rm s3://prod-bucket --recursive')",
                  required=True, minLength=1, maxLength=5000),
        str_field("environment", "Target environment where the action will execute",
                  default="development", enum=ENVIRONMENTS),
        object_field("context", "Additional context for classification", properties={
            "source_agent": {"type": "string", "minLength": 1, "maxLength": 200,
                             "description": "ID of the agent requesting the action"},
            "domain": {"type": "string", "enum": DOMAINS, "description": "Governance domain"},
            "metadata": {"type": "object", "description": "Arbitrary metadata for audit trail"},
        }),
        object_field("org_config", "Organization-level governance overrides", properties={
            "risk_tolerance": {"type": "string", "enum": ["conservative", "moderate", "aggressive"],
                               "description": "Organization risk tolerance"},
            "require_human_approval_above": {"type": "number", "minimum": 0, "maximum": 1,
                                             "description": "Confidence threshold above which human approval "
                                                            "is required"},
        }),
    )),
    annotations=MUTATING,
)

FINANCIAL_GATE = OperationDescriptor(
    name="aci_financial_gate",
    title="Financial Impact Gate",
    description=(
        "Estimate the financial impact of an action and determine if it passes budget gates. Use before any "
        "action with cost implications (provisioning resources, purchasing services, scaling infrastructure). "
        "Returns cost breakdown, budget impact analysis, and APPROVE/ESCALATE/BLOCK decision. Records audit "
        "entry as side effect."
    ),
    shape=InputShape((
        str_field("action", "The action to evaluate for financial impact", required=True, minLength=1, maxLength=5000),
        num_field("duration_hours", "Expected duration in hours for recurring cost estimation",
                  minimum=0, maximum=8760),
        object_field("context", "Financial context for budget gate evaluation", properties={
            "current_monthly_spend": {"type": "number", "minimum": 0, "description": "Current monthly spend in USD"},
            "budget_remaining": {"type": "number", "minimum": 0, "maximum": 100000000,
                                 "description": "Budget remaining for the period in USD"},
            "cost_center": {"type": "string", "minLength": 1, "maxLength": 100,
                            "description": "Cost center code for allocation"},
        }),
    )),
    annotations=MUTATING,
)

COMPLIANCE = OperationDescriptor(
    name="aci_compliance_check",
    title="Compliance Framework Check",
    description=(
        "Evaluate an action against compliance frameworks (SOC2, GDPR, HIPAA, PCI-DSS). Use before actions that "
        "handle sensitive data or affect auditable systems. Returns framework-specific violations, warnings, "
        "and remediation steps. No side effects beyond audit logging."
    ),
    shape=InputShape((
        str_field("action", "The action to evaluate for compliance", required=True, minLength=1, maxLength=5000),
        array_field("frameworks", "Compliance frameworks to check the action against",
                    {"type": "string", "enum": ["soc2", "gdpr", "hipaa", "pci-dss"]}, minItems=1),
        str_field("data_classification", "Data classification level that the action touches",
                  enum=["public", "internal", "confidential", "PII", "PHI", "PCI"]),
        object_field("context", "Additional compliance context (data residency, retention, etc.)", open_ended=True),
    )),
)

ROUTE_DOMAIN = OperationDescriptor(
    name="aci_route_domain",
    title="Route to Domain Expert",
    description=(
        "Route a governance task to the appropriate domain expert agent(s) with sensitivity tagging. Extends "
        "s2t_route_task_to_agent with governance awareness and parallel review recommendations. Use when a "
        "governance decision needs domain-specific expertise. Returns routing recommendations. No side effects."
    ),
    shape=InputShape((
        str_field("task_description", "Description of the governance task to route",
                  required=True, minLength=5, maxLength=5000),
        object_field("governance_context", "Governance-specific routing context", properties={
            "requires_approval": {"type": "boolean", "description": "Whether the task requires human approval"},
            "sensitivity_level": {"type": "string", "enum": ["low", "medium", "high", "critical"],
                                  "description": "Data/action sensitivity level"},
        }),
    )),
)

PARALLEL_REVIEW = OperationDescriptor(
    name="aci_parallel_review",
    title="Initiate Parallel Review",
    description=(
        "Initiate parallel governance review across multiple domain agents (security, financial, legal, ops, "
        "compliance, data). Dispatches review tasks via SQS FIFO queue. Use for high-impact decisions that need "
        "multi-domain sign-off. Returns a session ID for tracking. Use aci_synthesize_reviews to collect and "
        "unify results. Side effect: enqueues review tasks."
    ),
    shape=InputShape((
        str_field("action", "The action under governance review", required=True, minLength=1, maxLength=5000),
        array_field("reviewers", "Domain expert reviewers to dispatch", {"type": "string", "enum": DOMAINS},
                    required=True, minItems=1, maxItems=6),
        num_field("timeout_seconds", "Maximum wait time for all reviews to complete",
                  default=300, minimum=60, maximum=600),
        bool_field("require_unanimity", "Require all reviewers to APPROVE (otherwise uses minimum_approvals "
                   "threshold)", default=False),
        num_field("minimum_approvals", "Minimum number of APPROVE votes needed for overall approval",
                  default=2, minimum=1, maximum=6),
    )),
    annotations=MUTATING,
)

SYNTHESIZE = OperationDescriptor(
    name="aci_synthesize_reviews",
    title="Synthesize Review Results",
    description=(
        "Collect and synthesize results from a parallel governance review session. Produces a unified "
        "APPROVE/ESCALATE/BLOCK decision from individual reviewer assessments. Use after aci_parallel_review "
        "to aggregate domain expert opinions. Returns unified decision with confidence and dissent analysis."
    ),
    shape=InputShape((
        str_field("review_session_id", "Session ID returned by aci_parallel_review", required=True, minLength=1),
        array_field("reviews", "Individual reviewer assessments to synthesize", {
            "type": "object",
            "properties": {
                "domain": {"type": "string", "minLength": 1, "description": "Reviewer domain (security, financial, etc.)"},
                "classification": {"type": "string", "enum": CLASSIFICATIONS, "description": "Reviewer's decision"},
                "confidence": {"type": "number", "minimum": 0, "maximum": 1, "description": "Confidence score (0.0-1.0)"},
                "reasoning": {"type": "string", "minLength": 1, "description": "Explanation for the decision"},
            },
            "required": ["domain", "classification", "confidence", "reasoning"],
            "additionalProperties": False,
        }, required=True, minItems=1),
    )),
)

LOG_DECISION = OperationDescriptor(
    name="aci_log_decision",
    title="Log Governance Decision",
    description=(
        "Explicitly record a governance decision in the append-only audit log. Use when decisions are made "
        "outside the classify pipeline (e.g., manual human approvals, out-of-band escalations). Returns "
        "decision ID and timestamp. Side effect: writes to immutable audit log."
    ),
    shape=InputShape((
        str_field("action", "The action that was decided upon", required=True, minLength=1, maxLength=5000),
        str_field("classification", "The governance decision", required=True, enum=CLASSIFICATIONS),
        num_field("confidence", "Confidence score for the decision (0.0-1.0)", minimum=0, maximum=1),
        str_field("reasoning", "Explanation for the decision (required for audit trail)",
                  required=True, minLength=1, maxLength=5000),
        str_field("approved_by", "Who approved: 'human:email@example.com' or 'auto:rule_id'", maxLength=500),
        object_field("context", "Additional context to attach to the audit record", open_ended=True),
    )),
    annotations=MUTATING,
)

RECALL = OperationDescriptor(
    name="aci_recall_precedent",
    title="Search Decision Precedents",
    description=(
        "Semantic search over past governance decisions to find similar precedents. Use when making governance "
        "decisions to check how similar actions were classified historically. Returns top-K precedents with "
        "similarity scores and outcomes. No side effects -- read-only search."
    ),
    shape=InputShape((
        str_field("query", "Natural language description of the action to search for precedents",
                  required=True, minLength=3, maxLength=2000),
        object_field("filters", "Optional filters to narrow precedent search", properties={
            "classification": {"type": "string", "enum": CLASSIFICATIONS, "description": "Filter by past classification"},
            "domain": {"type": "string", "minLength": 1, "maxLength": 100, "description": "Filter by governance domain"},
            "time_range": {
                "type": "object",
                "properties": {
                    "start": {"type": "string", "minLength": 1, "maxLength": 50, "description": "ISO 8601 start date"},
                    "end": {"type": "string", "minLength": 1, "maxLength": 50, "description": "ISO 8601 end date"},
                },
                "additionalProperties": False,
            },
        }),
        num_field("top_k", "Number of precedents to return, ranked by similarity", default=5, minimum=1, maximum=20),
    )),
)

RECORD_OUTCOME = OperationDescriptor(
    name="aci_record_outcome",
    title="Record Decision Outcome",
    description=(
        "Record the actual outcome of a previously classified governance decision. Feeds the calibration loop "
        "to improve future classification accuracy. Use after an approved action completes (or fails) to close "
        "the feedback loop. Side effect: updates the decision record in the audit log."
    ),
    shape=InputShape((
        str_field("decision_id", "The decision ID (from aci_classify_decision or aci_log_decision) to record "
                  "outcome for", required=True, minLength=1, maxLength=200),
        str_field("outcome", "Actual outcome of the action", required=True,
                  enum=["SUCCESS", "FAILURE", "REVERTED", "PARTIAL"]),
        str_field("outcome_details", "Details about what happened (error messages, metrics, etc.)", maxLength=5000),
    )),
    annotations=MUTATING_IDEMPOTENT,
)

BLAST_RADIUS = OperationDescriptor(
    name="aci_estimate_blast_radius",
    title="Estimate Blast Radius",
    description=(
        "Estimate the blast radius of a proposed action -- affected systems, users, data records, cascade depth, "
        "and recovery time. Use before approving high-risk actions to understand potential impact. Returns "
        "quantitative impact metrics and affected dependency graph. No side effects -- read-only analysis."
    ),
    shape=InputShape((
        str_field("action", "The action to analyze for blast radius", required=True, minLength=1, maxLength=5000),
        str_field("environment", "Target environment (production amplifies blast radius)",
                  default="development", enum=ENVIRONMENTS),
        object_field("context", "Infrastructure context for more accurate estimation", properties={
            "dependent_services": {"type": "array", "items": {"type": "string"}, "minItems": 1, "maxItems": 100,
                                   "description": "Services that depend on the affected resource"},
            "downstream_consumers": {"type": "number", "minimum": 0, "description": "Number of downstream consumers"},
            "data_volume": {"type": "string", "minLength": 1, "maxLength": 200,
                            "description": "Estimated data volume affected (e.g., '50GB', '1M records')"},
        }),
    )),
)

ROLLBACK = OperationDescriptor(
    name="aci_generate_rollback",
    title="Generate Rollback Plan",
    description=(
        "Generate a step-by-step rollback plan for a proposed action. Includes commands, expected durations, "
        "prerequisites, and warnings. Use before approving high-risk operations to ensure reversibility. "
        "Returns structured rollback plan. No side effects -- generates plan document only."
    ),
    shape=InputShape((
        str_field("action", "The action to generate a rollback plan for", required=True, minLength=1, maxLength=5000),
        str_field("environment", "Target environment for environment-specific rollback steps",
                  default="development", enum=ENVIRONMENTS),
        object_field("context", "State context for accurate rollback planning", properties={
            "current_state": {"type": "string", "minLength": 1, "maxLength": 5000,
                              "description": "Description of current state before action"},
            "target_state": {"type": "string", "minLength": 1, "maxLength": 5000,
                             "description": "Description of intended state after action"},
        }),
    )),
)

HEALTH = OperationDescriptor(
    name="aci_governance_health",
    title="Governance Health Metrics",
    description=(
        "Get aggregate governance health metrics for the organization. Use for governance dashboards, "
        "compliance reporting, and calibration monitoring. Returns classification distribution, calibration "
        "accuracy, false positive/negative rates, and overall health score. No side effects -- read-only "
        "metrics query."
    ),
    shape=InputShape((
        str_field("time_range", "Time range for aggregated metrics", default="30d",
                  enum=["7d", "30d", "90d", "365d"]),
        str_field("domain", "Filter metrics to a specific governance domain", enum=DOMAINS),
    )),
)


# ─────────────────────────────────────────────────────────────────────────────
# Formatters
# ─────────────────────────────────────────────────────────────────────────────

_DECISION_ICONS = {"APPROVE": CHECK, "ESCALATE": WARN, "BLOCK": CROSS}
_COMPLIANCE_ICONS = {"PASS": CHECK, "WARN": WARN}


def _decision(classification: str) -> str:
    return f"{_DECISION_ICONS.get(classification, YELLOW)} {classification}"


def _processed(r: JsonDict) -> str:
    return f"---\n*Processed in {r['metadata']['processing_time_ms']}ms*"


def _done(out: list[str]) -> str:
    return "\n".join(out) + ACI_FOOTER


@remote(CLASSIFY, "/aci/classify")
def classify(r: JsonDict) -> str:
    meta = r["metadata"]
    out = [
        "# ACI Decision Classification\n",
        f"**Decision ID:** `{r['decision_id']}`",
        f"**Classification:** {_decision(r['classification'])}",
        f"**Confidence:** {level_icon(r['confidence'])} {percent(r['confidence'])}%",
        f"**Requires Human Approval:** {yes_no(r['requires_human_approval'])}\n",
        "## Reasoning\n",
        r["reasoning"] + "\n",
    ]
    if r["domain_scores"]:
        out += ["## Domain Scores\n", "| Domain | Score |", "|--------|-------|"]
        out += [f"| {domain} | {score:.2f} |" for domain, score in r["domain_scores"].items()]
        out.append("")
    if r["rule_matches"]:
        out += ["## Rule Matches\n", *(f"- `{rule}`" for rule in r["rule_matches"]), ""]
    out += [
        f"**Pipeline:** {' -> '.join(meta['pipeline_stages'])}",
        f"**LLM Invoked:** {yes_no(meta['llm_invoked'])}\n",
        _processed(r),
    ]
    return _done(out)


@remote(FINANCIAL_GATE, "/aci/financial-gate")
def financial_gate(r: JsonDict) -> str:
    cost, impact = r["estimated_cost"], r["budget_impact"]
    out = [
        "# ACI Financial Impact Gate\n",
        f"**Gate Result:** {_decision(r['gate_result'])}\n",
        "## Estimated Cost\n",
        f"- One-time: {money(cost['one_time'])}",
        f"- Hourly: {money(cost['hourly'])}",
        f"- Monthly: {money(cost['monthly'])}",
        f"- Annual: {money(cost['annual'])}\n",
        "## Budget Impact\n",
        f"- Percent of remaining budget: {impact['percent_of_remaining']}%",
    ]
    if impact["exceeds_budget"]:
        out.append(f"- {CROSS} Exceeds budget by {money(impact['overage_amount'])}")
    else:
        out.append(f"- {CHECK} Within budget")
    out += ["", "## Reasoning\n", r["reasoning"] + "\n"]
    if r["alternatives"]:
        out += ["## Alternatives\n", *(f"- {alt}" for alt in r["alternatives"]), ""]
    out.append(_processed(r))
    return _done(out)


@remote(COMPLIANCE, "/aci/compliance")
def compliance(r: JsonDict) -> str:
    out = [
        "# ACI Compliance Check\n",
        f"**Result:** {_COMPLIANCE_ICONS.get(r['compliance_result'], CROSS)} {r['compliance_result']}",
        f"**Frameworks Evaluated:** {', '.join(f.upper() for f in r['frameworks_evaluated'])}\n",
    ]
    if r["violations"]:
        out.append("## Violations\n")
        for v in r["violations"]:
            out += [
                f"### {SEVERITY_ICONS.get(v['severity'], YELLOW)} {v['framework'].upper()} {v['control']}",
                f"- **Requirement:** {v['requirement']}",
                f"- **Severity:** {v['severity']}",
                f"- **Remediation:** {v['remediation']}\n",
            ]
    if r["warnings"]:
        out.append("## Warnings\n")
        out += [f"- {WARN} **{w['framework'].upper()} {w['control']}** ({w['requirement']}): {w['note']}"
                for w in r["warnings"]]
        out.append("")
    if r["passed"]:
        out.append("## Passed Controls\n")
        out += [f"- {CHECK} **{p['framework'].upper()} {p['control']}**: {p['requirement']}" for p in r["passed"]]
        out.append("")
    out.append(_processed(r))
    return _done(out)


@remote(ROUTE_DOMAIN, "/aci/route")
def route_domain(r: JsonDict) -> str:
    flags = r["governance_flags"]
    out = [
        "# ACI Domain Routing\n",
        f"**Primary Domain:** {r['primary_domain']}",
        f"**Confidence:** {level_icon(r['confidence'])} {percent(r['confidence'])}%",
    ]
    if r["secondary_domains"]:
        out.append(f"**Secondary Domains:** {', '.join(r['secondary_domains'])}")
    out.append("")
    if r["recommended_agents"]:
        out += ["## Recommended Agents\n", "| Agent | Domain | Score |", "|-------|--------|-------|"]
        out += [f"| `{a['agent_id']}` | {a['domain']} | {percent(a['score'])}% |" for a in r["recommended_agents"]]
        out.append("")
    out += [
        "## Governance Flags\n",
        f"- Parallel review required: {yes_no(flags['requires_parallel_review'])}",
        f"- Minimum reviewers: {flags['minimum_reviewers']}",
        f"- Escalation path: `{flags['escalation_path']}`\n",
        _processed(r),
    ]
    return _done(out)


@remote(PARALLEL_REVIEW, "/aci/parallel-review")
def parallel_review(r: JsonDict) -> str:
    criteria = r["completion_criteria"]
    out = [
        "# ACI Parallel Review\n",
        f"**Review Session ID:** `{r['review_session_id']}`",
        f"**Status:** {r['status']}",
        f"**Reviewers Dispatched:** {r['reviewers_dispatched']}",
        f"**Timeout At:** {r['timeout_at']}\n",
        "## Reviewers\n",
        "| Domain | Status | Task ID |",
        "|--------|--------|---------|",
        *(f"| {rv['domain']} | {rv['status']} | `{rv['task_id']}` |" for rv in r["reviewers"]),
        "",
        "## Completion Criteria\n",
        f"- Require unanimity: {yes_no(criteria['require_unanimity'])}",
        f"- Minimum approvals: {criteria['minimum_approvals']}",
    ]
    if "auto_escalate_on_timeout" in criteria:
        out.append(f"- Auto-escalate on timeout: {yes_no(criteria['auto_escalate_on_timeout'])}")
    out += [
        "",
        "> Use `aci_synthesize_reviews` with this session ID once reviewers have responded.\n",
        _processed(r),
    ]
    return _done(out)


@remote(SYNTHESIZE, "/aci/synthesize")
def synthesize(r: JsonDict) -> str:
    confidence = r["synthesized_confidence"]
    out = [
        "# ACI Review Synthesis\n",
        f"**Review Session ID:** `{r['review_session_id']}`",
        f"**Decision:** {_decision(r['synthesized_classification'])}",
        f"**Confidence:** {level_icon(confidence)} {percent(confidence)}%",
        f"**Consensus Reached:** {yes_no(r['consensus_reached'])}\n",
        "## Reasoning\n",
        r["synthesized_reasoning"] + "\n",
    ]
    if r["reviewer_summary"]:
        out += ["## Reviewer Summary\n", "| Domain | Decision | Confidence |", "|--------|----------|------------|"]
        out += [f"| {s['domain']} | {_decision(s['classification'])} | {percent(s['confidence'])}% |"
                for s in r["reviewer_summary"]]
        out.append("")
    if r["blocking_domains"]:
        out += ["## Blocking Domains\n", *(f"- {CROSS} {d}" for d in r["blocking_domains"]), ""]
    if r["action_items"]:
        out += ["## Action Items\n", *(f"{i}. {item}" for i, item in enumerate(r["action_items"], 1)), ""]
    out.append(_processed(r))
    return _done(out)


@remote(LOG_DECISION, "/aci/decision-log")
def log_decision(r: JsonDict) -> str:
    out = [
        "# ACI Decision Logged\n",
        f"**Decision ID:** `{r['decision_id']}`",
        f"**Status:** {r['status']}",
        f"**Created At:** {r['created_at']}\n",
        "> Decision recorded in the append-only audit log. Reference the decision ID when recording its outcome "
        "with `aci_record_outcome`.\n",
        _processed(r),
    ]
    return _done(out)


@remote(RECALL, "/aci/recall")
def recall(r: JsonDict) -> str:
    out = [
        "# ACI Decision Precedents\n",
        f"**Total Matches:** {r['total_matches']}",
        f"**Returned:** {r['returned']}\n",
    ]
    if not r["precedents"]:
        out.append("No similar decisions found. This action has no recorded precedent.\n")
    for p in r["precedents"]:
        out += [
            f"### `{p['decision_id']}` ({percent(p['similarity_score'])}% match)",
            f"- **Action:** {p['action']}",
            f"- **Classification:** {_decision(p['classification'])} ({percent(p['confidence'])}% confidence)",
            f"- **Reasoning:** {p['reasoning']}",
            f"- **Outcome:** {p.get('outcome') or 'Not recorded'}",
            f"- **Decided At:** {p['created_at']}\n",
        ]
    out.append(_processed(r))
    return _done(out)


@remote(RECORD_OUTCOME, "/aci/calibrate")
def record_outcome(r: JsonDict) -> str:
    out = [
        "# ACI Outcome Recorded\n",
        f"**Decision ID:** `{r['decision_id']}`",
        f"**Outcome Recorded:** {yes_no(r['outcome_recorded'])}",
        f"**Calibration Updated:** {yes_no(r['calibration_updated'])}\n",
    ]
    if delta := r.get("calibration_delta"):
        out += [
            "## Calibration Impact\n",
            f"- Domain: {delta['domain']}",
            f"- Confidence adjustment: {signed(delta['previous_confidence_adjustment'])} -> "
            f"{signed(delta['new_confidence_adjustment'])}",
            f"- False positive rate change: {signed(delta['false_positive_rate_change'])}",
            f"- Sample size: {delta['sample_size']}\n",
        ]
    out.append(_processed(r))
    return _done(out)


@remote(BLAST_RADIUS, "/aci/blast-radius")
def blast_radius(r: JsonDict) -> str:
    b = r["blast_radius"]
    out = [
        "# ACI Blast Radius Estimate\n",
        f"**Scope:** {SEVERITY_ICONS.get(b['scope'], YELLOW)} {b['scope']}",
        f"**Risk Score:** {r['risk_score']}/100",
        f"**Reversibility:** {r['reversibility']}\n",
        "## Impact\n",
        f"- Affected systems: {b['affected_systems']}",
        f"- Affected users: {b['affected_users']:,}",
        f"- Affected data records: {b['affected_data_records']:,}",
        f"- Cascade depth: {b['cascade_depth']}",
        f"- Estimated downtime: {b['estimated_downtime_minutes']} minutes",
        f"- Estimated recovery: {b['estimated_recovery_hours']} hours\n",
    ]
    if r["impact_chain"]:
        out += ["## Impact Chain\n", "| System | Impact | Severity |", "|--------|--------|----------|"]
        out += [f"| {link['system']} | {link['impact']} | {SEVERITY_ICONS.get(link['severity'], YELLOW)} "
                f"{link['severity']} |" for link in r["impact_chain"]]
        out.append("")
    out += ["## Recommendation\n", r["recommendation"] + "\n", _processed(r)]
    return _done(out)


@remote(ROLLBACK, "/aci/rollback")
def rollback(r: JsonDict) -> str:
    plan = r["rollback_plan"]
    out = [
        "# ACI Rollback Plan\n",
        f"**Feasibility:** {plan['feasibility']}",
        f"**Estimated Rollback Time:** {plan['estimated_rollback_time_minutes']} minutes",
        f"**Data Loss Risk:** {plan['data_loss_risk']}\n",
    ]
    if plan["pre_requisites"]:
        out += ["## Pre-Requisites\n", *(f"- {p}" for p in plan["pre_requisites"]), ""]
    if plan["steps"]:
        out.append("## Steps\n")
        for step in plan["steps"]:
            out.append(f"### Step {step['step']}: {step['action']}")
            if step.get("command"):
                out.append(f"```bash\n{step['command']}\n```")
            out.append(f"**Expected Duration:** {step['expected_duration_minutes']} minutes\n")
    if plan["warnings"]:
        out += ["## Warnings\n", *(f"- {WARN} {w}" for w in plan["warnings"]), ""]
    out.append(_processed(r))
    return _done(out)


@remote(HEALTH, "/aci/health")
def health(r: JsonDict) -> str:
    m, cal = r["metrics"], r["calibration_status"]
    out = [
        "# ACI Governance Health\n",
        f"**Organization:** {r['org_id']}",
        f"**Time Range:** {r['time_range']}",
        f"**Health Score:** {level_icon(r['health_score'], 80, 60)} {r['health_score']}/100\n",
        "## Metrics\n",
        f"- Total decisions: {m['total_decisions']}",
        f"- Average confidence: {percent(m['average_confidence'])}%",
        f"- Average processing time: {m['average_processing_time_ms']}ms",
        f"- Decisions with outcomes: {m['decisions_with_outcomes']}",
        f"- False positive rate: {percent(m['false_positive_rate'])}%",
        f"- False negative rate: {percent(m['false_negative_rate'])}%\n",
        "## Classification Distribution\n",
        *(f"- {_decision(label)}: {count}" for label, count in m["classification_distribution"].items()),
        "",
        "## Calibration Status\n",
        f"- Domains calibrated: {cal['domains_calibrated']}",
        f"- Last calibration: {cal.get('last_calibration') or 'Never'}",
        *(f"- {d['domain']}: {signed(d['confidence_adjustment'])} ({d['sample_size']} samples)"
          for d in cal["domains"]),
        "",
        "## Rules\n",
        f"- Active rules: {r['active_rules']}",
        f"- Rule match rate: {percent(r['rule_match_rate'])}%\n",
        _processed(r),
    ]
    return _done(out)


OPERATIONS = (
    classify,
    financial_gate,
    compliance,
    route_domain,
    parallel_review,
    synthesize,
    log_decision,
    recall,
    record_outcome,
    blast_radius,
    rollback,
    health,
)
