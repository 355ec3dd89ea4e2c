"""Agent orchestration primitives.

Risk classification, task routing, issue prediction, auto-recovery,
resilience configuration, agent memory and task submission. Each report
closes with a footer naming the product that ships the full engine.
"""

from __future__ import annotations

from s2t_accelerators.foundation.errors import JsonDict
from s2t_accelerators.foundation.registry import MUTATING, MUTATING_IDEMPOTENT, OperationDescriptor
from s2t_accelerators.foundation.schema import (
    FieldKind,
    FieldSpec,
    InputShape,
    bool_field,
    int_field,
    object_field,
    str_field,
)

from .base import (
    BOOK,
    CHECK,
    COORDINATION_SUITE,
    CROSS,
    GOVERNANCE_KIT,
    GREEN,
    ORANGE,
    RED,
    RESILIENCE_ENGINE,
    SAVE,
    SEARCH,
    SEVERITY_ICONS,
    TRASH,
    YELLOW,
    json_block,
    level_icon,
    percent,
    product_footer,
    remote,
    summary_counts,
    yes_no,
)

RISK = OperationDescriptor(
    name="s2t_classify_action_risk",
    title="Classify Action Risk",
    description=(
        "Classify an action's risk level as LOW, MEDIUM, HIGH, or CRITICAL based on blast radius, reversibility, "
        "and target environment. Use for AI agent safety guardrails and graduated autonomy decisions. Returns "
        "risk classification with scoring breakdown. No side effects -- read-only classification."
    ),
    shape=InputShape((
        str_field("action", "The action or command to classify (e.g., 'rm -rf /tmp', 'aws s3 sync', "
                  "'DROP TABLE users')", required=True, minLength=1, maxLength=2000),
        str_field("environment", "Target environment where the action will execute", default="local",
                  enum=["local", "development", "staging", "production"]),
        str_field("context", "Additional context about the action purpose or surrounding workflow",
                  default="development", maxLength=2000),
    )),
)

ROUTE = OperationDescriptor(
    name="s2t_route_task_to_agent",
    title="Route Task to Agent",
    description=(
        "Route a task to the optimal AI agent using semantic similarity matching against 54 specialized agent "
        "domains. Use when delegating work across a multi-agent system. Returns ranked agent candidates with "
        "confidence scores and capability summaries. No side effects -- read-only routing decision."
    ),
    shape=InputShape((
        str_field("task_description", "Natural language description of the task to route to an agent",
                  required=True, minLength=5, maxLength=5000),
        int_field("top_k", "Number of candidate agents to return, ranked by match score",
                  default=5, minimum=1, maximum=20),
        bool_field("include_capabilities", "Include detailed capability descriptions for each candidate agent",
                   default=True),
    )),
)

PREDICT = OperationDescriptor(
    name="s2t_predict_system_issues",
    title="Predict System Issues",
    description=(
        "Predict upcoming system issues by analyzing budget trends, error rates, dependency health, and "
        "certificate expiry. Use for proactive operations monitoring. Returns prioritized predictions with "
        "severity, projected impact dates, and recommended preventive actions. No side effects -- read-only "
        "analysis."
    ),
    shape=InputShape((
        object_field("system_state", "Current system state with budget, error counts, dependency versions, "
                     "certificate dates", open_ended=True),
        int_field("analysis_window_days", "Number of days to project into the future",
                  default=30, minimum=7, maximum=90),
    )),
)

RECOVERY = OperationDescriptor(
    name="s2t_attempt_auto_recovery",
    title="Auto-Recovery Lookup",
    description=(
        "Match an error against known patterns and suggest automated recovery steps. Use when handling errors "
        "programmatically or building self-healing systems. Returns matched patterns with historical success "
        "rates and step-by-step recovery instructions. Side effects only when auto_execute=true (disabled by "
        "default)."
    ),
    shape=InputShape((
        str_field("error_message", "The error message to analyze and match against known patterns",
                  required=True, minLength=1, maxLength=5000),
        str_field("error_source", "Source service or function that generated the error", maxLength=500),
        str_field("stack_trace", "Stack trace for deeper root-cause analysis", maxLength=10000),
        bool_field("auto_execute", "Auto-execute the recovery steps (requires elevated permissions; "
                   "default: false for safety)", default=False),
    )),
    annotations=MUTATING,
)

RESILIENCE = OperationDescriptor(
    name="s2t_execute_with_resilience",
    title="Configure Resilience Pattern",
    description=(
        "Configure resilience patterns (retry with exponential backoff, circuit breaker) for an operation. Use "
        "when protecting critical operations against transient failures. Returns execution configuration with "
        "retry metrics and circuit breaker state. Records resilience configuration as a side effect."
    ),
    shape=InputShape((
        str_field("operation_id", "Unique identifier for the operation to protect with resilience patterns",
                  required=True, minLength=1, maxLength=200),
        int_field("max_retries", "Maximum number of retry attempts before giving up",
                  default=3, minimum=1, maximum=10),
        int_field("base_delay_ms", "Base delay between retries in milliseconds (doubles with exponential backoff)",
                  default=1000, minimum=100, maximum=30000),
        int_field("circuit_breaker_threshold", "Number of consecutive failures before the circuit breaker opens",
                  default=5, minimum=1, maximum=50),
    )),
    annotations=MUTATING_IDEMPOTENT,
)

MEMORY = OperationDescriptor(
    name="s2t_manage_agent_memory",
    title="Manage Agent Memory",
    description=(
        "Store, retrieve, search, or delete persistent agent memory with namespace isolation. Use for "
        "maintaining agent state across sessions, caching intermediate results, or sharing context between "
        "agents. Side effects depend on operation: store/delete modify state; retrieve/search are read-only."
    ),
    shape=InputShape((
        str_field("operation", "Memory operation: store (write), retrieve (read), search (query), delete (remove)",
                  required=True, enum=["store", "retrieve", "search", "delete"]),
        str_field("agent_id", "Agent identifier for memory namespace isolation",
                  required=True, minLength=1, maxLength=200),
        str_field("key", "Memory key (required for store, retrieve, and delete operations)",
                  minLength=1, maxLength=500),
        FieldSpec("value", FieldKind.ANY, "Value to store (required for store operation; accepts any JSON type)"),
        str_field("namespace", "Memory namespace for additional isolation between workflows",
                  default="default", maxLength=200),
        str_field("search_query", "Search query text (required for search operation)", maxLength=1000),
    )),
    annotations=MUTATING,
)

TASK = OperationDescriptor(
    name="s2t_submit_agent_task",
    title="Submit Agent Task",
    description=(
        "Submit a task to the SQS FIFO queue for asynchronous multi-agent execution. Use when delegating work "
        "to background agents or building agent pipelines. Returns task ID and queue position for tracking. "
        "Side effect: enqueues a message to SQS."
    ),
    shape=InputShape((
        str_field("agent_id", "Target agent ID from the agent registry", required=True, minLength=1, maxLength=200),
        str_field("prompt", "Task prompt for the agent to execute", required=True, minLength=1, maxLength=10000),
        str_field("priority", "Task priority level (affects queue ordering)", default="normal",
                  enum=["low", "normal", "high", "critical"]),
        str_field("trace_id", "W3C traceparent header for distributed tracing correlation", maxLength=200),
    )),
    annotations=MUTATING,
)


# ─────────────────────────────────────────────────────────────────────────────
# Formatters
# ─────────────────────────────────────────────────────────────────────────────

_RISK_ICONS = {"LOW": GREEN, "MEDIUM": YELLOW, "HIGH": ORANGE}


@remote(RISK, "/accelerators/risk/classify")
def risk(r: JsonDict) -> str:
    out = [
        "# Action Risk Classification\n",
        f"**Risk Level:** {_RISK_ICONS.get(r['risk_level'], RED)} {r['risk_level']}",
        f"**Score:** {r['score']}/100",
        f"**Auto-Approve:** {yes_no(r['auto_approve'])}\n",
    ]
    if r["factors"]:
        out += [
            "## Risk Factors\n",
            "| Factor | Value | Weight | Contribution |",
            "|--------|-------|--------|--------------|",
            *(f"| {f['name']} | {f['value']} | {f['weight']} | {f['contribution']} |" for f in r["factors"]),
            "",
        ]
    meta = r["metadata"]
    out += [
        "## Recommendation\n",
        r["recommendation"],
        f"\n---\n*Processed in {meta['processing_time_ms']}ms | Model: {meta['model_version']}*",
    ]
    return "\n".join(out) + "\n" + product_footer(GOVERNANCE_KIT)


@remote(ROUTE, "/accelerators/agent/route")
def route(r: JsonDict) -> str:
    best = r["best_match"]
    out = [
        "# Task Routing Result\n",
        f"**Best Match:** {best['name']} ({percent(best['similarity_score'])}%)",
        f"**Agent ID:** `{best['agent_id']}`",
        f"**Domain:** {best['domain']}",
        f"**Confidence:** {level_icon(r['confidence'])} {percent(r['confidence'])}%",
        f"**Routing Method:** {r['routing_method']}\n",
    ]
    if best["capabilities"]:
        out += ["## Best Match Capabilities\n", *(f"- {cap}" for cap in best["capabilities"]), ""]
    if len(r["candidates"]) > 1:
        out += [
            "## All Candidates\n",
            "| Rank | Agent | Domain | Similarity |",
            "|------|-------|--------|------------|",
            *(f"| {i} | {c['name']} | {c['domain']} | {percent(c['similarity_score'])}% |"
              for i, c in enumerate(r["candidates"], 1)),
            "",
        ]
    meta = r["metadata"]
    out.append(f"---\n*Evaluated {meta['agents_evaluated']} agents in {meta['processing_time_ms']}ms*")
    return "\n".join(out) + "\n" + product_footer(COORDINATION_SUITE)


def _health_icon(score: float) -> str:
    return GREEN if score >= 80 else YELLOW if score >= 60 else ORANGE if score >= 40 else RED


@remote(PREDICT, "/accelerators/predict/issues")
def predict(r: JsonDict) -> str:
    s, meta = r["summary"], r["metadata"]
    out = [
        "# System Issue Predictions\n",
        f"**Health Score:** {_health_icon(r['health_score'])} {r['health_score']}/100",
        f"**Analysis Window:** {meta['analysis_window_days']} days",
        f"**Total Predictions:** {s['total_predictions']}\n",
        "## Summary",
        *summary_counts(s),
        "",
    ]
    if r["issues"]:
        out.append("## Predicted Issues\n")
        for issue in r["issues"]:
            out += [
                f"### {SEVERITY_ICONS.get(issue['severity'], GREEN)} {issue['category']}",
                f"- **Severity:** {issue['severity']}",
                f"- **Description:** {issue['description']}",
                f"- **Predicted Date:** {issue['predicted_date']}",
                f"- **Confidence:** {percent(issue['confidence'])}%",
                f"- **Recommended Action:** {issue['recommended_action']}\n",
            ]
    out.append(f"---\n*Processed in {meta['processing_time_ms']}ms*")
    return "\n".join(out) + "\n" + product_footer(RESILIENCE_ENGINE)


@remote(RECOVERY, "/accelerators/recovery/attempt")
def recovery(r: JsonDict) -> str:
    out = [
        "# Auto-Recovery Analysis\n",
        f"**Match:** {CHECK + ' Pattern Found' if r['matched'] else CROSS + ' No Match'}",
        f"**Error Type:** {r['error_type']}",
        f"**Confidence:** {level_icon(r['confidence'])} {percent(r['confidence'])}%",
        f"**Historical Success Rate:** {percent(r['historical_success_rate'])}%",
    ]
    if r.get("pattern_id"):
        out.append(f"**Pattern ID:** `{r['pattern_id']}`")
    out.append("")

    if r["recovery_steps"]:
        out.append("## Recovery Steps\n")
        for step in r["recovery_steps"]:
            out.append(f"### Step {step['step']}: {step['action']}")
            if step.get("command"):
                out.append(f"```bash\n{step['command']}\n```")
            out.append(f"**Expected Outcome:** {step['expected_outcome']}\n")

    meta = r["metadata"]
    out.append(f"---\n*Checked {meta['patterns_checked']} patterns in {meta['processing_time_ms']}ms*")
    return "\n".join(out) + "\n" + product_footer(RESILIENCE_ENGINE)


_BREAKER_ICONS = {"closed": GREEN, "half-open": YELLOW}


@remote(RESILIENCE, "/accelerators/resilience/execute")
def resilience(r: JsonDict) -> str:
    retry = r["metadata"]["retry_config"]
    out = [
        "# Resilience Execution Report\n",
        f"**Status:** {CHECK + ' SUCCESS' if r['success'] else CROSS + ' FAILED'}",
        f"**Attempts:** {r['attempts']}",
        f"**Total Latency:** {r['total_latency_ms']}ms",
        f"**Circuit Breaker:** {_BREAKER_ICONS.get(r['circuit_breaker_state'], RED)} {r['circuit_breaker_state']}",
    ]
    if r.get("last_error"):
        out.append(f"**Last Error:** {r['last_error']}")
    out += [
        "",
        "## Retry Configuration\n",
        f"- Max retries: {retry['max_retries']}",
        f"- Base delay: {retry['base_delay_ms']}ms",
        f"- Max delay: {retry['max_delay_ms']}ms",
    ]
    return "\n".join(out) + "\n" + product_footer(RESILIENCE_ENGINE)


_MEMORY_ICONS = {"store": SAVE, "retrieve": BOOK, "search": SEARCH}


@remote(MEMORY, "/accelerators/agent/memory")
def memory(r: JsonDict) -> str:
    meta = r["metadata"]
    out = [
        "# Agent Memory Operation\n",
        f"**Operation:** {_MEMORY_ICONS.get(r['operation'], TRASH)} {r['operation']}",
        f"**Status:** {CHECK + ' Success' if r['success'] else CROSS + ' Failed'}",
        f"**Namespace:** {r['namespace']}",
        f"**Total Entries:** {r['total_entries']}",
        f"**Storage Used:** {meta['storage_used_bytes']} bytes\n",
    ]
    if r["entries"]:
        out.append("## Entries\n")
        for entry in r["entries"]:
            out += [
                f"### `{entry['key']}`",
                f"- **Namespace:** {entry['namespace']}",
                f"- **Created:** {entry['created_at']}",
                f"- **Updated:** {entry['updated_at']}",
            ]
            if entry.get("ttl"):
                out.append(f"- **TTL:** {entry['ttl']}s")
            out.append(f"- **Value:**\n{json_block(entry.get('value'))}\n")
    out.append(f"---\n*Processed in {meta['processing_time_ms']}ms*")
    return "\n".join(out) + "\n" + product_footer(COORDINATION_SUITE)


@remote(TASK, "/accelerators/agent/task")
def task(r: JsonDict) -> str:
    queued = r["status"] == "queued"
    meta = r["metadata"]
    out = [
        "# Agent Task Submission\n",
        f"**Task ID:** `{r['task_id']}`",
        f"**Agent ID:** `{r['agent_id']}`",
        f"**Status:** {CHECK if queued else CROSS} {r['status'].upper()}",
        f"**Queue Position:** {r['queue_position']}",
        f"**Estimated Wait:** {r['estimated_wait_ms']}ms",
        f"**Queue Depth:** {meta['queue_depth']}\n",
        "> Task has been queued for execution. Use the task ID to check status." if queued
        else "> Task was rejected. Check agent availability and try again.",
        f"\n---\n*Processed in {meta['processing_time_ms']}ms*",
    ]
    return "\n".join(out) + "\n" + product_footer(COORDINATION_SUITE)


OPERATIONS = (risk, route, predict, recovery, resilience, memory, task)
