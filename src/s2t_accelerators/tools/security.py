"""Security & compliance operations: IAM policy, MFA and CLI readiness checks."""

from __future__ import annotations

from s2t_accelerators.foundation.errors import JsonDict
from s2t_accelerators.foundation.registry import OperationDescriptor
from s2t_accelerators.foundation.schema import (
    FieldKind,
    InputShape,
    array_field,
    bool_field,
    object_field,
    str_field,
    union_field,
)

from .base import (
    CHECK,
    CROSS,
    GOVERNANCE_KIT,
    ORANGE,
    RED,
    SEARCH,
    WARN,
    YELLOW,
    code_list,
    product_footer,
    remote,
    summary_counts,
    yes_no,
)

IAM_POLICY = OperationDescriptor(
    name="s2t_validate_iam_policy",
    title="Validate IAM Policy",
    description=(
        "Validate an AWS IAM policy document for security best practices. Detects overly permissive permissions, "
        "dangerous action wildcards, and missing resource scoping. Use when reviewing IAM policies before "
        "deployment or during security audits. Returns security score (0-100) with categorized findings "
        "(CRITICAL/HIGH/MEDIUM/LOW) and least-privilege alternatives. No side effects -- read-only validation."
    ),
    shape=InputShape((
        union_field("policy_document", "The IAM policy document to validate (JSON string or parsed object)",
                    FieldKind.STRING_OR_OBJECT, required=True),
        str_field("resource_type", "Focus validation on a specific AWS resource type for deeper checks",
                  default="general", enum=["s3", "dynamodb", "lambda", "sns", "sqs", "iam", "general"]),
        bool_field("suggest_improvements", "Include least-privilege permission alternatives in the response",
                   default=True),
    )),
)

_MFA_TYPE = {"type": "string", "enum": ["virtual", "hardware"]}

MFA_COMPLIANCE = OperationDescriptor(
    name="s2t_validate_mfa_compliance",
    title="Check MFA Compliance",
    description=(
        "Validate IAM users and root account for MFA compliance. Checks console access, programmatic access, "
        "hardware vs virtual MFA, and policy-level MFA conditions. Use during security audits or compliance "
        "reviews (SOC2, CIS Benchmarks). Returns compliance score and user-level remediation recommendations. "
        "No side effects -- read-only check."
    ),
    shape=InputShape((
        array_field("users", "List of IAM users to check for MFA compliance", {
            "type": "object",
            "properties": {
                "username": {"type": "string", "minLength": 1, "description": "IAM username"},
                "has_console_access": {"type": "boolean", "description": "Whether user has AWS Console access"},
                "has_access_keys": {"type": "boolean", "description": "Whether user has active access keys"},
                "mfa_enabled": {"type": "boolean", "description": "Whether MFA is currently enabled"},
                "mfa_type": {**_MFA_TYPE, "description": "Type of MFA device"},
                "is_privileged": {"type": "boolean", "description": "Whether user has elevated privileges"},
                "is_admin": {"type": "boolean", "description": "Whether user has admin-level access"},
            },
            "additionalProperties": False,
        }, minItems=1, maxItems=500),
        object_field("root_account", "Root account MFA configuration", properties={
            "mfa_enabled": {"type": "boolean", "description": "Whether root account has MFA enabled"},
            "mfa_type": {**_MFA_TYPE, "description": "Root MFA device type"},
        }),
        array_field("policies", "IAM policies to check for MFA condition requirements", {
            "type": "object",
            "properties": {
                "name": {"type": "string", "minLength": 1, "description": "Policy name"},
                "document": {"type": ["string", "object"], "description": "Policy document (JSON string or object)"},
            },
            "additionalProperties": False,
        }, minItems=1, maxItems=200),
    )),
)

CLI_READINESS = OperationDescriptor(
    name="s2t_validate_cli_readiness",
    title="Validate CLI Readiness",
    description=(
        "Validate CLI tool availability and API key health on the current system. Use before running agent "
        "workflows that depend on external CLIs (codex, claude, git). Returns readiness status per tool with "
        "degradation mode recommendations if tools are missing. No side effects -- read-only system check."
    ),
    shape=InputShape((
        array_field("cli_tools", "CLI tools to validate (e.g., ['codex', 'claude', 'git', 'aws'])",
                    {"type": "string", "minLength": 1}, default=["codex"], minItems=1, maxItems=20),
        bool_field("validate_api_keys", "Also validate API key health for tools that require authentication",
                   default=True),
    )),
)


# ─────────────────────────────────────────────────────────────────────────────
# Formatters
# ─────────────────────────────────────────────────────────────────────────────

_IAM_STATUS = {"PASS": CHECK, "WARN": WARN, "FAIL": CROSS}
_IAM_GROUPS = (("CRITICAL", f"{RED} Critical"), ("HIGH", f"{ORANGE} High"), ("MEDIUM", f"{YELLOW} Medium"))


def _iam_finding(f: JsonDict, *, with_resource: bool) -> list[str]:
    lines = [f"- **[{f['code']}]** {f['message']}"]
    if f.get("action"):
        lines.append(f"  - Action: `{f['action']}`")
    if with_resource and f.get("resource"):
        lines.append(f"  - Resource: `{f['resource']}`")
    lines.append(f"  - Fix: {f['recommendation']}")
    return lines


@remote(IAM_POLICY, "/validate/iam-policy")
def iam_policy(r: JsonDict) -> str:
    s = r["summary"]
    out = [
        "# IAM Policy Validation Report\n",
        f"**Status:** {_IAM_STATUS.get(r['status'], SEARCH)} {r['status']}",
        f"**Security Score:** {r['score']}/100\n",
        "## Summary",
        f"- Statements analyzed: {s['statements_analyzed']}",
        f"- Total findings: {s['total_findings']}",
        *summary_counts(s),
        "",
    ]

    if r["findings"]:
        out.append("## Findings\n")
        for severity, heading in _IAM_GROUPS:
            group = [f for f in r["findings"] if f["severity"] == severity]
            if group:
                out.append(f"### {heading}")
                for f in group:
                    out += _iam_finding(f, with_resource=severity != "MEDIUM")
                out.append("")

    if r["suggestions"]:
        out.append("## Recommendations\n")
        for i, sug in enumerate(r["suggestions"], 1):
            out += [f"{i}. **{sug['title']}**", f"   {sug['description']}"]
            if sug.get("actions"):
                out.append(f"   Actions: {code_list(sug['actions'], 5)}")
        out.append("")

    if alternatives := r.get("scoped_alternatives"):
        out.append("## Scoped Alternatives\n")
        out.append("Replace wildcard permissions with these scoped alternatives:\n")
        for wildcard, alt in alternatives.items():
            out += [
                f"### `{wildcard}`",
                f"- **Read-only:** {code_list(alt['read'], 4)}",
                f"- **Write:** {code_list(alt['write'], 4)}",
                f"- **Admin:** {code_list(alt['admin'], 3)}",
                "",
            ]

    meta = r["metadata"]
    out.append(f"---\n*Processed in {meta['processing_time_ms']}ms | Policy version: {meta['policy_version']}*")
    return "\n".join(out) + "\n"


_MFA_STATUS = {"COMPLIANT": CHECK, "AT_RISK": WARN, "REVIEW_REQUIRED": SEARCH}
_MFA_FINDING_ICONS = {"CRITICAL": RED, "HIGH": ORANGE}


@remote(MFA_COMPLIANCE, "/validate/mfa-compliance")
def mfa_compliance(r: JsonDict) -> str:
    s = r["summary"]
    out = [
        "# MFA Compliance Report\n",
        f"**Status:** {_MFA_STATUS.get(r['status'], CROSS)} {r['status']}",
        f"**Compliance Score:** {r['compliance_score']}/100\n",
        "## Summary",
        f"- Users checked: {s['users_checked']}",
        f"- Policies checked: {s['policies_checked']}",
        f"- Root account checked: {yes_no(s['root_checked'])}",
        f"- Total findings: {s['total_findings']}",
        *summary_counts(s, include_low=False),
        "",
    ]

    if r["findings"]:
        out.append("## Findings\n")
        for f in r["findings"]:
            out += [
                f"{_MFA_FINDING_ICONS.get(f['severity'], YELLOW)} **[{f['rule_id']}]** {f['finding']}",
                f"   - Fix: {f['recommendation']}",
            ]
        out.append("")

    if r["recommendations"]:
        out.append("## Recommendations\n")
        for rec in r["recommendations"]:
            out += [f"### {rec['title']}", rec["description"]]
            if rec.get("actions"):
                out.append("Steps:")
                out += [f"{i}. {a}" for i, a in enumerate(rec["actions"], 1)]
            out.append("")

    return "\n".join(out) + "\n"


_CHECK_ICONS = {"pass": CHECK, "warn": WARN}


@remote(CLI_READINESS, "/accelerators/cli/validate")
def cli_readiness(r: JsonDict) -> str:
    out = [
        "# CLI Readiness Validation\n",
        f"**Status:** {CHECK if r['ready'] else CROSS} {'READY' if r['ready'] else 'NOT READY'}",
        f"**Total Checks:** {r['metadata']['total_checks']}",
    ]
    if r.get("degradation_mode"):
        out.append(f"**Degradation Mode:** {WARN} {r['degradation_mode']}")
    out.append("")

    if r["checks"]:
        out += [
            "## Check Results\n",
            "| Check | Status | Message | Version |",
            "|-------|--------|---------|----------|",
        ]
        for c in r["checks"]:
            icon = _CHECK_ICONS.get(c["status"], CROSS)
            out.append(f"| {c['name']} | {icon} {c['status'].upper()} | {c['message']} | {c.get('version') or '-'} |")
        out.append("")

    if r["recommendations"]:
        out.append("## Recommendations\n")
        out += [f"{i}. {rec}" for i, rec in enumerate(r["recommendations"], 1)]
        out.append("")

    out.append(f"---\n*Processed in {r['metadata']['processing_time_ms']}ms*")
    return "\n".join(out) + "\n" + product_footer(GOVERNANCE_KIT)


OPERATIONS = (iam_policy, mfa_compliance, cli_readiness)
