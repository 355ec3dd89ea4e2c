"""Infrastructure & cloud operations: template generation, OAuth, DynamoDB, data lakes."""

from __future__ import annotations

import orjson

from s2t_accelerators.foundation.errors import JsonDict
from s2t_accelerators.foundation.registry import OperationDescriptor
from s2t_accelerators.foundation.schema import InputShape, array_field, bool_field, object_field, str_field

from .base import CHECK, CROSS, GREEN, YELLOW, json_block, remote, yes_no

CLOUDFORMATION = OperationDescriptor(
    name="s2t_generate_cloudformation",
    title="Generate CloudFormation Template",
    description=(
        "Generate production-ready SAM or CloudFormation templates from natural language descriptions. Creates "
        "Lambda functions, API Gateway, DynamoDB tables, and S3 buckets with security best practices. Use when "
        "scaffolding new AWS infrastructure. Returns YAML template with resource definitions. No side effects -- "
        "generates template text only."
    ),
    shape=InputShape((
        str_field("description", "Natural language description of the infrastructure needed",
                  required=True, minLength=10, maxLength=5000),
        str_field("format", "Output template format: SAM (serverless) or plain CloudFormation",
                  default="sam", enum=["sam", "cloudformation"]),
        bool_field("include_parameters", "Include CloudFormation Parameters section for configurable values",
                   default=True),
        bool_field("include_outputs", "Include CloudFormation Outputs section for stack exports", default=True),
    )),
)

OAUTH = OperationDescriptor(
    name="s2t_validate_oauth",
    title="Validate OAuth Configuration",
    description=(
        "Validate an OAuth 2.0 configuration and detect common misconfigurations before deployment. Supports "
        "Google, Microsoft, GitHub, QuickBooks, and generic OpenID Connect providers. Use when setting up or "
        "troubleshooting OAuth integrations. Returns validation errors, warnings, and provider-specific "
        "recommendations. No side effects -- read-only validation."
    ),
    shape=InputShape((
        str_field("provider", "OAuth provider to validate against", required=True,
                  enum=["google", "microsoft", "github", "quickbooks", "generic"]),
        str_field("client_id", "OAuth client ID from the provider's developer console", required=True, minLength=1),
        array_field("redirect_uris", "Authorized redirect URIs registered with the provider",
                    {"type": "string", "minLength": 1}, required=True, minItems=1),
        array_field("scopes", "Requested OAuth scopes (e.g., 'openid', 'email', 'profile')",
                    {"type": "string", "minLength": 1}, required=True, minItems=1),
        str_field("token_endpoint", "Custom token endpoint URL (required for generic provider)",
                  minLength=1, maxLength=2048),
        str_field("authorization_endpoint", "Custom authorization endpoint URL (required for generic provider)",
                  minLength=1, maxLength=2048),
    )),
)

DYNAMODB = OperationDescriptor(
    name="s2t_generate_dynamodb_design",
    title="Design DynamoDB Table",
    description=(
        "Generate optimal DynamoDB single-table designs from entity and access pattern descriptions. Use when "
        "designing NoSQL data models or migrating from relational databases. Returns key schema, GSI "
        "recommendations, entity mappings, and deployable CloudFormation template. No side effects -- generates "
        "design document only."
    ),
    shape=InputShape((
        array_field("entities", "Entities to model in the single-table design", {
            "type": "object",
            "properties": {
                "name": {"type": "string", "minLength": 1, "description": "Entity name (e.g., User, Order)"},
                "description": {"type": "string", "maxLength": 500, "description": "What this entity represents"},
                "attributes": {"type": "array", "items": {"type": "string"}, "minItems": 1, "maxItems": 100,
                               "description": "Key attributes of the entity"},
            },
            "required": ["name"],
            "additionalProperties": False,
        }, required=True, minItems=1, maxItems=50),
        array_field("access_patterns", "Access patterns to support (e.g., 'Get user by ID', 'List orders by user')",
                    {"type": "string", "minLength": 1}, required=True, minItems=1, maxItems=100),
        object_field("options", "Table naming and billing options", properties={
            "table_name": {"type": "string", "minLength": 1, "description": "Desired DynamoDB table name"},
            "billing_mode": {"type": "string", "enum": ["PAY_PER_REQUEST", "PROVISIONED"],
                             "description": "DynamoDB billing mode"},
        }),
    )),
)

DATA_LAKE = OperationDescriptor(
    name="s2t_check_data_lake_readiness",
    title="Assess Data Lake Readiness",
    description=(
        "Assess data lake architecture readiness for production deployment. Evaluates five dimensions: S3 "
        "storage configuration, Glue catalog setup, security controls, query performance, and operational "
        "tooling. Use before promoting a data lake to production. Returns readiness score (0-100) and "
        "prioritized recommendations. No side effects -- read-only assessment."
    ),
    shape=InputShape((
        object_field("storage", "S3 storage configuration flags (e.g., versioning, lifecycle, encryption, "
                     "replication, partitioning)", open_ended=True),
        object_field("catalog", "Glue catalog configuration flags (e.g., databases, crawlers, schemas, classifiers)",
                     open_ended=True),
        object_field("security", "Security configuration flags (e.g., IAM, encryption, VPC, audit logging, "
                     "lake formation)", open_ended=True),
        object_field("performance", "Performance configuration flags (e.g., partitioning, compression, caching, "
                     "query engine)", open_ended=True),
        object_field("operations", "Operations configuration flags (e.g., monitoring, alerting, backup, "
                     "disaster recovery)", open_ended=True),
    )),
)


@remote(CLOUDFORMATION, "/generate/cloudformation")
def cloudformation(r: JsonDict) -> str:
    meta = r["metadata"]
    out = [
        f"# Generated {meta['format'].upper()} Template\n",
        f"Resources created: {meta['resource_count']}",
        *(f"- {res['logical_id']} ({res['type']})" for res in meta["resources"]),
        "",
    ]
    if r["warnings"]:
        out.append("## Warnings")
        for w in r["warnings"]:
            out.append(f"- {w['message']}\n  Recommendation: {w['recommendation']}")
        out.append("")
    out.append(f"## Template\n\n```yaml\n{r['template']}\n```")
    return "\n".join(out) + "\n"


@remote(OAUTH, "/validate/oauth")
def oauth(r: JsonDict) -> str:
    validation = r["validation"]
    out = [
        f"# OAuth Configuration Validation: {r['provider']}\n",
        f"**Status:** {'VALID' if r['valid'] else 'INVALID'}\n",
    ]
    for title, items in (("Errors", validation["errors"]), ("Warnings", validation["warnings"])):
        if items:
            out += [f"## {title}", *(f"- [{i['code']}] {i['message']}" for i in items), ""]
    if r["recommendations"]:
        out.append("## Recommendations")
        out += [f"- **{rec['field']}:** `{rec['value']}`\n  {rec['reason']}" for rec in r["recommendations"]]
        out.append("")
    config = r["configuration"]
    out += [
        "## Endpoints",
        f"- Authorization: {config['authorization_endpoint']}",
        f"- Token: {config['token_endpoint']}",
    ]
    return "\n".join(out) + "\n"


def _compact(value: object) -> str:
    return orjson.dumps(value).decode()


@remote(DYNAMODB, "/generate/dynamodb-design")
def dynamodb_design(r: JsonDict) -> str:
    design, summary = r["design"], r["summary"]
    out = [
        "# DynamoDB Single-Table Design\n",
        f"**Table Name:** {design['table_name']}",
        f"**Entities:** {summary['entities']}",
        f"**Access Patterns:** {summary['access_patterns']}",
        f"**GSIs Required:** {summary['gsis_required']}\n",
        "## Key Schema",
        json_block(design["key_schema"]) + "\n",
    ]
    if gsis := design.get("gsis"):
        out.append("## Global Secondary Indexes")
        for gsi in gsis:
            line = f"- **{gsi['name']}**: PK={_compact(gsi['partition_key'])}"
            if gsi.get("sort_key"):
                line += f", SK={_compact(gsi['sort_key'])}"
            out.append(line)
        out.append("")
    out += [
        "## Entity Mappings", json_block(design["entity_mappings"]) + "\n",
        "## Access Pattern Mappings", json_block(design["access_pattern_mappings"]) + "\n",
        "## CloudFormation Template", json_block(r["cloudformation_template"]),
    ]
    return "\n".join(out) + "\n"


_READINESS_ICONS = {"READY": CHECK, "MOSTLY_READY": GREEN, "PARTIALLY_READY": YELLOW}


@remote(DATA_LAKE, "/check/data-lake-readiness")
def data_lake_readiness(r: JsonDict) -> str:
    s = r["summary"]
    out = [
        "# Data Lake Readiness Assessment\n",
        f"**Status:** {_READINESS_ICONS.get(r['status'], CROSS)} {r['status']}",
        f"**Overall Score:** {r['overall_score']}/100",
        f"**Production Ready:** {yes_no(s['ready_for_production'])}\n",
        "## Summary",
        f"- Categories evaluated: {s['categories_evaluated']}",
        f"- Total checks: {s['total_checks']}",
        f"- Passed: {s['passed']}",
        f"- Failed: {s['failed']}",
        f"- Warnings: {s['warnings']}\n",
        "## Category Scores\n",
    ]
    for category, scores in r["category_scores"].items():
        icon = CHECK if scores["score"] >= 80 else YELLOW if scores["score"] >= 60 else CROSS
        out.append(f"- {icon} **{category.upper()}:** {scores['score']}/100 "
                   f"({scores['passed']} passed, {scores['failed']} failed)")
    out.append("")
    if r["recommendations"]:
        out.append("## Recommendations\n")
        for rec in r["recommendations"]:
            out.append(f"### P{rec['priority']}: {rec['title']}")
            out += [f"- **{item['check']}:** {item['recommendation']}" for item in rec["items"]]
            out.append("")
    return "\n".join(out) + "\n"


OPERATIONS = (cloudformation, oauth, dynamodb_design, data_lake_readiness)
