"""Platform operations: accelerator catalog and account usage."""

from __future__ import annotations

from s2t_accelerators.foundation.errors import JsonDict
from s2t_accelerators.foundation.registry import OperationDescriptor
from s2t_accelerators.foundation.schema import EMPTY_SHAPE

from .base import remote

CATALOG = OperationDescriptor(
    name="s2t_catalog",
    title="List Accelerators",
    description=(
        "List all available S2T accelerators with their capabilities, pricing tiers, and current usage "
        "information. Use to discover available tools, check tier access, or review pricing. Returns the full "
        "accelerator catalog with metadata. No side effects -- read-only query."
    ),
    shape=EMPTY_SHAPE,
)

USAGE = OperationDescriptor(
    name="s2t_usage",
    title="Get API Usage",
    description=(
        "Get your current API usage statistics and remaining quota for the billing period. Use to monitor "
        "consumption, check rate limits, or verify tier status. Returns requests made, tokens used, remaining "
        "quota, and current tier. No side effects -- read-only query."
    ),
    shape=EMPTY_SHAPE,
)


@remote(CATALOG, "/catalog", "GET")
def catalog(r: JsonDict) -> str:
    out = [f"# S2T Accelerator Catalog\n\n**Your Tier:** {r['your_tier']}\n", "## Available Accelerators\n"]
    for acc in r["accelerators"]:
        out += [
            f"### {acc['name']} ({acc['id']})",
            acc["description"],
            f"- Endpoint: `{acc['endpoint']}`",
            f"- Available in: {', '.join(acc['tier_access'])}\n",
        ]
    out.append("## Pricing Tiers\n")
    for tier in r["tiers"].values():
        limits = tier["limits"]
        # a zero or missing monthly cap means unlimited
        monthly = limits.get("requestsPerMonth") or "unlimited"
        out.append(f"- **{tier['name']}:** ${tier['price']}/mo - {limits['requestsPerMinute']} req/min, {monthly}/mo")
    return "\n".join(out) + "\n"


@remote(USAGE, "/usage", "GET")
def usage(r: JsonDict) -> str:
    billing = r["billing"]
    return "\n".join([
        "# S2T API Usage\n",
        f"**Account:** {r['email']}",
        f"**Tier:** {r['tier']}",
        f"**Period:** {r['period']}\n",
        "## Usage",
        f"- Requests this month: {r['usage']['requests']}",
        f"- Remaining: {r['remaining']['requests_this_month']}",
        f"- Rate limit: {r['limits']['requests_per_minute']}/min",
        f"- Monthly limit: {r['limits']['requests_per_month']}\n",
        "## Billing",
        f"- Tier price: ${billing['tier_price']}",
        f"- Usage charges: ${billing['usage_charges']}",
        f"- Period total: ${billing['period_total']}",
    ]) + "\n"


OPERATIONS = (catalog, usage)
