"""Distributed-systems primitives: W3C trace context and file locks."""

from __future__ import annotations

from s2t_accelerators.foundation.errors import JsonDict
from s2t_accelerators.foundation.registry import MUTATING, OperationDescriptor
from s2t_accelerators.foundation.schema import InputShape, int_field, str_field

from .base import BLOCKED, COORDINATION_SUITE, LOCKED, product_footer, remote, yes_no

TRACE = OperationDescriptor(
    name="s2t_create_trace_context",
    title="Create Trace Context",
    description=(
        "Generate W3C Trace Context identifiers (traceparent + tracestate) for distributed tracing across "
        "multi-agent workflows. Use when starting new traces or creating child spans within existing traces. "
        "Returns W3C-compliant trace headers. No side effects -- generates identifiers only."
    ),
    shape=InputShape((
        str_field("parent_traceparent", "Parent traceparent header to create a child span from "
                  "(omit to start a new trace)", maxLength=200),
        str_field("service_name", "Service name to record in the trace span", default="s2t-agent",
                  minLength=1, maxLength=200),
    )),
)

LOCK = OperationDescriptor(
    name="s2t_acquire_file_lock",
    title="File Lock Manager",
    description=(
        "Acquire, release, or check file-based mutex locks with stale lock detection. Use to prevent concurrent "
        "file access conflicts in multi-agent environments. Side effects: acquire creates a lock file; release "
        "removes it; check is read-only."
    ),
    shape=InputShape((
        str_field("file_path", "Absolute or relative path to the file to lock",
                  required=True, minLength=1, maxLength=1000),
        str_field("operation", "Lock operation: acquire (create lock), release (remove lock), "
                  "check (read lock status)", default="acquire", enum=["acquire", "release", "check"]),
        str_field("lock_token", "Lock token returned from acquire (required for release operation)", maxLength=200),
        int_field("timeout_ms", "Maximum wait time for lock acquisition in milliseconds",
                  default=5000, minimum=100, maximum=60000),
    )),
    annotations=MUTATING,
)


@remote(TRACE, "/accelerators/trace/create")
def trace(r: JsonDict) -> str:
    out = [
        "# Trace Context Created\n",
        f"**Traceparent:** `{r['traceparent']}`",
        f"**Trace ID:** `{r['trace_id']}`",
        f"**Span ID:** `{r['span_id']}`",
        f"**Version:** {r['version']}",
        f"**Created At:** {r['created_at']}",
        f"**Format:** {r['metadata']['format']}\n",
        "## Usage\n",
        "Pass the `traceparent` header in downstream requests for distributed tracing:\n",
        f"```\ntraceparent: {r['traceparent']}\n```",
    ]
    return "\n".join(out) + "\n" + product_footer(COORDINATION_SUITE)


@remote(LOCK, "/accelerators/lock/acquire")
def lock(r: JsonDict) -> str:
    acquired = r["acquired"]
    meta = r["metadata"]
    out = [
        "# File Lock Operation\n",
        f"**Status:** {LOCKED + ' ACQUIRED' if acquired else BLOCKED + ' BLOCKED'}",
        f"**File:** `{r['file_path']}`",
    ]
    if r.get("lock_token"):
        out.append(f"**Lock Token:** `{r['lock_token']}`")
    if r.get("holder"):
        out.append(f"**Current Holder:** {r['holder']}")
    out += [
        f"**Stale Locks Cleaned:** {yes_no(r['stale_cleaned'])}",
        f"**Wait Time:** {meta['wait_time_ms']}ms\n",
        "> Lock acquired successfully. Remember to release the lock when done using the lock token." if acquired
        else "> Lock could not be acquired. The file is currently locked by another process.",
        f"\n---\n*Processed in {meta['processing_time_ms']}ms*",
    ]
    return "\n".join(out) + "\n" + product_footer(COORDINATION_SUITE)


OPERATIONS = (trace, lock)
