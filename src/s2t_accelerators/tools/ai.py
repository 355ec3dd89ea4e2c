"""AI & embeddings operations."""

from __future__ import annotations

import orjson

from s2t_accelerators.foundation.errors import JsonDict
from s2t_accelerators.foundation.registry import OperationDescriptor
from s2t_accelerators.foundation.schema import InputShape, array_field, bool_field, int_field, str_field

from .base import ORANGE, RED, TREND_DOWN, TREND_FLAT, TREND_UP, YELLOW, remote

PREVIEW_CHARS = 100

EMBED = OperationDescriptor(
    name="s2t_embed",
    title="Generate Vector Embeddings",
    description=(
        "Generate vector embeddings for text using Amazon Bedrock Titan models. Supports automatic chunking "
        "for long documents. Use when building RAG pipelines, semantic search, document similarity, or "
        "knowledge base indexing. Returns embedding vectors with chunk metadata. No side effects -- "
        "read-only computation."
    ),
    shape=InputShape((
        str_field("text", "The text to generate embeddings for", required=True, minLength=1, maxLength=100000),
        str_field("model", "Embedding model to use", default="amazon.titan-embed-text-v2:0",
                  enum=["amazon.titan-embed-text-v2:0", "amazon.titan-embed-text-v1"]),
        int_field("chunk_size", "Tokens per chunk when chunking is needed", default=512, minimum=100, maximum=2000),
        int_field("chunk_overlap", "Token overlap between chunks", default=50, minimum=0, maximum=500),
    )),
)

ERROR_PATTERNS = OperationDescriptor(
    name="s2t_analyze_error_patterns",
    title="Analyze Error Patterns",
    description=(
        "Analyze application error logs to identify recurring patterns, root causes, and trends. Use when "
        "debugging production issues, performing post-mortems, or monitoring error spikes. Returns categorized "
        "patterns with severity and remediation suggestions. No side effects -- read-only analysis."
    ),
    shape=InputShape((
        array_field("errors", "Array of error objects to analyze", {
            "type": "object",
            "properties": {
                "message": {"type": "string", "minLength": 1, "description": "Error message text"},
                "timestamp": {"type": "string", "minLength": 1, "maxLength": 50,
                              "description": "ISO 8601 timestamp of the error"},
                "source": {"type": "string", "minLength": 1, "maxLength": 500,
                           "description": "Source service or function name"},
                "stack_trace": {"type": "string", "maxLength": 50000,
                                "description": "Stack trace for deeper analysis"},
            },
            "required": ["message"],
            "additionalProperties": False,
        }, required=True, minItems=1, maxItems=1000),
        bool_field("include_ai_analysis", "Include AI-powered deep analysis with root-cause inference", default=True),
    )),
)


@remote(EMBED, "/embed")
def embed(r: JsonDict) -> str:
    """JSON document: chunk previews instead of raw vectors."""
    summary = r["summary"]
    doc = {
        "summary": f"Generated {summary['total_chunks']} embedding(s) using {summary['model']}",
        "dimensions": summary["dimensions"],
        "chunks": [
            {
                "index": i,
                "text_preview": chunk["text"][:PREVIEW_CHARS] + ("..." if len(chunk["text"]) > PREVIEW_CHARS else ""),
                "word_count": chunk["metadata"]["word_count"],
                "has_embedding": True,
            }
            for i, chunk in enumerate(r["chunks"])
        ],
        "usage": r["usage"],
        "note": "Full embeddings available in API response. Use for vector database indexing.",
    }
    return orjson.dumps(doc, option=orjson.OPT_INDENT_2).decode()


_PATTERN_ICONS = {"HIGH": RED, "MEDIUM": ORANGE}
_TREND_ICONS = {"increasing": TREND_UP, "decreasing": TREND_DOWN}


@remote(ERROR_PATTERNS, "/analyze/error-patterns")
def error_patterns(r: JsonDict) -> str:
    s = r["summary"]
    change = s["trend_change_percent"]
    out = [
        "# Error Pattern Analysis\n",
        f"**Total Errors:** {s['total_errors']}",
        f"**Unique Patterns:** {s['unique_patterns']}",
        f"**Trend:** {_TREND_ICONS.get(s['trend'], TREND_FLAT)} {s['trend']} ({'+' if change > 0 else ''}{change}%)",
        f"**Critical Issues:** {s['critical_count']}",
        f"**High Issues:** {s['high_count']}\n",
    ]

    if r["patterns"]:
        out.append("## Error Patterns\n")
        for p in r["patterns"][:10]:
            out += [
                f"### {_PATTERN_ICONS.get(p['severity'], YELLOW)} {p['type'].upper()} "
                f"({p['count']} errors, {p['percentage']}%)",
                f"**Category:** {p['category']}",
                f"**Common Causes:** {', '.join(p['common_causes'])}",
                f"**Remediation:** {'; '.join(p['remediation'])}\n",
            ]

    if r["recommendations"]:
        out.append("## Priority Actions\n")
        for rec in r["recommendations"]:
            out.append(f"{rec['priority']}. **{rec['issue']}** ({rec['category']})")
            out += [f"   - {a}" for a in rec.get("actions") or ()]

    return "\n".join(out) + "\n"


OPERATIONS = (embed, error_patterns)
