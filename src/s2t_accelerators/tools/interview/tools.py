"""Local interview operations. No remote call; state lives in the shared InterviewStore."""

from __future__ import annotations

from datetime import UTC, datetime

from s2t_accelerators.foundation.errors import JsonDict
from s2t_accelerators.foundation.registry import MUTATING, OperationDescriptor
from s2t_accelerators.foundation.schema import InputShape, str_field

from ..base import local
from .store import QUESTIONS, InterviewStatus, InterviewStore

CREATE = OperationDescriptor(
    name="s2t_interview_create",
    title="Create Interview Session",
    description=(
        "Create a stakeholder interview session for S2T process discovery. Returns a session token for "
        "conducting the interview via s2t_interview_message. Use when beginning a new stakeholder engagement or "
        "process assessment. Local tool -- no API key charges, runs entirely on the client. Side effect: creates "
        "an in-memory session (expires after 24 hours)."
    ),
    shape=InputShape((
        str_field("customer_name", "Name of the customer organization", required=True, minLength=1, maxLength=200),
        str_field("stakeholder_name", "Name of the stakeholder being interviewed",
                  required=True, minLength=1, maxLength=200),
        str_field("stakeholder_title", "Job title of the stakeholder (e.g., 'VP of Operations')", maxLength=200),
        str_field("stakeholder_email", "Email address of the stakeholder", maxLength=254),
        str_field("process_area", "Business process area to focus on (e.g., 'finance', 'hr', 'operations', "
                  "'supply chain')", maxLength=200),
    )),
    annotations=MUTATING,
)

MESSAGE = OperationDescriptor(
    name="s2t_interview_message",
    title="Send Interview Message",
    description=(
        "Send a message in an active interview session and receive the next adaptive question. Use to conduct "
        "stakeholder interviews step by step. Returns the AI-generated follow-up question and session progress. "
        "Local tool -- no API key charges."
    ),
    shape=InputShape((
        str_field("token", "Interview session token from s2t_interview_create",
                  required=True, minLength=1, maxLength=500),
        str_field("message", "The stakeholder's response or message", required=True, minLength=1, maxLength=10000),
    )),
    annotations=MUTATING,
)

SUMMARY = OperationDescriptor(
    name="s2t_interview_summary",
    title="Generate Interview Summary",
    description=(
        "Generate an AI summary from an interview session's transcript. Includes key findings, pain points, "
        "time/cost estimates, and prioritized recommendations. Use after completing an interview to produce a "
        "structured deliverable. Local tool -- no API key charges. No side effects beyond reading the session."
    ),
    shape=InputShape((
        str_field("token", "Interview session token from s2t_interview_create",
                  required=True, minLength=1, maxLength=500),
    )),
)

LIST = OperationDescriptor(
    name="s2t_interview_list",
    title="List Interview Sessions",
    description=(
        "List all interview sessions with optional status filter. Use to find active, completed, or expired "
        "sessions. Returns session metadata including customer name, stakeholder, and creation time. Local tool "
        "-- no API key charges. No side effects -- read-only query."
    ),
    shape=InputShape((
        str_field("status", "Filter sessions by status: active (in-progress), completed (summary generated), "
                  "expired (>24h inactive)", enum=[s.value for s in InterviewStatus]),
    )),
)


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=UTC).isoformat(timespec="seconds").replace("+00:00", "Z")


@local(CREATE)
def create(args: JsonDict, store: InterviewStore) -> str:
    iv = store.create(
        args["customer_name"],
        args["stakeholder_name"],
        stakeholder_title=args.get("stakeholder_title"),
        stakeholder_email=args.get("stakeholder_email"),
        process_area=args.get("process_area"),
    )
    stakeholder = iv.stakeholder_name + (f", {iv.stakeholder_title}" if iv.stakeholder_title else "")
    out = [
        "# Interview Session Created\n",
        f"**Token:** `{iv.token}`",
        f"**Customer:** {iv.customer_name}",
        f"**Stakeholder:** {stakeholder}",
    ]
    if iv.process_area:
        out.append(f"**Process Area:** {iv.process_area}")
    out += [
        "**Expires:** 24 hours after last activity\n",
        f"## Question 1 of {len(QUESTIONS)}\n",
        iv.pending_question or "",
        "\n> Send the stakeholder's answer with `s2t_interview_message` using the token above.",
    ]
    return "\n".join(out) + "\n"


@local(MESSAGE)
def message(args: JsonDict, store: InterviewStore) -> str:
    iv = store.answer(args["token"], args["message"])
    out = [f"**Responses recorded:** {len(iv.turns)}\n"]
    if iv.pending_question is None:
        out += [
            "## Interview Complete\n",
            "All discovery questions have been answered. Further messages are kept as additional notes.",
            "\n> Call `s2t_interview_summary` with this token to generate the findings report.",
        ]
    elif iv.follow_up_asked:
        out += [f"## Follow-up (Question {iv.question_number} of {len(QUESTIONS)})\n", iv.pending_question]
    else:
        out += [f"## Question {iv.question_number} of {len(QUESTIONS)}\n", iv.pending_question]
    return "\n".join(out) + "\n"


@local(SUMMARY)
def summary(args: JsonDict, store: InterviewStore) -> str:
    s = store.summarize(args["token"])
    iv = s.interview
    out = [
        f"# Interview Summary: {iv.customer_name}\n",
        f"**Stakeholder:** {iv.stakeholder_name}" + (f" ({iv.stakeholder_title})" if iv.stakeholder_title else ""),
        f"**Process Area:** {iv.process_area or 'General'}",
        f"**Responses:** {s.answered}",
        f"**Started:** {_iso(iv.created_at)}\n",
    ]
    if not s.answered:
        out.append("No responses recorded yet.")
        return "\n".join(out) + "\n"

    if s.key_findings:
        out += ["## Key Findings\n", *(f"- {f}" for f in s.key_findings), ""]
    if s.pain_points:
        out += ["## Pain Points\n", *(f"- {p}" for p in s.pain_points), ""]
    if s.time_estimates:
        out += [
            "## Time Estimates\n",
            *(f"- \"{t.quote}\" ~ {t.hours_per_week:g} h/week" for t in s.time_estimates),
            f"\n**Estimated manual effort:** {s.weekly_hours:g} hours per week", "",
        ]
    if s.recommendations:
        out += ["## Recommendations\n", *(f"{i}. {rec}" for i, rec in enumerate(s.recommendations, 1)), ""]

    out.append("## Transcript\n")
    for turn in iv.turns:
        out += [f"**Q:** {turn.question}", f"**A:** {turn.answer}\n"]
    return "\n".join(out)


@local(LIST)
def list_sessions(args: JsonDict, store: InterviewStore) -> str:
    status = args.get("status")
    interviews = store.list_interviews(status)
    heading = f"# Interview Sessions ({status})\n" if status else "# Interview Sessions\n"
    if not interviews:
        return heading + "\nNo interview sessions found.\n"

    out = [
        heading,
        "| Customer | Stakeholder | Status | Responses | Created | Token |",
        "|----------|-------------|--------|-----------|---------|-------|",
    ]
    for iv in interviews:
        out.append(f"| {iv.customer_name} | {iv.stakeholder_name} | {store.status_of(iv)} | {len(iv.turns)} "
                   f"| {_iso(iv.created_at)} | `{iv.token}` |")
    out.append(f"\n**Total:** {len(interviews)}")
    return "\n".join(out) + "\n"


OPERATIONS = (create, message, summary, list_sessions)
