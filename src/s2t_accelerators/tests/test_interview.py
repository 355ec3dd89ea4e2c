"""Tests for the in-process interview engine and its operations."""

from __future__ import annotations

import re

import pytest

from s2t_accelerators.dispatch import Dispatcher
from s2t_accelerators.foundation.errors import ErrorCode, ToolException
from s2t_accelerators.foundation.testing import FakeRemote
from s2t_accelerators.tools.interview import InterviewStatus, InterviewStore
from s2t_accelerators.tools.interview.store import (
    DEFAULT_RETENTION,
    DEFAULT_TTL,
    FOLLOW_UP,
    QUESTIONS,
    pain_points,
    recommendations,
    time_estimates,
)

LONG_ANSWER = "I manage the accounts payable team and approve every invoice over five thousand dollars."
TOKEN = re.compile(r"\*\*Token:\*\* `([^`]+)`")


def run_script(store: InterviewStore, token: str) -> None:
    for _ in QUESTIONS:
        store.answer(token, LONG_ANSWER)


# ═════════════════════════════════════════════════════════════════════════════
# Store
# ═════════════════════════════════════════════════════════════════════════════


class TestInterviewStore:
    def test_create(self, interviews: InterviewStore) -> None:
        iv = interviews.create("Acme Corp", "Dana Reyes", process_area="accounts payable")
        assert len(interviews) == 1
        assert interviews.get(iv.token) is iv
        assert iv.pending_question == QUESTIONS[0].format(area="accounts payable")
        assert iv.question_number == 1
        assert interviews.status_of(iv) is InterviewStatus.ACTIVE

    def test_tokens_are_unique(self, interviews: InterviewStore) -> None:
        tokens = {interviews.create("Acme", "Dana").token for _ in range(20)}
        assert len(tokens) == 20

    def test_unknown_token(self, interviews: InterviewStore) -> None:
        with pytest.raises(ToolException) as exc_info:
            interviews.get("missing")
        assert exc_info.value.error.message == "Interview session not found: missing"
        assert exc_info.value.error.code == ErrorCode.NOT_FOUND

    def test_substantive_answer_advances(self, interviews: InterviewStore) -> None:
        iv = interviews.create("Acme", "Dana")
        interviews.answer(iv.token, LONG_ANSWER)
        assert iv.question_number == 2
        assert iv.pending_question == QUESTIONS[1].format(area=iv.area)
        assert len(iv.turns) == 1

    def test_short_answer_earns_one_follow_up(self, interviews: InterviewStore) -> None:
        iv = interviews.create("Acme", "Dana")
        interviews.answer(iv.token, "I do AP.")
        assert iv.pending_question == FOLLOW_UP
        assert iv.question_number == 1

        interviews.answer(iv.token, "Invoices.")
        assert iv.question_number == 2
        assert not iv.follow_up_asked

    def test_script_completion(self, interviews: InterviewStore) -> None:
        iv = interviews.create("Acme", "Dana")
        run_script(interviews, iv.token)
        assert iv.script_finished
        assert iv.pending_question is None
        assert iv.question_number == len(QUESTIONS)

        interviews.answer(iv.token, "One more thing")
        assert len(iv.turns) == len(QUESTIONS) + 1
        assert iv.turns[-1].question == "Additional notes"

    def test_expiry(self, interviews: InterviewStore, clock) -> None:
        iv = interviews.create("Acme", "Dana")
        clock.advance(DEFAULT_TTL + 1)
        assert interviews.status_of(iv) is InterviewStatus.EXPIRED
        with pytest.raises(ToolException, match="expired after 24 hours of inactivity"):
            interviews.answer(iv.token, LONG_ANSWER)

    def test_activity_extends_lifetime(self, interviews: InterviewStore, clock) -> None:
        iv = interviews.create("Acme", "Dana")
        clock.advance(DEFAULT_TTL - 10)
        interviews.answer(iv.token, LONG_ANSWER)
        clock.advance(DEFAULT_TTL - 10)
        assert interviews.status_of(iv) is InterviewStatus.ACTIVE

    def test_summarize_completes(self, interviews: InterviewStore) -> None:
        iv = interviews.create("Acme", "Dana")
        interviews.answer(iv.token, LONG_ANSWER)
        summary = interviews.summarize(iv.token)
        assert summary.answered == 1
        assert interviews.status_of(iv) is InterviewStatus.COMPLETED
        with pytest.raises(ToolException, match="already completed"):
            interviews.answer(iv.token, LONG_ANSWER)

    def test_list_by_status(self, interviews: InterviewStore, clock) -> None:
        stale = interviews.create("Old Co", "Sam")
        clock.advance(DEFAULT_TTL + 1)
        live = interviews.create("New Co", "Ana")
        done = interviews.create("Done Co", "Lee")
        interviews.summarize(done.token)

        assert interviews.list_interviews() == [stale, live, done]
        assert interviews.list_interviews("expired") == [stale]
        assert interviews.list_interviews(InterviewStatus.ACTIVE) == [live]
        assert interviews.list_interviews("completed") == [done]

    def test_stale_interviews_evicted(self, interviews: InterviewStore, clock) -> None:
        """Expired and completed interviews are dropped once past retention."""
        abandoned = interviews.create("Old Co", "Sam")
        done = interviews.create("Done Co", "Lee")
        interviews.summarize(done.token)
        clock.advance(DEFAULT_TTL + 1)
        assert interviews.list_interviews() == [abandoned, done]

        clock.advance(DEFAULT_RETENTION)
        fresh = interviews.create("New Co", "Ana")
        assert len(interviews) == 1
        assert interviews.list_interviews() == [fresh]
        with pytest.raises(ToolException, match="not found"):
            interviews.get(abandoned.token)

    def test_prune_keeps_recent(self, interviews: InterviewStore, clock) -> None:
        iv = interviews.create("Acme", "Dana")
        clock.advance(DEFAULT_TTL + DEFAULT_RETENTION - 1)
        assert interviews.prune() == 0
        assert interviews.status_of(iv) is InterviewStatus.EXPIRED
        clock.advance(2)
        assert interviews.prune() == 1

    def test_clear(self, interviews: InterviewStore) -> None:
        interviews.create("Acme", "Dana")
        interviews.clear()
        assert len(interviews) == 0


# ─────────────────────────────────────────────────────────────────────────────
# Transcript analysis
# ─────────────────────────────────────────────────────────────────────────────


def test_time_estimates_normalize_to_weekly_hours() -> None:
    found = time_estimates(["It takes about 6 hours a week.", "Then 30 minutes per day on email."])
    assert [t.hours_per_week for t in found] == [6.0, 2.5]
    assert found[0].quote == "6 hours a week"


def test_time_estimate_without_period_is_weekly() -> None:
    assert [t.hours_per_week for t in time_estimates(["Roughly 2 days of work."])] == [16.0]


def test_pain_points_deduplicated() -> None:
    answers = ["We copy invoices manually. It works.", "We copy invoices manually."]
    assert pain_points(answers) == ["We copy invoices manually."]


def test_recommendations_ranked_by_mentions() -> None:
    recs = recommendations(["We track it in a spreadsheet, another spreadsheet, and excel.", "We copy data."])
    assert recs[0].startswith("Replace spreadsheet tracking")
    assert any(r.startswith("Automate data entry") for r in recs)
    assert recommendations(["Everything is fine."]) == []


# ═════════════════════════════════════════════════════════════════════════════
# Operations
# ═════════════════════════════════════════════════════════════════════════════


async def _create(dispatcher: Dispatcher, **extra: str) -> str:
    result = await dispatcher.invoke("s2t_interview_create",
                                     {"customer_name": "Acme Corp", "stakeholder_name": "Dana Reyes", **extra})
    assert not result.is_error
    match = TOKEN.search(result.text)
    assert match is not None
    return match.group(1)


class TestInterviewOperations:
    @pytest.mark.asyncio
    async def test_create(self, dispatcher: Dispatcher, remote: FakeRemote) -> None:
        result = await dispatcher.invoke("s2t_interview_create", {
            "customer_name": "Acme Corp", "stakeholder_name": "Dana Reyes",
            "stakeholder_title": "VP Finance", "process_area": "accounts payable",
        })
        text = result.text
        assert text.startswith("# Interview Session Created")
        assert "**Stakeholder:** Dana Reyes, VP Finance" in text
        assert "**Process Area:** accounts payable" in text
        assert f"## Question 1 of {len(QUESTIONS)}" in text
        remote.assert_not_called()

    @pytest.mark.asyncio
    async def test_message_flow(self, dispatcher: Dispatcher) -> None:
        token = await _create(dispatcher)

        first = await dispatcher.invoke("s2t_interview_message", {"token": token, "message": "AP."})
        assert "**Responses recorded:** 1" in first.text
        assert f"## Follow-up (Question 1 of {len(QUESTIONS)})" in first.text

        second = await dispatcher.invoke("s2t_interview_message", {"token": token, "message": LONG_ANSWER})
        assert f"## Question 2 of {len(QUESTIONS)}" in second.text

    @pytest.mark.asyncio
    async def test_message_completes_interview(self, dispatcher: Dispatcher) -> None:
        token = await _create(dispatcher)
        for _ in range(len(QUESTIONS) - 1):
            await dispatcher.invoke("s2t_interview_message", {"token": token, "message": LONG_ANSWER})
        last = await dispatcher.invoke("s2t_interview_message", {"token": token, "message": LONG_ANSWER})
        assert "## Interview Complete" in last.text

    @pytest.mark.asyncio
    async def test_message_unknown_token(self, dispatcher: Dispatcher) -> None:
        result = await dispatcher.invoke("s2t_interview_message", {"token": "nope", "message": "hi"})
        assert result.is_error
        assert result.text == "Error: Interview session not found: nope"

    @pytest.mark.asyncio
    async def test_summary(self, dispatcher: Dispatcher) -> None:
        token = await _create(dispatcher, process_area="accounts payable")
        for answer in (
            "I run AP for three entities and approve every invoice above the threshold.",
            "We copy invoice data manually from email into the ERP. It takes about 6 hours a week.",
        ):
            await dispatcher.invoke("s2t_interview_message", {"token": token, "message": answer})

        result = await dispatcher.invoke("s2t_interview_summary", {"token": token})
        text = result.text
        assert text.startswith("# Interview Summary: Acme Corp")
        assert "**Responses:** 2" in text
        assert "## Key Findings" in text
        assert "## Pain Points" in text
        assert "- We copy invoice data manually from email into the ERP." in text
        assert "**Estimated manual effort:** 6 hours per week" in text
        assert "## Recommendations" in text
        assert "## Transcript" in text

    @pytest.mark.asyncio
    async def test_summary_without_responses(self, dispatcher: Dispatcher) -> None:
        token = await _create(dispatcher)
        result = await dispatcher.invoke("s2t_interview_summary", {"token": token})
        assert "No responses recorded yet." in result.text

    @pytest.mark.asyncio
    async def test_list(self, dispatcher: Dispatcher, clock) -> None:
        empty = await dispatcher.invoke("s2t_interview_list", {})
        assert "No interview sessions found." in empty.text

        token = await _create(dispatcher)
        listing = await dispatcher.invoke("s2t_interview_list", {})
        assert "| Acme Corp | Dana Reyes | active | 0 |" in listing.text
        assert f"`{token}`" in listing.text
        assert "**Total:** 1" in listing.text

        clock.advance(DEFAULT_TTL + 1)
        expired = await dispatcher.invoke("s2t_interview_list", {"status": "expired"})
        assert expired.text.startswith("# Interview Sessions (expired)")
        assert "**Total:** 1" in expired.text
        active = await dispatcher.invoke("s2t_interview_list", {"status": "active"})
        assert "No interview sessions found." in active.text

    @pytest.mark.asyncio
    async def test_store_shared_between_dispatchers(self, dispatcher: Dispatcher, remote: FakeRemote,
                                                    interviews: InterviewStore) -> None:
        """Sessions created through one dispatcher are visible to another over the same store."""
        token = await _create(dispatcher)
        other = Dispatcher(dispatcher.registry, remote, interviews)
        result = await other.invoke("s2t_interview_message", {"token": token, "message": LONG_ANSWER})
        assert not result.is_error
