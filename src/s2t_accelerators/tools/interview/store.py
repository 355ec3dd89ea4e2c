"""In-process stakeholder interview sessions.

Interviews follow a fixed discovery script. Each answer advances to the next
question; a very short answer earns one follow-up prompt before moving on.
The summary pass scans the transcript for pain points, time estimates and
automation candidates.

One store is shared by every MCP session in the process. Interviews expire
after 24 hours without activity and stay listable as expired for a further
seven days, after which they are evicted.

Example:
    >>> store = InterviewStore()
    >>> iv = store.create("Acme Corp", "Dana Reyes", process_area="accounts payable")
    >>> iv.pending_question
    'To start, could you describe your role and how you are involved in accounts payable?'
    >>> store.answer(iv.token, "I run the AP team and approve every invoice over $5k.").question_number
    2
"""

from __future__ import annotations

import re
import secrets
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from s2t_accelerators.foundation.errors import ErrorCode, ToolException

DEFAULT_TTL: float = 24 * 60 * 60  # 24 hours of inactivity
DEFAULT_RETENTION: float = 7 * 24 * 60 * 60  # kept past expiry or completion before eviction
SHORT_ANSWER_WORDS = 8
TOKEN_BYTES = 24

QUESTIONS: tuple[str, ...] = (
    "To start, could you describe your role and how you are involved in {area}?",
    "Walk me through a typical week in {area}. Which tasks take up most of your time?",
    "Which of those steps are still manual, such as copying data between systems, spreadsheets or email?",
    "Roughly how much time do those manual steps take per day or per week?",
    "Where do errors, rework or delays most often happen, and what do they cost you?",
    "Which systems and tools does {area} depend on today, and how well do they talk to each other?",
    "Who else is involved, and where do hand-offs or approvals slow things down?",
    "If you could automate one thing in {area} tomorrow, what would it be and why?",
)

FOLLOW_UP = "Could you expand on that with a specific recent example? Details help us size the opportunity."
CLOSING_NOTE = "Additional notes"


class InterviewStatus(StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


@dataclass(slots=True)
class Turn:
    """One question and the stakeholder's answer to it."""
    question: str
    answer: str
    at: float


@dataclass(slots=True)
class Interview:
    """A single stakeholder interview and its transcript."""

    token: str
    customer_name: str
    stakeholder_name: str
    created_at: float
    last_activity: float
    stakeholder_title: str | None = None
    stakeholder_email: str | None = None
    process_area: str | None = None
    turns: list[Turn] = field(default_factory=list)
    question_index: int = 0
    pending_question: str | None = None
    follow_up_asked: bool = False
    completed_at: float | None = None

    @property
    def area(self) -> str:
        return self.process_area or "your day-to-day processes"

    @property
    def question_number(self) -> int:
        """1-based index of the scripted question currently pending."""
        return min(self.question_index + 1, len(QUESTIONS))

    @property
    def script_finished(self) -> bool:
        return self.question_index >= len(QUESTIONS)

    def status(self, now: float, ttl: float) -> InterviewStatus:
        if self.completed_at is not None:
            return InterviewStatus.COMPLETED
        if now - self.last_activity > ttl:
            return InterviewStatus.EXPIRED
        return InterviewStatus.ACTIVE

    def evictable(self, now: float, ttl: float, retention: float) -> bool:
        if self.completed_at is not None:
            return now - self.completed_at > retention
        return now - self.last_activity > ttl + retention


@dataclass(slots=True)
class TimeEstimate:
    """A duration the stakeholder mentioned, normalized to hours per week."""
    quote: str
    hours_per_week: float


@dataclass(slots=True)
class InterviewSummary:
    interview: Interview
    answered: int
    key_findings: list[str]
    pain_points: list[str]
    time_estimates: list[TimeEstimate]
    recommendations: list[str]

    @property
    def weekly_hours(self) -> float:
        return round(sum(t.hours_per_week for t in self.time_estimates), 1)


class InterviewStore:
    """Thread-safe keyed store of interviews.

    Args:
        ttl: Seconds of inactivity before an interview expires
        retention: Seconds an expired or completed interview stays listable
        clock: Time source in epoch seconds (injectable for tests)
    """

    __slots__ = ("_interviews", "_ttl", "_retention", "_clock", "_lock")

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        retention: float = DEFAULT_RETENTION,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._interviews: dict[str, Interview] = {}
        self._ttl = ttl
        self._retention = retention
        self._clock = clock
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._interviews)

    def status_of(self, interview: Interview) -> InterviewStatus:
        return interview.status(self._clock(), self._ttl)

    def create(
        self,
        customer_name: str,
        stakeholder_name: str,
        *,
        stakeholder_title: str | None = None,
        stakeholder_email: str | None = None,
        process_area: str | None = None,
    ) -> Interview:
        now = self._clock()
        interview = Interview(
            token=secrets.token_urlsafe(TOKEN_BYTES),
            customer_name=customer_name,
            stakeholder_name=stakeholder_name,
            stakeholder_title=stakeholder_title,
            stakeholder_email=stakeholder_email,
            process_area=process_area,
            created_at=now,
            last_activity=now,
        )
        interview.pending_question = QUESTIONS[0].format(area=interview.area)
        with self._lock:
            self.prune()
            self._interviews[interview.token] = interview
        return interview

    def get(self, token: str) -> Interview:
        """Look up by token.

        Raises:
            ToolException: NOT_FOUND for an unknown token.
        """
        with self._lock:
            interview = self._interviews.get(token)
        if interview is None:
            raise ToolException.create("interview", f"Interview session not found: {token}",
                                       ErrorCode.NOT_FOUND, recoverable=False)
        return interview

    def answer(self, token: str, message: str) -> Interview:
        """Record ``message`` against the pending question and advance the script.

        Raises:
            ToolException: unknown token, or the interview is expired or completed.
        """
        with self._lock:
            interview = self.get(token)
            match self.status_of(interview):
                case InterviewStatus.COMPLETED:
                    raise ToolException.create(
                        "interview", "Interview session is already completed. Start a new session to continue.",
                        ErrorCode.INVALID_PARAMS, recoverable=False)
                case InterviewStatus.EXPIRED:
                    raise ToolException.create(
                        "interview", "Interview session has expired after 24 hours of inactivity.",
                        ErrorCode.INVALID_PARAMS, recoverable=False)

            now = self._clock()
            question = interview.pending_question or CLOSING_NOTE
            interview.turns.append(Turn(question, message.strip(), now))
            interview.last_activity = now

            if interview.script_finished:
                return interview
            if _word_count(message) < SHORT_ANSWER_WORDS and not interview.follow_up_asked:
                interview.follow_up_asked = True
                interview.pending_question = FOLLOW_UP
                return interview

            interview.question_index += 1
            interview.follow_up_asked = False
            interview.pending_question = (
                None if interview.script_finished
                else QUESTIONS[interview.question_index].format(area=interview.area)
            )
            return interview

    def summarize(self, token: str) -> InterviewSummary:
        """Analyze the transcript and mark the interview completed."""
        with self._lock:
            interview = self.get(token)
            if interview.completed_at is None:
                interview.completed_at = self._clock()
                interview.pending_question = None
            answers = [t.answer for t in interview.turns]

        pains = pain_points(answers)
        return InterviewSummary(
            interview=interview,
            answered=len(answers),
            key_findings=key_findings(interview.turns),
            pain_points=pains,
            time_estimates=time_estimates(answers),
            recommendations=recommendations(answers),
        )

    def list_interviews(self, status: InterviewStatus | str | None = None) -> list[Interview]:
        """Interviews in creation order, optionally filtered by status."""
        with self._lock:
            self.prune()
            interviews = list(self._interviews.values())
        if status is None:
            return interviews
        wanted = InterviewStatus(status)
        return [iv for iv in interviews if self.status_of(iv) is wanted]

    def prune(self) -> int:
        """Evict interviews past their retention window. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            stale = [t for t, iv in self._interviews.items() if iv.evictable(now, self._ttl, self._retention)]
            for token in stale:
                del self._interviews[token]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._interviews.clear()


# ─────────────────────────────────────────────────────────────────────────────
# Transcript analysis
# ─────────────────────────────────────────────────────────────────────────────

PAIN_KEYWORDS = (
    "manual", "manually", "spreadsheet", "excel", "copy", "re-enter", "retype", "slow", "delay",
    "bottleneck", "error", "mistake", "rework", "frustrat", "tedious", "painful", "chase", "backlog",
)

# keyword -> automation candidate, in priority order for ties
AUTOMATION_CANDIDATES: dict[tuple[str, ...], str] = {
    ("copy", "re-enter", "retype", "data entry", "manual"):
        "Automate data entry between systems with API integrations or RPA",
    ("spreadsheet", "excel"):
        "Replace spreadsheet tracking with a shared system of record and automated reporting",
    ("approval", "approve", "sign-off", "sign off"):
        "Digitize approvals with a rules-based workflow and automatic escalation",
    ("email", "inbox", "chase"):
        "Route email-driven requests through a tracked intake queue",
    ("report", "reconcil"):
        "Schedule recurring reports and reconciliations as automated jobs",
    ("error", "mistake", "rework"):
        "Add validation checks at data capture to cut rework",
}

_SENTENCE = re.compile(r"(?<=[.!?])\s+")
_DURATION = re.compile(
    r"(?P<amount>\d+(?:\.\d+)?)\s*(?P<unit>hours?|hrs?|minutes?|mins?|days?)"
    r"(?:\s+(?:a|per|each|every)\s+(?P<period>day|week|month))?",
    re.IGNORECASE,
)
_UNIT_HOURS = {"h": 1.0, "m": 1 / 60, "d": 8.0}
_PERIOD_WEEKS = {"day": 5.0, "week": 1.0, "month": 12 / 52}


def _word_count(text: str) -> int:
    return len(text.split())


def pain_points(answers: list[str]) -> list[str]:
    """Sentences that mention a known friction keyword, deduplicated, in transcript order."""
    seen: dict[str, None] = {}
    for answer in answers:
        for sentence in _SENTENCE.split(answer.strip()):
            lowered = sentence.lower()
            if sentence and any(k in lowered for k in PAIN_KEYWORDS):
                seen.setdefault(sentence.strip(), None)
    return list(seen)


def time_estimates(answers: list[str]) -> list[TimeEstimate]:
    """Durations like "6 hours a week" or "30 minutes per day", normalized to hours per week.

    A duration without a period is taken as weekly.
    """
    found: list[TimeEstimate] = []
    for answer in answers:
        for m in _DURATION.finditer(answer):
            hours = float(m["amount"]) * _UNIT_HOURS[m["unit"][0].lower()]
            period = (m["period"] or "week").lower()
            found.append(TimeEstimate(m.group(0), round(hours * _PERIOD_WEEKS[period], 2)))
    return found


def recommendations(answers: list[str]) -> list[str]:
    """Automation candidates ranked by how often their keywords appear."""
    text = " ".join(answers).lower()
    scored = [(sum(text.count(k) for k in keys), i, rec) for i, (keys, rec) in enumerate(AUTOMATION_CANDIDATES.items())]
    return [rec for hits, _, rec in sorted(scored, key=lambda s: (-s[0], s[1])) if hits > 0]


def key_findings(turns: list[Turn]) -> list[str]:
    """First sentence of each substantive scripted answer."""
    findings: list[str] = []
    for turn in turns:
        if turn.question in (FOLLOW_UP, CLOSING_NOTE) or _word_count(turn.answer) < SHORT_ANSWER_WORDS:
            continue
        findings.append(_SENTENCE.split(turn.answer.strip(), maxsplit=1)[0])
    return findings
