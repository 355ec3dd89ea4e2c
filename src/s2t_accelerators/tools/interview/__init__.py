"""Local stakeholder interview engine and its operations."""

from .store import Interview, InterviewStatus, InterviewStore, InterviewSummary
from .tools import OPERATIONS

__all__ = ["OPERATIONS", "Interview", "InterviewStatus", "InterviewStore", "InterviewSummary"]
