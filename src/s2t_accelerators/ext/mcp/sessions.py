"""Keyed stores of live transport sessions.

Each HTTP binding owns one store. Contents always equal the set of live
sessions: entries are inserted when a session is created and removed by its
close path. Removal is idempotent, so the close callback and an explicit
termination can both run without double bookkeeping.

All access happens on the event loop thread and no method awaits, so the
store needs no lock.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class SessionStore(Generic[T]):
    """Insertion-ordered map from session id to session.

    Example:
        >>> store: SessionStore[str] = SessionStore()
        >>> store.add("a1", "transport")
        >>> store.discard("a1"), store.discard("a1")
        ('transport', None)
    """

    __slots__ = ("_sessions",)

    def __init__(self) -> None:
        self._sessions: dict[str, T] = {}

    def add(self, session_id: str, session: T) -> None:
        if session_id in self._sessions:
            raise KeyError(f"Session '{session_id}' already registered")
        self._sessions[session_id] = session

    def get(self, session_id: str | None) -> T | None:
        return self._sessions.get(session_id) if session_id else None

    def discard(self, session_id: str) -> T | None:
        """Remove and return the session, or None if it was already gone."""
        return self._sessions.pop(session_id, None)

    def find(self, predicate: Callable[[T], bool]) -> T | None:
        """Linear scan for the first session matching ``predicate``."""
        return next((s for s in self._sessions.values() if predicate(s)), None)

    def snapshot(self) -> list[tuple[str, T]]:
        """Copy of the current entries, safe to iterate while sessions close."""
        return list(self._sessions.items())

    def clear(self) -> None:
        self._sessions.clear()

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[str]:
        return iter(self._sessions)
