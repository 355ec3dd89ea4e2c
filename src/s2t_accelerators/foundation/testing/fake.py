"""Recording stand-in for the accelerator API client.

FakeRemote satisfies RemoteCaller for tests:
- Returns a canned response, or one computed per call by ``side_effect``
- Raises a configured exception to simulate network or API failures
- Records every call for verification

Example:
    >>> fake = FakeRemote(response={"summary": {"total_chunks": 1}})
    >>> await fake.call("/embed", "POST", {"text": "hello"})
    {'summary': {'total_chunks': 1}}
    >>> fake.assert_called_with("/embed", text="hello")
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from s2t_accelerators.foundation.errors import JsonDict, JsonMapping, JsonValue


@dataclass(slots=True)
class Invocation:
    """Record of a single remote call."""
    endpoint: str
    method: str
    body: JsonDict | None


@dataclass
class FakeRemote:
    """In-memory RemoteCaller with invocation recording."""
    response: JsonValue = None
    raises: type[Exception] | Exception | None = None
    side_effect: Callable[[str, str, JsonDict | None], JsonValue] | None = None
    invocations: list[Invocation] = field(default_factory=list)

    async def call(self, endpoint: str, method: str = "GET", body: JsonMapping | None = None) -> JsonValue:
        recorded = dict(body) if body is not None else None
        self.invocations.append(Invocation(endpoint, method, recorded))
        if self.raises is not None:
            raise self.raises() if isinstance(self.raises, type) else self.raises
        if self.side_effect is not None:
            return self.side_effect(endpoint, method, recorded)
        return self.response

    @property
    def call_count(self) -> int:
        return len(self.invocations)

    @property
    def called(self) -> bool:
        return self.call_count > 0

    @property
    def last_call(self) -> Invocation | None:
        return self.invocations[-1] if self.invocations else None

    def assert_not_called(self) -> None:
        if self.called:
            raise AssertionError(f"Remote called {self.call_count} times")

    def assert_called_with(self, endpoint: str, method: str | None = None, **body: object) -> None:
        """Check the last call's endpoint, optionally its method, and the given body keys."""
        last = self.last_call
        if last is None:
            raise AssertionError("Expected remote to be called")
        if last.endpoint != endpoint:
            raise AssertionError(f"endpoint: expected {endpoint!r}, got {last.endpoint!r}")
        if method is not None and last.method != method:
            raise AssertionError(f"method: expected {method!r}, got {last.method!r}")
        sent = last.body or {}
        for key, expected in body.items():
            if key not in sent:
                raise AssertionError(f"Parameter '{key}' not in call")
            if sent[key] != expected:
                raise AssertionError(f"'{key}': expected {expected!r}, got {sent[key]!r}")

    def reset(self) -> None:
        self.invocations.clear()
