"""Shared fixtures: recording remote, interview store, dispatcher, captured logs."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from s2t_accelerators.dispatch import Dispatcher
from s2t_accelerators.foundation.testing import FakeRemote
from s2t_accelerators.runtime.observability import MemoryRenderer, set_renderer
from s2t_accelerators.tools import build_registry
from s2t_accelerators.tools.interview import InterviewStore


class Clock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1_760_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def captured_logs() -> Iterator[MemoryRenderer]:
    """Route all log output into memory for the duration of a test."""
    renderer = MemoryRenderer()
    previous = set_renderer(renderer)
    yield renderer
    set_renderer(previous)


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote(response={})


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def interviews(clock: Clock) -> InterviewStore:
    return InterviewStore(clock=clock)


@pytest.fixture
def dispatcher(remote: FakeRemote, interviews: InterviewStore) -> Dispatcher:
    return Dispatcher(build_registry(), remote, interviews)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: object) -> Iterator[pytest.MonkeyPatch]:
    """Environment without any S2T settings."""
    for var in ("S2T_API_KEY", "S2T_API_URL", "S2T_API_TIMEOUT", "S2T_PORT", "PORT", "S2T_HOST",
                "S2T_CORS_ORIGINS", "S2T_SHUTDOWN_TIMEOUT", "S2T_LOG_LEVEL", "S2T_LOG_FORMAT"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)  # keep any local .env out of the way
    yield monkeypatch
