"""Shared test fixtures for the Overpass proxy test suite."""

from typing import Callable, Sequence

import httpx
import pytest

from overpass_proxy.core.executor import RequestExecutor
from overpass_proxy.core.health_registry import HealthRegistry

ENDPOINTS = [
    "https://overpass-a.test/api/interpreter",
    "https://overpass-b.test/api/interpreter",
    "https://overpass-c.test/api/interpreter",
]

VALID_QUERY = "[out:json];node[amenity=cafe](around:500,51.5,-0.1);out;"


# ---------------------------------------------------------------------------
# Deterministic collaborators
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced clock (epoch seconds)."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FirstCandidateStrategy:
    """Always picks the first candidate, in configuration order."""

    def pick(self, candidates: Sequence[str]) -> str:
        return candidates[0]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def endpoints() -> list[str]:
    return list(ENDPOINTS)


@pytest.fixture
def valid_query() -> str:
    return VALID_QUERY


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> HealthRegistry:
    """Fresh registry (not the module-level singleton) on a fake clock."""
    return HealthRegistry(window_seconds=300.0, clock=clock)


@pytest.fixture
def first_strategy() -> FirstCandidateStrategy:
    return FirstCandidateStrategy()


@pytest.fixture
def make_executor(
    endpoints: list[str],
    registry: HealthRegistry,
    first_strategy: FirstCandidateStrategy,
) -> Callable[..., RequestExecutor]:
    """Build an executor whose upstream calls go to *handler*.

    *handler* receives the ``httpx.Request`` and returns an
    ``httpx.Response`` (or raises an ``httpx`` exception).
    """

    def _make(handler, **kwargs) -> RequestExecutor:
        kwargs.setdefault("endpoints", endpoints)
        kwargs.setdefault("registry", registry)
        kwargs.setdefault("strategy", first_strategy)
        kwargs.setdefault("attempt_timeout", 25.0)
        kwargs.setdefault("max_attempts", 3)
        return RequestExecutor(transport=httpx.MockTransport(handler), **kwargs)

    return _make
