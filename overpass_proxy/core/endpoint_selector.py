"""Upstream endpoint selection.

Two tiers: pick among untried endpoints that are healthy; if none are,
fall back to the untried endpoint whose last failure is oldest, so a
global outage still makes progress.
"""

import logging
import random
import threading
from typing import Iterable, Protocol, Sequence

from overpass_proxy.core.health_registry import HealthRegistry

logger = logging.getLogger(__name__)


class SelectionStrategy(Protocol):
    """Chooses one endpoint out of a non-empty list of equally trusted candidates."""

    def pick(self, candidates: Sequence[str]) -> str:
        ...


class RandomStrategy:
    """Uniform random choice, spreading load across mirrors."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def pick(self, candidates: Sequence[str]) -> str:
        return self._rng.choice(list(candidates))


class RoundRobinStrategy:
    """Deterministic rotation over whatever candidates are offered."""

    def __init__(self) -> None:
        self._counter = 0
        self._lock = threading.Lock()

    def pick(self, candidates: Sequence[str]) -> str:
        with self._lock:
            index = self._counter % len(candidates)
            self._counter += 1
        return candidates[index]


_STRATEGIES = {
    "random": RandomStrategy,
    "round_robin": RoundRobinStrategy,
}


def build_strategy(name: str) -> SelectionStrategy:
    """Instantiate a strategy by its configuration name."""
    try:
        return _STRATEGIES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown selection strategy '{name}'. "
            f"Expected one of: {', '.join(sorted(_STRATEGIES))}"
        ) from None


def select_endpoint(
    endpoints: Sequence[str],
    registry: HealthRegistry,
    already_tried: Iterable[str],
    now: float | None = None,
    strategy: SelectionStrategy | None = None,
) -> str | None:
    """Return the next endpoint to try, or ``None`` once all have been tried.

    Never returns a member of *already_tried*.
    """
    tried = set(already_tried)
    candidates = [e for e in endpoints if e not in tried]
    if not candidates:
        return None

    if now is None:
        now = registry.now()

    healthy = [e for e in candidates if registry.is_healthy(e, now)]
    if healthy:
        return (strategy or RandomStrategy()).pick(healthy)

    # Every candidate failed recently: least-recently-failed first.
    # sorted() is stable, so ties keep configuration order.
    fallback = sorted(candidates, key=lambda e: registry.last_failure(e) or 0.0)[0]
    logger.warning(
        "All %d remaining endpoints failed recently; falling back to %s",
        len(candidates), fallback,
    )
    return fallback
