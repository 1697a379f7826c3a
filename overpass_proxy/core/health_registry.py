"""Process-local record of recent upstream failures.

No selection logic here.  Just: mark_failed, mark_healthy,
is_healthy, last_failure.

Entries are last-write-wins and guarded by a lock so concurrent
requests can share one registry.  Nothing is persisted; a fresh
process starts with every endpoint healthy.
"""

import logging
import threading
import time
from typing import Callable

from overpass_proxy.config import settings

logger = logging.getLogger(__name__)


class HealthRegistry:
    """Maps endpoint URL → timestamp (epoch seconds) of its last failure.

    An endpoint without an entry, or whose entry is older than
    ``window_seconds``, counts as healthy.
    """

    def __init__(
        self,
        window_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if window_seconds is None:
            window_seconds = settings.health_window_seconds
        self.window_seconds = window_seconds
        self._clock = clock
        self._failures: dict[str, float] = {}
        self._lock = threading.Lock()

    def now(self) -> float:
        return self._clock()

    def mark_failed(self, endpoint: str) -> None:
        timestamp = self._clock()
        with self._lock:
            self._failures[endpoint] = timestamp
        logger.debug("Marked %s failed at %.3f", endpoint, timestamp)

    def mark_healthy(self, endpoint: str) -> None:
        with self._lock:
            removed = self._failures.pop(endpoint, None)
        if removed is not None:
            logger.debug("Cleared failure record for %s", endpoint)

    def last_failure(self, endpoint: str) -> float | None:
        with self._lock:
            return self._failures.get(endpoint)

    def is_healthy(self, endpoint: str, now: float | None = None) -> bool:
        if now is None:
            now = self._clock()
        failed_at = self.last_failure(endpoint)
        return failed_at is None or now - failed_at > self.window_seconds

    def snapshot(self) -> dict[str, float]:
        """Copy of every failure record currently held."""
        with self._lock:
            return dict(self._failures)

    def clear(self) -> None:
        with self._lock:
            self._failures.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._failures)


# Module-level singleton shared by every request in this process.
health_registry = HealthRegistry()
