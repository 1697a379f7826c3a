"""Bounded retry / failover loop over the Overpass mirrors.

Pure logic, no FastAPI imports.  Testable in isolation by injecting an
``httpx`` transport.

Attempts are strictly sequential.  Each one targets a distinct endpoint,
runs under its own deadline, and updates the health registry with the
outcome.  Upstream failures never raise out of ``execute``; they end up
in the returned ``UpstreamResult``.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

import httpx

from overpass_proxy.config import settings
from overpass_proxy.core.endpoint_selector import (
    SelectionStrategy,
    build_strategy,
    select_endpoint,
)
from overpass_proxy.core.health_registry import HealthRegistry, health_registry
from overpass_proxy.models.schemas import AttemptRecord, UpstreamResult
from overpass_proxy.utils.url_utils import endpoint_host

logger = logging.getLogger(__name__)

CancelCheck = Callable[[], Awaitable[bool]]


class RequestExecutor:
    """Drives up to ``max_attempts`` upstream calls for one client query."""

    def __init__(
        self,
        endpoints: Sequence[str] | None = None,
        registry: HealthRegistry | None = None,
        strategy: SelectionStrategy | None = None,
        attempt_timeout: float | None = None,
        max_attempts: int | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoints = list(endpoints if endpoints is not None else settings.overpass_endpoints)
        self.registry = registry if registry is not None else health_registry
        self.strategy = strategy if strategy is not None else build_strategy(settings.selection_strategy)
        self.attempt_timeout = (
            attempt_timeout if attempt_timeout is not None else settings.attempt_timeout_seconds
        )
        self.max_attempts = max_attempts if max_attempts is not None else settings.max_attempts
        self.user_agent = user_agent if user_agent is not None else settings.user_agent
        self._transport = transport

    async def execute(
        self, query: str, is_cancelled: CancelCheck | None = None
    ) -> UpstreamResult:
        """Try endpoints until one succeeds or attempts run out.

        *is_cancelled*, when given, is awaited before every attempt; a true
        result abandons the remaining attempts.
        """
        tried: list[str] = []
        attempts: list[AttemptRecord] = []
        last_error: str | None = None

        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.attempt_timeout),
            headers=headers,
            transport=self._transport,
        ) as client:
            for attempt in range(1, self.max_attempts + 1):
                if is_cancelled is not None and await is_cancelled():
                    logger.info("Client disconnected; abandoning remaining attempts.")
                    last_error = "Client disconnected"
                    break

                endpoint = select_endpoint(
                    self.endpoints, self.registry, tried, strategy=self.strategy
                )
                if endpoint is None:
                    break
                tried.append(endpoint)

                record, content, data = await self._attempt(client, endpoint, query)
                attempts.append(record)

                if record.outcome == "success":
                    self.registry.mark_healthy(endpoint)
                    logger.info(
                        "Served by %s on attempt %d/%d.",
                        endpoint_host(endpoint), attempt, self.max_attempts,
                    )
                    return UpstreamResult(
                        ok=True,
                        endpoint=endpoint,
                        content=content,
                        data=data,
                        attempts=attempts,
                    )

                self.registry.mark_failed(endpoint)
                last_error = record.error
                logger.warning(
                    "Attempt %d/%d on %s failed (%s): %s",
                    attempt, self.max_attempts, endpoint_host(endpoint),
                    record.outcome, record.error,
                )

        logger.error(
            "All Overpass endpoints failed after %d attempts: %s",
            len(attempts), last_error,
        )
        return UpstreamResult(ok=False, last_error=last_error, attempts=attempts)

    async def _attempt(
        self, client: httpx.AsyncClient, endpoint: str, query: str
    ) -> tuple[AttemptRecord, bytes, object]:
        """Make one upstream call and classify its outcome."""
        try:
            response = await asyncio.wait_for(
                client.post(endpoint, data={"data": query}),
                timeout=self.attempt_timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return (
                AttemptRecord(
                    endpoint=endpoint,
                    outcome="timeout",
                    error=f"Timed out after {self.attempt_timeout:g}s",
                ),
                b"",
                None,
            )
        except httpx.HTTPError as exc:
            return (
                AttemptRecord(
                    endpoint=endpoint,
                    outcome="transport",
                    error=str(exc) or type(exc).__name__,
                ),
                b"",
                None,
            )

        if not response.is_success:
            return (
                AttemptRecord(
                    endpoint=endpoint,
                    outcome="http_status",
                    error=f"Overpass returned {response.status_code}",
                ),
                b"",
                None,
            )

        try:
            data = response.json()
        except ValueError as exc:
            return (
                AttemptRecord(
                    endpoint=endpoint,
                    outcome="invalid_json",
                    error=f"Invalid JSON from Overpass: {exc}",
                ),
                b"",
                None,
            )

        return AttemptRecord(endpoint=endpoint, outcome="success"), response.content, data


# Module-level singleton wired to the shared health registry.
executor = RequestExecutor()
