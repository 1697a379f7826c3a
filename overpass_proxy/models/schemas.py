from datetime import datetime
from typing import Any

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Internal data models
# ---------------------------------------------------------------------------

class ValidationResult(BaseModel):
    """Outcome of running a query through the validator.

    ``reason`` is set only when the query was rejected.
    """

    valid: bool
    reason: str | None = None

    @classmethod
    def accept(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def reject(cls, reason: str) -> "ValidationResult":
        return cls(valid=False, reason=reason)


class AttemptRecord(BaseModel):
    """One upstream call made while serving a client request."""

    endpoint: str
    outcome: str    # "success", "http_status", "timeout", "transport", "invalid_json"
    error: str | None = None


class UpstreamResult(BaseModel):
    """Terminal state of the retry loop.

    On success ``content`` holds the upstream body bytes exactly as received
    and ``data`` the parsed JSON.  On failure ``last_error`` names the most
    recent per-attempt error, if any.
    """

    ok: bool
    endpoint: str | None = None
    content: bytes = b""
    data: Any = None
    last_error: str | None = None
    attempts: list[AttemptRecord] = []


# ---------------------------------------------------------------------------
# API response models
# ---------------------------------------------------------------------------

class EndpointStatus(BaseModel):
    """Health snapshot of a single upstream mirror."""

    url: str
    host: str
    healthy: bool
    last_failure: datetime | None = None


class HealthResponse(BaseModel):
    """Returned from GET /api/health."""

    status: str
    endpoints_count: int
    healthy_count: int
    endpoints: list[EndpointStatus]
