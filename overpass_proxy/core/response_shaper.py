"""Outbound response construction.

Maps each disposition of a proxy request onto status, headers and body.
The only core module that touches FastAPI types.
"""

from typing import Any

from fastapi.responses import JSONResponse, Response

from overpass_proxy.config import settings
from overpass_proxy.models.schemas import UpstreamResult
from overpass_proxy.utils.url_utils import endpoint_host


def cache_control_header() -> str:
    return (
        f"s-maxage={settings.cache_max_age_seconds}, "
        f"stale-while-revalidate={settings.stale_while_revalidate_seconds}"
    )


def success_response(result: UpstreamResult) -> Response:
    """200 with the upstream body bytes passed through untouched."""
    return Response(
        content=result.content,
        status_code=200,
        media_type="application/json",
        headers={
            "Cache-Control": cache_control_header(),
            "X-Upstream-Endpoint": endpoint_host(result.endpoint or ""),
        },
    )


def unavailable_response(result: UpstreamResult) -> JSONResponse:
    """503 once every attempt is spent.  Carries only the last error."""
    return JSONResponse(
        status_code=503,
        content={
            "error": "Upstream unavailable",
            "message": result.last_error or "All endpoints failed",
        },
        headers={"Retry-After": str(settings.retry_after_seconds)},
    )


def error_response(status_code: int, error: str, **extra: Any) -> JSONResponse:
    """Client-side errors (400, 405): ``{"error": ...}`` plus any extra fields."""
    return JSONResponse(status_code=status_code, content={"error": error, **extra})


def shape(result: UpstreamResult) -> Response:
    if result.ok:
        return success_response(result)
    return unavailable_response(result)
