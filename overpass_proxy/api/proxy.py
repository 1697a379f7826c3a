"""Overpass proxy endpoint.

Thin HTTP layer: no validation rules or retry logic live here.
Just: parse body → validate → execute → shape response.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import Response

from overpass_proxy.config import settings
from overpass_proxy.core import executor as executor_module
from overpass_proxy.core.query_validator import validate
from overpass_proxy.core.response_shaper import error_response, shape

logger = logging.getLogger(__name__)

router = APIRouter()

_ALL_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS", "TRACE"]


@router.api_route(settings.proxy_path, methods=_ALL_METHODS)
async def overpass_proxy(request: Request) -> Response:
    """Validate an Overpass QL query and run it against the mirror pool."""
    if request.method != "POST":
        return error_response(405, "Method not allowed")

    # --- Parse body ------------------------------------------------------
    try:
        body = await request.json()
    except ValueError:
        return error_response(400, "Invalid JSON body")

    query = body.get("query") if isinstance(body, dict) else None
    if not query or not isinstance(query, str):
        return error_response(400, "query is required")

    # Checked before validation so huge strings never hit the regexes.
    if len(query) > settings.max_query_length:
        return error_response(
            400, "Query too large", maxSize=settings.max_query_length
        )

    # --- Validate --------------------------------------------------------
    validation = validate(query)
    if not validation.valid:
        return error_response(400, validation.reason)

    # --- Execute ---------------------------------------------------------
    result = await executor_module.executor.execute(
        query, is_cancelled=request.is_disconnected
    )
    return shape(result)
