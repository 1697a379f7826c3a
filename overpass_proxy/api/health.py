from datetime import datetime, timezone

from fastapi import APIRouter

from overpass_proxy.core import executor as executor_module
from overpass_proxy.models.schemas import EndpointStatus, HealthResponse
from overpass_proxy.utils.url_utils import endpoint_host

router = APIRouter()


@router.get("/api/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    executor = executor_module.executor
    registry = executor.registry
    now = registry.now()

    endpoints: list[EndpointStatus] = []
    for url in executor.endpoints:
        failed_at = registry.last_failure(url)
        endpoints.append(
            EndpointStatus(
                url=url,
                host=endpoint_host(url),
                healthy=registry.is_healthy(url, now),
                last_failure=(
                    datetime.fromtimestamp(failed_at, tz=timezone.utc)
                    if failed_at is not None
                    else None
                ),
            )
        )

    healthy_count = sum(1 for e in endpoints if e.healthy)
    return HealthResponse(
        status="healthy" if healthy_count else "degraded",
        endpoints_count=len(endpoints),
        healthy_count=healthy_count,
        endpoints=endpoints,
    )
