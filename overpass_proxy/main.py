import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from overpass_proxy.api import health, proxy
from overpass_proxy.config import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Overpass Proxy",
    description="Validating, failover-aware proxy in front of Overpass API mirrors",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(proxy.router)


@app.on_event("startup")
def startup() -> None:
    """Log the mirror pool this process will fail over across."""
    logger.info(
        "Proxying %s across %d Overpass endpoints (timeout %.0fs, %d attempts).",
        settings.proxy_path,
        len(settings.overpass_endpoints),
        settings.attempt_timeout_seconds,
        settings.max_attempts,
    )
