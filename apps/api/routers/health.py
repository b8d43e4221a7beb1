"""Health check router: liveness and readiness.

Readiness pings the transaction store in a worker thread with a 2s
timeout so a slow backend cannot hang the probe.
"""

import asyncio

import structlog
from fastapi import APIRouter, Depends

from apps.api.deps import get_store
from packages.storage.base import TransactionStore

router = APIRouter(tags=["health"])
logger = structlog.get_logger()

STORE_TIMEOUT_SECONDS = 2


@router.get("/health")
async def health_liveness():
    """Liveness probe. Returns 200 if the API process is running."""
    return {"status": "healthy", "service": "api"}


@router.get("/health/ready")
async def health_readiness(store: TransactionStore = Depends(get_store)):
    """Readiness probe. Checks the transaction store is reachable."""
    status = {
        "status": "healthy",
        "services": {
            "api": "up",
            "store": "unknown",
        },
    }

    try:
        loop = asyncio.get_running_loop()
        reachable = await asyncio.wait_for(
            loop.run_in_executor(None, store.ping),
            timeout=STORE_TIMEOUT_SECONDS,
        )
        if reachable:
            status["services"]["store"] = "up"
        else:
            status["services"]["store"] = "down"
            status["status"] = "degraded"
    except asyncio.TimeoutError:
        status["services"]["store"] = "timeout"
        status["status"] = "degraded"
        logger.warning("store_health_timeout", timeout_s=STORE_TIMEOUT_SECONDS)

    return status
