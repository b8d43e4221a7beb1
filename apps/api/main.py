"""Bank statement API: FastAPI entry point.

Routes are served from domain modules under apps/api/domains/, all
mounted under /api/v1 with RFC 7807 error bodies.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apps.api.core.config import settings
from apps.api.core.errors import register_error_handlers
from apps.api.core.logging import setup_logging
from apps.api.domains.accounts.router import router as accounts_router
from apps.api.domains.categorization.router import router as categorization_router
from apps.api.domains.ingestion.router import router as ingestion_router
from apps.api.domains.transfers.router import router as transfers_router
from apps.api.routers import health

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown hooks."""
    setup_logging(log_level=settings.log_level, json_output=settings.json_logs)
    logger.info(
        "app_starting",
        version=settings.APP_VERSION,
        storage_backend=settings.STORAGE_BACKEND,
    )
    yield
    logger.info("app_stopping")


app = FastAPI(
    title="Statement API",
    description="Bank statement import, categorization and transfer matching.",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/api/v1")
app.include_router(ingestion_router, prefix="/api/v1")
app.include_router(categorization_router, prefix="/api/v1")
app.include_router(transfers_router, prefix="/api/v1")
app.include_router(accounts_router, prefix="/api/v1")
