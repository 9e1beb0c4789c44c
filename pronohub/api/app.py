"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pronohub.api.routes import competitions, health, stats, sync, tournaments
from pronohub.config import VERSION, Config
from pronohub.utilities.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler - runs on startup and shutdown."""
    from pronohub.consumers.scheduler import start_scheduler, stop_scheduler
    from pronohub.database import get_db, init_db

    # Startup
    setup_logging()
    logger.info("[STARTUP] Starting pronohub %s...", VERSION)

    init_db()

    if start_scheduler(get_db):
        logger.info("[STARTUP] Background scheduler started")
    else:
        logger.info("[STARTUP] Background scheduler not started")

    yield

    # Shutdown
    logger.info("[SHUTDOWN] Stopping pronohub...")
    stop_scheduler()
    logger.info("[SHUTDOWN] pronohub stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="pronohub score sync",
        description="Score synchronization for football prediction tournaments",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(sync.router, prefix="/api/v1", tags=["Sync"])
    app.include_router(competitions.router, prefix="/api/v1", tags=["Competitions"])
    app.include_router(tournaments.router, prefix="/api/v1", tags=["Tournaments"])
    app.include_router(stats.router, prefix="/api/v1/stats", tags=["Stats"])

    return app


app = create_app()


def main() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(app, host=Config.API_HOST, port=Config.API_PORT)
