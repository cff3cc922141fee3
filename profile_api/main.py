"""Profile API — FastAPI application factory.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - One ConnectionPool per app, constructed here and passed by reference
      (app.state.pool); disposed on shutdown
    - Global error handlers map ProfileApiError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - A failed startup probe is logged, not fatal: the app serves in degraded mode

Design Decisions:
    - create_app() over a module-level app: importing the package opens nothing
    - Middleware order: CORS outermost, readiness gate inside it, so 503s still
      carry CORS headers
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from profile_api.api.error_handlers import register_error_handlers
from profile_api.api.readiness_gate import ReadinessGateMiddleware
from profile_api.api.routes import health, profile
from profile_api.config import Settings, get_settings
from profile_api.core.errors import ProfileApiError
from profile_api.infrastructure.database import ConnectionPool
from profile_api.infrastructure.observability import setup_logging
from profile_api.services.profile_lookup import list_tables, probe_database

logger = logging.getLogger(__name__)


async def check_database(pool: ConnectionPool) -> bool:
    """Startup connectivity probe; logs the outcome and never raises."""
    try:
        await probe_database(pool)
        tables = await list_tables(pool)
    except ProfileApiError as exc:
        logger.error(
            f"Database connection failed at startup: {exc.message}",
            extra={"error_code": exc.code},
        )
        return False
    logger.info(f"Connected to database; available tables: {tables}")
    return True


def create_app(
    settings: Settings | None = None, pool: ConnectionPool | None = None,
) -> FastAPI:
    """Build the FastAPI app around an explicitly constructed pool."""
    settings = settings or get_settings()
    pool = pool or ConnectionPool.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        await check_database(app.state.pool)
        logger.info(
            "Profile API started",
            extra={"capacity": app.state.pool.capacity},
        )
        yield
        logger.info("Profile API shutting down")
        await app.state.pool.dispose()

    app = FastAPI(title="Profile API", version="1.0.0", lifespan=lifespan)
    app.state.pool = pool
    app.state.settings = settings

    app.add_middleware(ReadinessGateMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        allow_credentials=True,
    )

    app.include_router(health.router)
    app.include_router(profile.router)

    register_error_handlers(app)
    return app
