"""Health & DB Test — liveness and database probe endpoints.

Invariants:
    - GET /api/health always returns 200 if the process is up (no dependency check)
    - GET /api/db-test runs one trivial query and reports pool counters;
      failures return 500 with an error code, never driver text
    - Both paths are exempt from the readiness gate
"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from profile_api.api.dependencies import get_pool
from profile_api.core.errors import ProfileApiError
from profile_api.infrastructure.database import ConnectionPool
from profile_api.services.profile_lookup import probe_database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {"status": "Server is running"}


@router.get("/db-test")
async def db_test(pool: ConnectionPool = Depends(get_pool)):
    """Database probe: issues SELECT 1 through the pool."""
    try:
        row = await probe_database(pool)
    except ProfileApiError as exc:
        logger.error(
            f"Database test failed: {exc.message}",
            extra={"error_code": exc.code, "path": "/api/db-test"},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Database connection failed", "error": exc.code},
        )
    return {
        "status": "Database connection successful",
        "result": row,
        "pool": asdict(pool.stats()),
    }
