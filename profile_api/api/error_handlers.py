"""Error Handlers — global exception handlers for the Profile API.

Invariants:
    - ProfileApiError → its own status and public body (never the internal message)
    - HTTPException (unmatched route, wrong verb) → {"message": detail}
    - Exception (catch-all) → 500 {"message": "Something went wrong!"}, detail logged only

Design Decisions:
    - Three-layer handler: domain (ProfileApiError), routing (HTTPException), catch-all (Exception)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from profile_api.core.errors import ErrorSeverity, ProfileApiError

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Something went wrong!"


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_domain_error_handler(app)
    _register_http_error_handler(app)
    _register_generic_error_handler(app)


def _register_domain_error_handler(app: FastAPI) -> None:
    """Register Profile API domain/infrastructure error handler."""

    @app.exception_handler(ProfileApiError)
    async def profile_api_error_handler(request: Request, exc: ProfileApiError):
        level = (
            logging.INFO if exc.severity == ErrorSeverity.INFO else logging.ERROR
        )
        logger.log(
            level,
            f"ProfileApiError: {exc.message}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "outcome": exc.outcome.value,
            },
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_http_error_handler(app: FastAPI) -> None:
    """Register routing error handler (404 / 405)."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        logger.info(
            f"HTTP {exc.status_code} on {request.method} {request.url.path}",
            extra={"status_code": exc.status_code, "path": request.url.path},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all: never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=exc,
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": FALLBACK_MESSAGE},
        )
