"""Readiness Gate — refuses work up front when the database cannot lend a connection.

Invariants:
    - Exempt paths (health, db-test) bypass the gate even when the database is down
    - Every other request borrows and immediately returns one connection first
    - On DependencyUnavailableError the handler is never invoked; the response is
      503 with a machine-readable reason
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from profile_api.core.domain_types import GateDecision
from profile_api.core.errors import DependencyUnavailableError

logger = logging.getLogger(__name__)

EXEMPT_PATHS = frozenset({"/api/health", "/api/db-test"})


class ReadinessGateMiddleware(BaseHTTPMiddleware):
    """Probe the pool before admitting a request to business logic.

    The pool is looked up on ``request.app.state.pool`` at request time, so the
    middleware can be installed before the pool exists.
    """

    def __init__(
        self, app: ASGIApp, exempt_paths: frozenset[str] = EXEMPT_PATHS,
    ) -> None:
        super().__init__(app)
        self.exempt_paths = exempt_paths

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path.rstrip("/") or "/"
        if path in self.exempt_paths:
            self._log_decision(request, GateDecision.SKIPPED)
            return await call_next(request)

        try:
            await request.app.state.pool.ping()
        except DependencyUnavailableError as exc:
            logger.warning(
                f"Readiness gate rejected {request.method} {request.url.path}",
                extra={
                    "gate": GateDecision.REJECTED.value,
                    "reason": exc.reason.value,
                    "path": request.url.path,
                    "outcome": exc.outcome.value,
                },
            )
            return JSONResponse(exc.to_response(), status_code=exc.http_status)

        self._log_decision(request, GateDecision.PASSED)
        return await call_next(request)

    def _log_decision(self, request: Request, decision: GateDecision) -> None:
        logger.debug(
            f"Readiness gate {decision.value} {request.method} {request.url.path}",
            extra={"gate": decision.value, "path": request.url.path},
        )
