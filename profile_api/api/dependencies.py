"""FastAPI dependencies — resolve the shared ConnectionPool for a request."""

from fastapi import Request

from profile_api.infrastructure.database import ConnectionPool


def get_pool(request: Request) -> ConnectionPool:
    """The pool constructed by create_app, stored on app.state."""
    return request.app.state.pool
