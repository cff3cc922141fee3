"""API test fixtures — FastAPI app around an injected pool + httpx test client.

Invariants:
    - The pool is passed to create_app directly (ASGITransport runs no lifespan)
    - raise_app_exceptions=False so the catch-all handler's 500 reaches the test
"""

from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient

from profile_api.config import Settings
from profile_api.main import create_app


def make_app(pool):
    settings = Settings(_env_file=None, log_format="text")
    return create_app(settings=settings, pool=pool)


@pytest.fixture
def open_client():
    """Open an AsyncClient against a fresh app wrapping `pool`."""

    @asynccontextmanager
    async def _open(pool):
        app = make_app(pool)
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c

    return _open


@pytest.fixture
async def client(open_client, seeded_pool):
    async with open_client(seeded_pool) as c:
        yield c


@pytest.fixture
async def outage_client(open_client, unreachable_pool):
    async with open_client(unreachable_pool) as c:
        yield c
