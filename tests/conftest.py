"""Root conftest — shared test configuration and pool fixtures.

Invariants:
    - Every test gets its own SQLite file database under tmp_path
    - Every pool created through pool_factory is disposed after the test

Design Decisions:
    - SQLite file (not :memory:): several pooled connections must see the same data
"""

import os

import pytest
from sqlalchemy import text

from profile_api.infrastructure.database import ConnectionPool, build_engine

# Ensure tests never reach a real MySQL instance
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")

SEED_ROWS = [
    {"email": "a@x.com", "name": "A"},
    {"email": "b@x.com", "name": "B"},
]


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'profiles.db'}"


@pytest.fixture
def unreachable_url(tmp_path):
    """SQLite cannot create a file inside a directory that does not exist."""
    return f"sqlite+aiosqlite:///{tmp_path / 'missing-dir' / 'profiles.db'}"


@pytest.fixture
async def pool_factory():
    """Build ConnectionPools on demand; all are disposed at teardown."""
    created = []

    def _make(url, capacity=10, acquire_timeout=5.0, max_waiters=0):
        engine = build_engine(url, capacity=capacity, acquire_timeout=acquire_timeout)
        pool = ConnectionPool(engine, capacity, max_waiters=max_waiters)
        created.append(pool)
        return pool

    yield _make
    for pool in created:
        await pool.dispose()


async def seed_profiles(pool, rows=SEED_ROWS):
    async with pool.engine.begin() as conn:
        await conn.execute(text("CREATE TABLE user_data (email TEXT, name TEXT)"))
        if rows:
            await conn.execute(
                text("INSERT INTO user_data (email, name) VALUES (:email, :name)"),
                rows,
            )


@pytest.fixture
async def pool(pool_factory, db_url):
    return pool_factory(db_url)


@pytest.fixture
async def seeded_pool(pool):
    await seed_profiles(pool)
    return pool


@pytest.fixture
async def unreachable_pool(pool_factory, unreachable_url):
    return pool_factory(unreachable_url)


@pytest.fixture
def seed():
    """Create and fill user_data on a pool's database."""
    return seed_profiles
