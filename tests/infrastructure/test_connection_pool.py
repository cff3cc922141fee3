"""Connection Pool — tests for bounded lending, scoped release, and failure mapping.

Tests cover:
    - borrow() counts the connection out and back in
    - release happens on the error path
    - pool exhaustion, waiter bound, and unreachable store → DependencyUnavailableError
    - cancelled borrowers (mid-query or still waiting) leave the counters restored
    - peak concurrent borrows never exceed capacity under load
    - engine / connect-args construction from settings
"""

import asyncio
import ssl
from contextlib import AsyncExitStack

import pytest
from sqlalchemy import text

from profile_api.config import Settings
from profile_api.core.domain_types import UnavailableReason
from profile_api.core.errors import DependencyUnavailableError
from profile_api.infrastructure.database import (
    ConnectionPool, build_connect_args,
)


# ─── borrow / release ────────────────────────────────────────────

async def test_borrow_checks_out_and_returns_connection(pool):
    async with pool.borrow() as conn:
        result = await conn.execute(text("SELECT 1"))
        assert result.scalar() == 1
        assert pool.stats().checked_out == 1

    stats = pool.stats()
    assert stats.checked_out == 0
    assert stats.idle == 1


async def test_connection_released_when_body_raises(pool):
    with pytest.raises(RuntimeError):
        async with pool.borrow():
            raise RuntimeError("handler blew up")

    assert pool.stats().checked_out == 0
    assert pool.stats().idle == 1


async def test_ping_leaves_no_connection_checked_out(pool):
    await pool.ping()
    assert pool.stats().checked_out == 0
    assert pool.stats().peak_checked_out == 1


# ─── Unavailable ─────────────────────────────────────────────────

async def test_exhausted_pool_times_out_with_pool_exhausted(pool_factory, db_url):
    pool = pool_factory(db_url, capacity=1, acquire_timeout=0.05)

    async with pool.borrow():
        with pytest.raises(DependencyUnavailableError) as exc_info:
            async with pool.borrow():
                pass

    assert exc_info.value.reason == UnavailableReason.POOL_EXHAUSTED
    assert pool.stats().checked_out == 0
    assert pool.stats().waiting == 0


async def test_waiter_bound_rejects_immediately(pool_factory, db_url):
    pool = pool_factory(db_url, capacity=1, acquire_timeout=2.0, max_waiters=1)

    async def wait_for_connection():
        async with pool.borrow():
            return "served"

    async with pool.borrow():
        waiter = asyncio.create_task(wait_for_connection())
        await asyncio.sleep(0.05)
        assert pool.stats().waiting == 1

        with pytest.raises(DependencyUnavailableError) as exc_info:
            await pool.ping()
        assert exc_info.value.reason == UnavailableReason.POOL_QUEUE_FULL

    assert await waiter == "served"
    assert pool.stats().checked_out == 0


async def test_unreachable_store_maps_to_connection_failed(unreachable_pool):
    with pytest.raises(DependencyUnavailableError) as exc_info:
        await unreachable_pool.ping()

    assert exc_info.value.reason == UnavailableReason.CONNECTION_FAILED
    assert exc_info.value.http_status == 503
    assert unreachable_pool.stats().checked_out == 0
    assert unreachable_pool.stats().waiting == 0


# ─── Cancellation ────────────────────────────────────────────────

async def test_cancel_during_query_returns_connection(pool):
    in_query = asyncio.Event()

    async def disconnecting_request():
        async with pool.borrow() as conn:
            await conn.execute(text("SELECT 1"))
            in_query.set()
            await asyncio.sleep(10)

    task = asyncio.create_task(disconnecting_request())
    await in_query.wait()
    assert pool.stats().checked_out == 1

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    stats = pool.stats()
    assert stats.checked_out == 0
    assert stats.idle == 1


async def test_cancel_while_waiting_clears_waiter(pool_factory, db_url):
    pool = pool_factory(db_url, capacity=1, acquire_timeout=5.0)

    async with pool.borrow():
        waiter = asyncio.create_task(pool.ping())
        await asyncio.sleep(0.05)
        assert pool.stats().waiting == 1

        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        assert pool.stats().waiting == 0
        assert pool.stats().checked_out == 1

    stats = pool.stats()
    assert stats.checked_out == 0
    assert stats.waiting == 0
    assert stats.idle == 1


# ─── Capacity under load ─────────────────────────────────────────

async def test_peak_borrows_never_exceed_capacity(pool_factory, db_url):
    pool = pool_factory(db_url, capacity=10, acquire_timeout=10.0)

    async def hold_briefly():
        async with pool.borrow() as conn:
            await conn.execute(text("SELECT 1"))
            await asyncio.sleep(0.01)

    await asyncio.gather(*(hold_briefly() for _ in range(50)))

    stats = pool.stats()
    assert 1 <= stats.peak_checked_out <= 10
    assert stats.checked_out == 0
    assert stats.idle <= 10


async def test_idle_count_returns_to_warm_value(pool):
    async with AsyncExitStack() as stack:
        for _ in range(pool.capacity):
            await stack.enter_async_context(pool.borrow())
        assert pool.stats().checked_out == pool.capacity
    warm_idle = pool.stats().idle
    assert warm_idle == pool.capacity

    await asyncio.gather(*(pool.ping() for _ in range(30)))

    assert pool.stats().idle == warm_idle
    assert pool.stats().checked_out == 0


# ─── Construction ────────────────────────────────────────────────

async def test_from_settings_applies_capacity(db_url):
    settings = Settings(_env_file=None, database_url=db_url, pool_capacity=3)
    pool = ConnectionPool.from_settings(settings)
    try:
        assert pool.capacity == 3
        assert pool.engine.sync_engine.pool.size() == 3
        await pool.ping()
    finally:
        await pool.dispose()


def test_connect_args_empty_for_non_mysql():
    assert build_connect_args("sqlite+aiosqlite:///x.db") == {}


def test_connect_args_unverified_tls_skips_certificate_checks():
    args = build_connect_args(
        "mysql+aiomysql://u:p@db:3306/app", tls_mode="unverified", connect_timeout=7,
    )
    assert args["connect_timeout"] == 7
    assert args["ssl"].verify_mode == ssl.CERT_NONE
    assert args["ssl"].check_hostname is False


def test_connect_args_verified_tls_requires_certificates():
    args = build_connect_args("mysql+aiomysql://u:p@db/app", tls_mode="verified")
    assert args["ssl"].verify_mode == ssl.CERT_REQUIRED
    assert args["ssl"].check_hostname is True


def test_connect_args_disabled_tls_sends_no_ssl():
    args = build_connect_args("mysql+aiomysql://u:p@db/app", tls_mode="disabled")
    assert "ssl" not in args
