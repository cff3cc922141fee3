"""Connection Pool — bounded async pool that lends connections to one request at a time.

Invariants:
    - Concurrently checked-out connections never exceed `capacity`
      (pool_size=capacity, max_overflow=0)
    - A borrowed connection is released exactly once on every exit path
      (success, query error, handler error, cancellation)
    - Borrow waits are bounded by `acquire_timeout`; connect/auth failures and
      timeouts surface as DependencyUnavailableError, never as raw driver errors
    - Release never raises

Design Decisions:
    - Explicitly constructed by the app factory and passed by reference; no
      module-level singleton
    - pool_pre_ping: a borrow proves the connection is alive, so ping() doubles
      as the readiness probe
    - Release is shielded so a disconnecting client still returns its connection
"""

import asyncio
import logging
import ssl
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator

from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncConnection, AsyncEngine, create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool

from profile_api.config import Settings
from profile_api.core.domain_types import UnavailableReason
from profile_api.core.errors import DependencyUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolStats:
    """Point-in-time pool counters."""
    capacity: int
    checked_out: int
    idle: int
    waiting: int
    peak_checked_out: int


def build_connect_args(
    database_url: str, tls_mode: str = "unverified", connect_timeout: int = 10,
) -> dict:
    """Driver connect arguments; only the MySQL driver takes timeout and TLS here."""
    if make_url(database_url).get_backend_name() != "mysql":
        return {}
    args: dict = {"connect_timeout": connect_timeout}
    if tls_mode == "verified":
        args["ssl"] = ssl.create_default_context()
    elif tls_mode == "unverified":
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        args["ssl"] = ctx
    return args


def build_engine(
    database_url: str,
    capacity: int = 10,
    acquire_timeout: float = 10.0,
    recycle: int = 3600,
    connect_args: dict | None = None,
) -> AsyncEngine:
    """Create the async engine backing a ConnectionPool."""
    return create_async_engine(
        database_url,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=capacity,
        max_overflow=0,
        pool_timeout=acquire_timeout,
        pool_pre_ping=True,
        pool_recycle=recycle,
        connect_args=connect_args or {},
    )


class ConnectionPool:
    """Lends and reclaims database connections, bounded by `capacity`."""

    def __init__(
        self, engine: AsyncEngine, capacity: int, max_waiters: int = 0,
    ):
        self.engine = engine
        self.capacity = capacity
        self.max_waiters = max_waiters
        self._checked_out = 0
        self._waiting = 0
        self._peak = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConnectionPool":
        url = settings.sqlalchemy_url
        engine = build_engine(
            url,
            capacity=settings.pool_capacity,
            acquire_timeout=settings.pool_acquire_timeout_seconds,
            recycle=settings.pool_recycle_seconds,
            connect_args=build_connect_args(
                url,
                tls_mode=settings.database_tls_mode,
                connect_timeout=settings.connect_timeout_seconds,
            ),
        )
        return cls(
            engine, settings.pool_capacity, max_waiters=settings.pool_max_waiters,
        )

    @asynccontextmanager
    async def borrow(self) -> AsyncGenerator[AsyncConnection, None]:
        """Scoped acquisition: the connection goes back to the pool on exit."""
        conn = await self._acquire()
        try:
            yield conn
        finally:
            await self._release(conn)

    async def ping(self) -> None:
        """Borrow and immediately release a connection to prove liveness."""
        async with self.borrow():
            pass

    def stats(self) -> PoolStats:
        return PoolStats(
            capacity=self.capacity,
            checked_out=self._checked_out,
            idle=self.engine.sync_engine.pool.checkedin(),
            waiting=self._waiting,
            peak_checked_out=self._peak,
        )

    async def dispose(self) -> None:
        """Close every pooled connection (application shutdown)."""
        await self.engine.dispose()
        logger.info("Connection pool disposed")

    async def _acquire(self) -> AsyncConnection:
        if self.max_waiters and (
            self._checked_out + self._waiting >= self.capacity + self.max_waiters
        ):
            self._log_unavailable(UnavailableReason.POOL_QUEUE_FULL)
            raise DependencyUnavailableError(
                UnavailableReason.POOL_QUEUE_FULL,
                f"{self._waiting} borrowers already waiting",
            )
        self._waiting += 1
        try:
            conn = await self.engine.connect()
        except sa_exc.TimeoutError as e:
            self._log_unavailable(UnavailableReason.POOL_EXHAUSTED, e)
            raise DependencyUnavailableError(
                UnavailableReason.POOL_EXHAUSTED, str(e),
            ) from e
        except (sa_exc.DBAPIError, OSError) as e:
            self._log_unavailable(UnavailableReason.CONNECTION_FAILED, e)
            raise DependencyUnavailableError(
                UnavailableReason.CONNECTION_FAILED, str(e),
            ) from e
        finally:
            self._waiting -= 1
        self._checked_out += 1
        self._peak = max(self._peak, self._checked_out)
        return conn

    async def _release(self, conn: AsyncConnection) -> None:
        self._checked_out -= 1
        try:
            await asyncio.shield(conn.close())
        except (sa_exc.SQLAlchemyError, OSError) as e:
            logger.warning(f"Connection release failed: {e}")

    def _log_unavailable(
        self, reason: UnavailableReason, cause: Exception | None = None,
    ) -> None:
        logger.error(
            f"Connection borrow failed: {cause or reason.value}",
            extra={
                "reason": reason.value,
                "checked_out": self._checked_out,
                "capacity": self.capacity,
                "waiting": self._waiting,
            },
        )
