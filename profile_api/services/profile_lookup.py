"""Profile Lookup — single parameterized query per request, mapped to an outcome.

Invariants:
    - Exactly one query per lookup; the key is always a bound parameter
    - 0 rows → UserNotFoundError, >=1 rows → first row as a plain dict
    - Any borrow or driver failure → QueryFailureError; the cause goes to the
      log only
    - The borrowed connection is released exactly once (ConnectionPool.borrow)

Design Decisions:
    - Duplicate keys return the first row in store order: user_data.email is
      not declared unique, so this is the defined contract rather than an accident
    - Binary columns (BLOB, VARBINARY) are returned base64-encoded; every
      other value passes through unchanged
"""

import base64
import logging

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from profile_api.core.domain_types import ProfileKey, ProfileRow
from profile_api.core.errors import (
    DependencyUnavailableError, QueryFailureError, UserNotFoundError,
)
from profile_api.infrastructure.database import ConnectionPool

logger = logging.getLogger(__name__)

PROFILE_TABLE = "user_data"
LOOKUP_QUERY = text(f"SELECT * FROM {PROFILE_TABLE} WHERE email = :email")
PROBE_QUERY = text("SELECT 1 AS ok")


async def lookup_by_key(pool: ConnectionPool, key: ProfileKey) -> ProfileRow:
    """Fetch the profile row for `key`."""
    try:
        async with pool.borrow() as conn:
            result = await conn.execute(LOOKUP_QUERY, {"email": key})
            row = result.mappings().first()
    except DependencyUnavailableError as e:
        logger.error(
            f"Profile lookup could not borrow a connection: {e.message}",
            extra={"error_code": e.code, "reason": e.reason.value},
        )
        raise QueryFailureError("borrow", e.message) from e
    except SQLAlchemyError as e:
        logger.error(f"Database error during profile lookup: {e}")
        raise QueryFailureError("query", str(e)) from e

    if row is None:
        raise UserNotFoundError(key)
    return encode_row(row)


def encode_row(row) -> ProfileRow:
    """Copy a result row into a JSON-safe dict; binary columns become base64 text."""
    return {
        column: base64.b64encode(value).decode("ascii")
        if isinstance(value, (bytes, bytearray, memoryview)) else value
        for column, value in row.items()
    }


async def probe_database(pool: ConnectionPool) -> ProfileRow:
    """Run the trivial liveness query used by /api/db-test."""
    async with pool.borrow() as conn:
        try:
            result = await conn.execute(PROBE_QUERY)
            row = result.mappings().one()
        except SQLAlchemyError as e:
            logger.error(f"Database probe query failed: {e}")
            raise QueryFailureError("probe", str(e)) from e
    return dict(row)


async def list_tables(pool: ConnectionPool) -> list[str]:
    """Table names visible to the pool's user (startup diagnostics)."""
    async with pool.borrow() as conn:
        try:
            return await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names(),
            )
        except SQLAlchemyError as e:
            logger.error(f"Listing tables failed: {e}")
            raise QueryFailureError("inspect", str(e)) from e
