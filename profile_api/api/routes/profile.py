"""Profile Route — GET a user profile by email.

Invariants:
    - 200 with the stored row verbatim, 404 when absent, 500 on query failure
    - 503 is produced upstream by the readiness gate, never here
    - Errors are raised, not rendered: translation happens in error_handlers.py
"""

import logging

from fastapi import APIRouter, Depends

from profile_api.api.dependencies import get_pool
from profile_api.core.domain_types import ProfileKey, RequestOutcome
from profile_api.infrastructure.database import ConnectionPool
from profile_api.services.profile_lookup import lookup_by_key

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("/{email}")
async def get_profile(email: str, pool: ConnectionPool = Depends(get_pool)):
    """Look up one profile row by email."""
    row = await lookup_by_key(pool, ProfileKey(email))
    logger.debug(
        "Profile lookup resolved",
        extra={"outcome": RequestOutcome.SUCCESS.value},
    )
    return row
