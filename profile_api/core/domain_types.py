"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ProfileKey wraps the lookup key (email); never pass a bare str to the executor
    - Every request ends in exactly one RequestOutcome
    - All valid states encoded as Enums, no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON / log fields without custom encoders
"""

from enum import Enum
from typing import Any, NewType


# ─── Identity Types ──────────────────────────────────────────────

ProfileKey = NewType("ProfileKey", str)


# ─── Value Types ─────────────────────────────────────────────────

ProfileRow = dict[str, Any]


# ─── Enums ───────────────────────────────────────────────────────

class RequestOutcome(str, Enum):
    """Terminal outcome of a request, derived from result cardinality and error channel."""
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    DEPENDENCY_UNAVAILABLE = "dependency_unavailable"
    INTERNAL_ERROR = "internal_error"

    @property
    def http_status(self) -> int:
        return _OUTCOME_STATUS[self]


_OUTCOME_STATUS = {
    RequestOutcome.SUCCESS: 200,
    RequestOutcome.NOT_FOUND: 404,
    RequestOutcome.DEPENDENCY_UNAVAILABLE: 503,
    RequestOutcome.INTERNAL_ERROR: 500,
}


class GateDecision(str, Enum):
    """What the readiness gate did with a request."""
    SKIPPED = "skipped"
    PASSED = "passed"
    REJECTED = "rejected"


class UnavailableReason(str, Enum):
    """Machine-readable reason attached to 503 responses."""
    POOL_EXHAUSTED = "pool_exhausted"
    POOL_QUEUE_FULL = "pool_queue_full"
    CONNECTION_FAILED = "connection_failed"
