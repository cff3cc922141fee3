"""Error Hierarchy — typed, categorized exceptions for all Profile API failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
      and a RequestOutcome that fixes its HTTP status
    - `message` is for operators (logs); `public_message` is the only text a client sees
    - to_response() never includes driver errors or stack traces

Design Decisions:
    - Single hierarchy with ProfileApiError base: one FastAPI handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass
from enum import Enum

from profile_api.core.domain_types import RequestOutcome, UnavailableReason


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    RESOURCE_NOT_FOUND = "resource_not_found"
    DEPENDENCY = "dependency"
    DATABASE = "database"


@dataclass
class ErrorContext:
    """Where the failure happened, for operator logs."""
    operation: str | None = None


class ProfileApiError(Exception):
    """Base exception for all Profile API errors."""

    public_message = "Something went wrong!"

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        outcome: RequestOutcome,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.outcome = outcome
        self.severity = severity
        self.context = context or ErrorContext()

    @property
    def http_status(self) -> int:
        return self.outcome.http_status

    def to_response(self) -> dict:
        """Convert to the client-facing JSON body."""
        return {"message": self.public_message}


# ─── Expected Outcomes (400-level) ───────────────────────────────

class UserNotFoundError(ProfileApiError):
    """Lookup key matched no row."""

    public_message = "User not found"

    def __init__(self, key: str, context: ErrorContext | None = None):
        super().__init__(
            f"No profile for key '{key}'",
            "USER_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            RequestOutcome.NOT_FOUND, ErrorSeverity.INFO, context,
        )
        self.key = key


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DependencyUnavailableError(ProfileApiError):
    """Pool could not lend a connection: exhausted, queue full, or store unreachable."""

    public_message = "Database service temporarily unavailable"

    def __init__(
        self,
        reason: UnavailableReason,
        detail: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Database unavailable ({reason.value}): {detail}",
            "DATABASE_UNAVAILABLE", ErrorCategory.DEPENDENCY,
            RequestOutcome.DEPENDENCY_UNAVAILABLE, ErrorSeverity.CRITICAL, context,
        )
        self.reason = reason

    def to_response(self) -> dict:
        return {"message": self.public_message, "error": self.reason.value}


class QueryFailureError(ProfileApiError):
    """Query could not be executed: driver error, malformed SQL, lost connection."""

    public_message = "Internal Server Error"

    def __init__(
        self, operation: str, detail: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.operation = operation
        super().__init__(
            f"Database {operation} failed: {detail}",
            "QUERY_FAILED", ErrorCategory.DATABASE,
            RequestOutcome.INTERNAL_ERROR, ErrorSeverity.CRITICAL, ctx,
        )
        self.operation = operation
