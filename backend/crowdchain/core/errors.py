"""Error Hierarchy — typed, categorized exceptions for all CrowdChain failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces REST envelope; to_event() produces broadcast envelope data
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with CrowdChainError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - Machine-readable extras (e.g. remaining goal) live in `details`, never parsed from message text
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    project_id: str | None = None
    transaction_id: str | None = None
    debug_info: dict[str, Any] | None = None


class CrowdChainError(Exception):
    """Base exception for all CrowdChain errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status
        self.details = details or {}

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        body = {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
        }
        if self.details:
            body["details"] = self.details
        return {"error": body}

    def to_event(self) -> dict:
        """Convert to the data part of a broadcast event."""
        return {
            "code": self.code,
            "message": self.message,
            "transaction_id": self.context.transaction_id,
            "project_id": self.context.project_id,
            "user_id": self.context.user_id,
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class NotFoundError(CrowdChainError):
    """Requested resource does not exist (or is not visible)."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class UnauthenticatedError(CrowdChainError):
    """Bearer credential absent, malformed, expired, or owned by a banned user."""
    def __init__(self, reason: str = "Invalid or missing credentials", context: ErrorContext | None = None):
        super().__init__(
            reason, "UNAUTHENTICATED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class ForbiddenError(CrowdChainError):
    """Identity resolved but not allowed to perform the operation."""
    def __init__(self, reason: str = "Insufficient permissions", context: ErrorContext | None = None):
        super().__init__(
            reason, "FORBIDDEN", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


class InvalidAmountError(CrowdChainError):
    """Amount is not a positive decimal with at most two fractional digits."""
    def __init__(self, raw: object, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid amount: {raw!r}. Use a positive value with at most 2 decimals.",
            "INVALID_AMOUNT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class GoalAlreadyReachedError(CrowdChainError):
    """Project has no remaining funding capacity."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Project funding goal has already been reached",
            "GOAL_ALREADY_REACHED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


class ExceedsRemainingGoalError(CrowdChainError):
    """Investment larger than what the project still needs."""
    def __init__(self, remaining: Decimal, context: ErrorContext | None = None):
        super().__init__(
            f"Investment amount exceeds remaining goal. Maximum investment: {remaining:.2f}",
            "EXCEEDS_REMAINING_GOAL", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
            details={"remaining": f"{remaining:.2f}"},
        )
        self.remaining = remaining


class InsufficientBalanceError(CrowdChainError):
    """Investor balance cannot cover the amount."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Insufficient balance for this investment",
            "INSUFFICIENT_BALANCE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


class ValidationFailedError(CrowdChainError):
    """Input shape rejected by a domain rule."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
            details={"field": field},
        )
        self.field = field


class MalformedRequestError(CrowdChainError):
    """Request body, path or query failed schema validation."""
    def __init__(self, issues: list[dict[str, str]], context: ErrorContext | None = None):
        super().__init__(
            "Invalid request data", "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
            details={"fields": issues},
        )
        self.issues = issues


class DuplicateAccountError(CrowdChainError):
    """Username or email already taken."""
    def __init__(self, field: str, context: ErrorContext | None = None):
        super().__init__(
            f"An account with this {field} already exists",
            "DUPLICATE_ACCOUNT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
            details={"field": field},
        )


class ReviewConflictError(CrowdChainError):
    """Review attempted on a request or project that already has a decision."""
    def __init__(self, resource_type: str, current_status: str, context: ErrorContext | None = None):
        super().__init__(
            f"{resource_type} already reviewed (status: {current_status})",
            "ALREADY_REVIEWED", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
            details={"status": current_status},
        )


class SettlementFailedError(CrowdChainError):
    """Deferred settlement could not apply; transaction moves to failed."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Settlement failed: {reason}",
            "SETTLEMENT_FAILED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 409,
        )
        self.reason = reason


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(CrowdChainError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class InternalError(CrowdChainError):
    """Unexpected failure; the message never carries internal details."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "An unexpected error occurred", "INTERNAL_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
