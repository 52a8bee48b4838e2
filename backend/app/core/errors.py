"""Error Hierarchy — typed, categorized exceptions for every access and lifecycle failure.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope {"error": <message>, "code": <code>}
    - Messages are user-safe: no internal details, no stack traces

Design Decisions:
    - Single hierarchy with ClubError base: FastAPI global handler catches all
    - SessionStoreUnavailableError carries a 503 status, but the route guard
      never lets it reach a client; it is converted into unauthenticated behavior
    - AuditWriteFailedError exists for logging only and is never raised past
      the audit recorder
"""

from dataclasses import dataclass, field
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
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    EXTERNAL = "external"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    path: str | None = None
    debug_info: dict[str, Any] | None = None


class ClubError(Exception):
    """Base exception for all club backend errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to the structured REST error body."""
        return {"error": self.message, "code": self.code}


# ─── Access Errors ──────────────────────────────────────────────

class UnauthenticatedError(ClubError):
    """No session, invalid session or expired session."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Non autorisé", "UNAUTHENTICATED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class ForbiddenError(ClubError):
    """Valid session, but neither the role nor ownership allows the action."""
    def __init__(self, message: str = "Accès refusé", context: ErrorContext | None = None):
        super().__init__(
            message, "FORBIDDEN", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


# ─── Domain Errors (400-level) ──────────────────────────────────

class InvalidPaymentError(ClubError):
    """PaymentConfirmed with a non-positive amount."""
    def __init__(self, amount: float, context: ErrorContext | None = None):
        super().__init__(
            f"Paiement invalide: le montant doit être strictement positif (reçu {amount})",
            "INVALID_PAYMENT", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 422,
        )
        self.amount = amount


class MembershipMissingError(ClubError):
    """Operation requires a dues record the member does not have."""
    def __init__(self, user_id: str, context: ErrorContext | None = None):
        super().__init__(
            "Ce membre n'a pas de cotisation enregistrée",
            "MEMBERSHIP_MISSING", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 422,
        )
        self.user_id = user_id


class InvalidRenewalDateError(ClubError):
    """ACTIVE status requested with a renewal date that is missing or not in the future."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Une cotisation active exige une date de renouvellement future",
            "INVALID_RENEWAL_DATE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 422,
        )


class ResourceNotFoundError(ClubError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} introuvable",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConflictError(ClubError):
    """Unique constraint would be violated (e.g. duplicate email)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class SessionStoreUnavailableError(ClubError):
    """Session lookup could not reach the store."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Session store unavailable: {message}",
            "SESSION_STORE_UNAVAILABLE", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )


class AuditWriteFailedError(ClubError):
    """Writing an activity log entry failed."""
    def __init__(self, message: str, action: str, context: ErrorContext | None = None):
        super().__init__(
            f"Audit write failed for {action}: {message}",
            "AUDIT_WRITE_FAILED", ErrorCategory.DATABASE,
            ErrorSeverity.WARNING, context, 500,
        )
        self.action = action


class DatabaseError(ClubError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
