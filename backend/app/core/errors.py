"""Error Hierarchy — typed, categorized exceptions for all Book Porter failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - Each failure kind has its own stable code — clients branch on code, never on message
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with BookPorterError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - Duplicate payment is NOT an error: confirm_payment reports it as a no-op result
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
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    PERMISSION = "permission"
    SECURITY = "security"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    order_id: str | None = None
    book_id: str | None = None
    provider_txn_id: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class BookPorterError(Exception):
    """Base exception for all Book Porter errors."""

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

    @property
    def retryable(self) -> bool:
        """Only infrastructure failures warrant a caller-side retry."""
        return self.category in (ErrorCategory.EXTERNAL_API, ErrorCategory.DATABASE)

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "retryable": self.retryable,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "order_id": self.context.order_id,
                    "book_id": self.context.book_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ResourceNotFoundError(BookPorterError):
    """Requested resource does not exist."""
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


class BookNotFoundError(ResourceNotFoundError):
    """Book missing from the catalog (or not orderable)."""
    def __init__(self, book_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.book_id = book_id
        super().__init__("Book", book_id, ctx)


class OrderNotFoundError(ResourceNotFoundError):
    """Order missing from the ledger."""
    def __init__(self, order_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.order_id = order_id
        super().__init__("Order", order_id, ctx)


class InvalidTransitionError(BookPorterError):
    """Requested status is not an outgoing edge of the current status."""
    def __init__(
        self, current: str, requested: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Cannot move order from '{current}' to '{requested}'",
            "INVALID_TRANSITION", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )
        self.current = current
        self.requested = requested


class ForbiddenError(BookPorterError):
    """Actor is not permitted to request this change."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "FORBIDDEN", ErrorCategory.PERMISSION,
            ErrorSeverity.ERROR, context, 403,
        )


class PaymentOnCancelledOrderError(BookPorterError):
    """Payment arrived for (or checkout requested on) a cancelled order."""
    def __init__(self, order_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.order_id = order_id
        super().__init__(
            f"Order '{order_id}' is cancelled and cannot be paid",
            "PAYMENT_ON_CANCELLED_ORDER", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, ctx, 409,
        )


class OrderAlreadyPaidError(BookPorterError):
    """Order is already paid under a different provider transaction."""
    def __init__(self, order_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.order_id = order_id
        super().__init__(
            f"Order '{order_id}' is already paid",
            "ORDER_ALREADY_PAID", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )


class ProviderTxnAlreadyUsedError(BookPorterError):
    """Provider transaction already settled a different order."""
    def __init__(
        self, order_id: str, provider_txn_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.order_id = order_id
        ctx.provider_txn_id = provider_txn_id
        super().__init__(
            f"Transaction '{provider_txn_id}' already paid another order",
            "PROVIDER_TXN_ALREADY_USED", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )


class PaymentAmountMismatchError(BookPorterError):
    """Captured amount differs from the order's snapshot amount."""
    def __init__(
        self, expected_minor: int, received_minor: int,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Payment amount {received_minor} does not match order amount {expected_minor} (minor units)",
            "PAYMENT_AMOUNT_MISMATCH", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.expected_minor = expected_minor
        self.received_minor = received_minor


class InvalidSignatureError(BookPorterError):
    """Webhook payload failed signature verification."""
    def __init__(self, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.user_message = "Webhook rejected"
        super().__init__(
            "Webhook signature verification failed",
            "INVALID_SIGNATURE", ErrorCategory.SECURITY,
            ErrorSeverity.WARNING, ctx, 400,
        )


class ConcurrencyError(BookPorterError):
    """Concurrent modification detected."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(BookPorterError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class GatewayUnavailableError(BookPorterError):
    """Payment provider call failed (transport or provider error)."""
    def __init__(
        self, message: str, provider_error_type: str,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.user_message = "Payment provider unavailable, try again later"
        super().__init__(
            f"Payment gateway error ({provider_error_type}): {message}",
            "GATEWAY_UNAVAILABLE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.provider_error_type = provider_error_type
