"""Error Hierarchy — typed, categorized exceptions for all advisor failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation errors (400-level) are the caller's problem; upstream/store errors are ours
    - to_response() produces the FAILED envelope used by every API error
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with AdvisorError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - Bulk refresh paths catch AdvisorError per item; anything else is a bug and propagates
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
    AUTHENTICATION = "authentication"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    city: str | None = None
    country: str | None = None
    upstream: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class AdvisorError(Exception):
    """Base exception for all travel advisor errors."""

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
        """Convert to the FAILED response envelope."""
        return {
            "status": "FAILED",
            "message": self.message,
            "error": {
                "code": self.code,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "city": self.context.city,
                    "country": self.context.country,
                    "upstream": self.context.upstream,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            },
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class CityValidationError(AdvisorError):
    """City name failed normalization."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class UnauthorizedError(AdvisorError):
    """Missing or wrong bearer token."""
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            message, "UNAUTHORIZED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, None, 401,
        )


class InvalidRangeError(AdvisorError):
    """Search bounds are inverted."""
    def __init__(self, low: float, high: float, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid temperature range: min {low} is greater than max {high}",
            "INVALID_RANGE", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )


class ResourceNotFoundError(AdvisorError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StoreError(AdvisorError):
    """Advisory store operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Store {operation} failed: {message}",
            "STORE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class UpstreamError(AdvisorError):
    """External API call failed (after retries, where retries apply)."""
    def __init__(
        self,
        message: str,
        upstream: str,
        status_code: int | None = None,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.upstream = upstream
        ctx.retry_after_ms = retry_after_ms
        # An upstream 404 means the city or country does not exist
        http_status = 404 if status_code == 404 else 502
        super().__init__(
            f"{upstream} error: {message}",
            "UPSTREAM_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, http_status,
        )
        self.upstream = upstream
        self.status_code = status_code
