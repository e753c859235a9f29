"""Error Hierarchy — typed, categorized exceptions for every order pipeline failure.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Input errors are 4xx; collaborator/infrastructure errors are 5xx
    - to_response() produces the REST envelope used by all error handlers
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with CampusPrintError base: one FastAPI handler maps all of them
    - ErrorContext as dataclass: order/blob identifiers travel with the error for logging
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
    DATABASE = "database"
    STORAGE = "storage"
    DOCUMENT = "document"
    AUTH = "auth"
    INTERNAL = "internal"
    CONFLICT = "conflict"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    order_id: str | None = None
    tracking_code: str | None = None
    blob_ref: str | None = None
    field: str | None = None
    debug_info: dict[str, Any] | None = None


class CampusPrintError(Exception):
    """Base exception for all Campus Print errors."""

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
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "order_id": self.context.order_id,
                    "tracking_code": self.context.tracking_code,
                    "field": self.context.field,
                },
            }
        }


# ─── Input Errors (400-level) ───────────────────────────────────

class ValidationError(CampusPrintError):
    """Bad or missing input."""
    def __init__(self, message: str, field: str | None = None, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.field = field
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.field = field


class InvalidDocumentError(CampusPrintError):
    """Upload is not a PDF (empty, or wrong file signature)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_DOCUMENT", ErrorCategory.DOCUMENT,
            ErrorSeverity.ERROR, context, 400,
        )


class NotFoundError(CampusPrintError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class InvalidTransitionError(CampusPrintError):
    """Status transition or deletion not allowed from the current status."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_TRANSITION", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )


class DuplicateKeyError(CampusPrintError):
    """Store uniqueness constraint violated."""
    def __init__(self, field: str, value: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.field = field
        super().__init__(
            f"Duplicate value for {field}: '{value}'",
            "DUPLICATE_KEY", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )
        self.field = field
        self.value = value


class AuthError(CampusPrintError):
    """Admin-only operation without valid credentials."""
    def __init__(self, message: str = "Admin authorization required", context: ErrorContext | None = None):
        super().__init__(
            message, "AUTH_REQUIRED", ErrorCategory.AUTH,
            ErrorSeverity.WARNING, context, 401,
        )


class ClientDisconnectedError(CampusPrintError):
    """Client went away while its request was still being processed."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Client disconnected before processing finished",
            "CLIENT_DISCONNECTED", ErrorCategory.INTERNAL,
            ErrorSeverity.INFO, context, 499,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class ParseError(CampusPrintError):
    """Document structure could not be parsed (truncated, corrupt, too slow)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Document could not be parsed: {message}",
            "PARSE_ERROR", ErrorCategory.DOCUMENT,
            ErrorSeverity.ERROR, context, 500,
        )
        self.detail = message


class StorageError(CampusPrintError):
    """Blob store collaborator failed (timeout, quota, network)."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Blob storage {operation} failed: {message}",
            "STORAGE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation


class CodeGenerationExhaustedError(CampusPrintError):
    """No unique tracking code found within the attempt budget."""
    def __init__(self, attempts: int, context: ErrorContext | None = None):
        super().__init__(
            f"Could not issue a unique tracking code after {attempts} attempts",
            "CODE_GENERATION_EXHAUSTED", ErrorCategory.CONFLICT,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.attempts = attempts


class DatabaseError(CampusPrintError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
