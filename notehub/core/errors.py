"""Error Hierarchy — typed, categorized exceptions for all NoteHub failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces REST envelope; to_event() produces WebSocket envelope
    - No internal details leaked in user-facing messages
    - NotFound covers both "absent" and "not visible to caller" (no existence leaks)

Design Decisions:
    - Single hierarchy with NoteHubError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
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
    AUTHORIZATION = "authorization"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    STORAGE = "storage"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: int | None = None
    user_id: int | None = None
    debug_info: dict[str, Any] | None = None


class NoteHubError(Exception):
    """Base exception for all NoteHub errors."""

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
                    "request_id": self.context.request_id,
                    "user_id": self.context.user_id,
                },
            }
        }

    def to_event(self) -> dict:
        """Convert to WebSocket error frame."""
        return {
            "type": "error",
            "data": {
                "code": self.code,
                "message": self.message,
                "request_id": self.context.request_id,
            },
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(NoteHubError):
    """Malformed, missing or out-of-range input."""
    def __init__(self, message: str, field: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class InvalidMessageError(NoteHubError):
    """Chat message carries neither text nor an attachment."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Message requires text or a file",
            "INVALID_MESSAGE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class InvalidScoreError(NoteHubError):
    """Rating score outside the 1-5 integer range."""
    def __init__(self, score: object, context: ErrorContext | None = None):
        super().__init__(
            f"Score must be an integer between 1 and 5, got {score!r}",
            "INVALID_SCORE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.score = score


class AuthError(NoteHubError):
    """Missing, malformed or expired credential."""
    def __init__(self, message: str = "Invalid or missing credentials", context: ErrorContext | None = None):
        super().__init__(
            message, "AUTH_ERROR", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class ForbiddenError(NoteHubError):
    """Authenticated, but wrong role or not a participant."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "FORBIDDEN", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


class ResourceNotFoundError(NoteHubError):
    """Requested resource does not exist or is not visible to the caller."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
        message: str | None = None,
    ):
        super().__init__(
            message or f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConflictError(NoteHubError):
    """Lost a race against a concurrent caller; client may re-fetch and retry."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


class InvalidStateError(NoteHubError):
    """Lifecycle precondition violated (e.g. rating an unfinished request)."""
    def __init__(self, message: str, current_status: str | None = None, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_STATE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )
        self.current_status = current_status


class AlreadyRatedError(NoteHubError):
    """A rating already exists for this request."""
    def __init__(self, request_id: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.request_id = request_id
        super().__init__(
            f"Request {request_id} has already been rated",
            "ALREADY_RATED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, ctx, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(NoteHubError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation


class BlobStoreError(NoteHubError):
    """Blob store read or write failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"File {operation} failed: {message}",
            "STORAGE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation
