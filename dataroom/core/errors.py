"""Error Hierarchy — typed, categorized exceptions for all data room failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - Absent rooms and rooms owned by someone else raise the same ResourceNotFoundError
    - IntegrityDriftError is internal: logged by reconciliation, never sent to a client

Design Decisions:
    - Single hierarchy with DataRoomError base: FastAPI global handler catches all
    - ErrorContext as dataclass: carries ids for observability without coupling to logging
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
    PAYLOAD = "payload"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTEGRITY = "integrity"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    data_room_id: str | None = None
    node_id: str | None = None
    field: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class DataRoomError(Exception):
    """Base exception for all data room errors."""

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
                    "data_room_id": self.context.data_room_id,
                    "node_id": self.context.node_id,
                    "field": self.context.field,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class DomainValidationError(DataRoomError):
    """A request field failed a domain rule."""
    def __init__(
        self, message: str, field: str, code: str = "VALIDATION_ERROR",
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.field = field
        super().__init__(
            message, code, ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.field = field


class FolderNotFoundError(DomainValidationError):
    """folderId does not resolve to a node in the same data room."""
    def __init__(self, folder_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"Folder with ID {folder_id} not found",
            "folderId", "FOLDER_NOT_FOUND", context,
        )
        self.folder_id = folder_id


class MissingUploadError(DomainValidationError):
    """Upload request carried no file part."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__("File is required", "file", "FILE_REQUIRED", context)


class PayloadTooLargeError(DataRoomError):
    """Upload exceeds the fixed per-file ceiling."""
    def __init__(
        self, filename: str, limit_bytes: int, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"File {filename} exceeds the limit of {limit_bytes // (1024 * 1024)}MB.",
            "PAYLOAD_TOO_LARGE", ErrorCategory.PAYLOAD,
            ErrorSeverity.ERROR, context, 413,
        )
        self.filename = filename
        self.limit_bytes = limit_bytes


class AuthenticationRequiredError(DataRoomError):
    """No validated caller identity reached the service."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Caller identity is required",
            "AUTHENTICATION_REQUIRED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.ERROR, context, 401,
        )


class ResourceNotFoundError(DataRoomError):
    """Requested resource does not exist or is not visible to the caller."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} with ID {resource_id} not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(DataRoomError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class ContentStoreError(DataRoomError):
    """Content-addressed storage call failed."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Content store error ({api_error_type}): {message}",
            "CONTENT_STORE_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.api_error_type = api_error_type


class IntegrityDriftError(DataRoomError):
    """Aggregate counters diverged from the node rows they summarize."""
    def __init__(
        self,
        data_room_id: str,
        recorded: tuple[int, int],
        actual: tuple[int, int],
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.data_room_id = data_room_id
        super().__init__(
            f"Data room {data_room_id} counters drifted: "
            f"recorded count={recorded[0]} size={recorded[1]}, "
            f"actual count={actual[0]} size={actual[1]}",
            "INTEGRITY_DRIFT", ErrorCategory.INTEGRITY,
            ErrorSeverity.WARNING, ctx, 500,
        )
        self.recorded = recorded
        self.actual = actual
