"""Error Hierarchy — typed, tagged exceptions for every non-success path of a mutation.

Invariants:
    - Every taxonomy error has a code (ErrorCode), category (ErrorCategory), severity (ErrorSeverity)
    - ClientRejected and OperationFailed are final: never retried automatically
    - RetriesExhausted keeps the last underlying error and its classification
    - PollTimedOut and Cancelled are raised without consulting the error classifier
    - DeadlineExceeded stops retries that would outlive a deadline; the poller reports it as PollTimedOut
    - ApiError is NOT a taxonomy error: it is the raw remote failure the classifier inspects

Design Decisions:
    - Single hierarchy with ComputeOpsError base: callers catch one type, branch on .code
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - Original errors chained via __cause__, never flattened into the message only
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    CLIENT = "client"
    TRANSIENT = "transient"
    OPERATION = "operation"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class ErrorCode(str, Enum):
    """Taxonomy tags. Every failure surfaced by the engine carries exactly one."""
    CLIENT_REJECTED = "CLIENT_REJECTED"
    SERVER_TRANSIENT = "SERVER_TRANSIENT"
    TRANSPORT_TRANSIENT = "TRANSPORT_TRANSIENT"
    RETRIES_EXHAUSTED = "RETRIES_EXHAUSTED"
    OPERATION_FAILED = "OPERATION_FAILED"
    POLL_TIMED_OUT = "POLL_TIMED_OUT"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"
    CANCELLED = "CANCELLED"


@dataclass
class ErrorContext:
    """Where a failure happened: project, location, operation, resource, attempt."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    project: str | None = None
    zone: str | None = None
    region: str | None = None
    operation: str | None = None
    resource: str | None = None
    attempt: int | None = None
    debug_info: dict[str, Any] | None = None

    def log_fields(self) -> dict[str, Any]:
        """Non-empty fields, shaped for logging `extra=`."""
        fields = {
            "project": self.project,
            "zone": self.zone,
            "region": self.region,
            "operation": self.operation,
            "resource": self.resource,
            "attempt": self.attempt,
        }
        return {k: v for k, v in fields.items() if v is not None}


# ─── Raw remote error ───────────────────────────────────────────

class ApiError(Exception):
    """Structured error returned by the remote API (HTTP status + error envelope)."""

    def __init__(
        self,
        status_code: int,
        message: str = "",
        errors: list[dict[str, Any]] | None = None,
        reason: str | None = None,
        retry_after: float | None = None,
    ):
        super().__init__(f"HTTP {status_code}: {message}" if message else f"HTTP {status_code}")
        self.status_code = status_code
        self.message = message
        self.errors = errors or []
        self.reason = reason
        self.retry_after = retry_after

    @classmethod
    def from_payload(
        cls, status_code: int, payload: Any, retry_after: float | None = None,
    ) -> "ApiError":
        """Build from a `{"error": {"code", "message", "errors"}}` body (or anything else)."""
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            body = payload["error"]
            errors = body.get("errors") or []
            reason = errors[0].get("reason") if errors and isinstance(errors[0], dict) else None
            return cls(status_code, str(body.get("message", "")), errors, reason, retry_after)
        message = payload if isinstance(payload, str) else ""
        return cls(status_code, message.strip(), retry_after=retry_after)


# ─── Taxonomy ───────────────────────────────────────────────────

class ComputeOpsError(Exception):
    """Base exception for all orchestrated-mutation failures."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()

    def to_dict(self) -> dict:
        """Structured rendering for logs and callers that report failures."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": self.context.log_fields(),
            }
        }


class ClientRejectedError(ComputeOpsError):
    """Call failed with a non-retryable error (4xx-style or unknown failure)."""
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, ErrorCode.CLIENT_REJECTED, ErrorCategory.CLIENT,
            ErrorSeverity.ERROR, context,
        )
        self.status_code = status_code


class RetriesExhaustedError(ComputeOpsError):
    """Retryable failures continued past the attempt or elapsed-time ceiling."""
    def __init__(
        self,
        attempts: int,
        last_error: BaseException,
        last_error_code: ErrorCode,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Gave up after {attempts} attempt(s): {last_error}",
            ErrorCode.RETRIES_EXHAUSTED, ErrorCategory.TRANSIENT,
            ErrorSeverity.CRITICAL, context,
        )
        self.attempts = attempts
        self.last_error = last_error
        self.last_error_code = last_error_code


class OperationFailedError(ComputeOpsError):
    """Operation reached DONE but reported an error payload."""
    def __init__(
        self,
        operation: str,
        errors: list[dict[str, Any]],
        http_status: int | None = None,
        context: ErrorContext | None = None,
    ):
        summary = "; ".join(
            f"{e.get('code', 'UNKNOWN')}: {e.get('message', '')}".strip() for e in errors
        ) or "operation reported an error"
        super().__init__(
            f"Operation {operation} failed: {summary}",
            ErrorCode.OPERATION_FAILED, ErrorCategory.OPERATION,
            ErrorSeverity.ERROR, context,
        )
        self.operation = operation
        self.errors = errors
        self.http_status = http_status


class DeadlineExceededError(ComputeOpsError):
    """Retryable failures continued until the next wait would pass the caller's deadline."""
    def __init__(
        self,
        attempts: int,
        last_error: BaseException,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Deadline reached after {attempts} attempt(s): {last_error}",
            ErrorCode.DEADLINE_EXCEEDED, ErrorCategory.TIMEOUT,
            ErrorSeverity.ERROR, context,
        )
        self.attempts = attempts
        self.last_error = last_error


class PollTimedOutError(ComputeOpsError):
    """Caller-supplied poll deadline expired before the operation was DONE."""
    def __init__(
        self, operation: str, deadline_seconds: float, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Operation {operation} not done after {deadline_seconds:g}s",
            ErrorCode.POLL_TIMED_OUT, ErrorCategory.TIMEOUT,
            ErrorSeverity.ERROR, context,
        )
        self.operation = operation
        self.deadline_seconds = deadline_seconds


class OperationCancelledError(ComputeOpsError):
    """External cancellation signal fired during a retry wait or poll wait."""
    def __init__(self, stage: str, context: ErrorContext | None = None):
        super().__init__(
            f"Cancelled during {stage}",
            ErrorCode.CANCELLED, ErrorCategory.CANCELLED,
            ErrorSeverity.WARNING, context,
        )
        self.stage = stage
