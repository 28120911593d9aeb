"""Error Hierarchy — typed, categorized exceptions for all agent iteration failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - ProviderError is the only error raised from the provider boundary
    - RetriesExhaustedError is distinct from the provider error that caused it
    - to_response() never leaks provider payloads beyond code/message/context

Design Decisions:
    - Single hierarchy with AgentIterationError base: callers catch one type (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and caller handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    EXTERNAL_API = "external_api"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    task_id: str | None = None
    model_name: str | None = None
    attempt: int | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class AgentIterationError(Exception):
    """Base exception for all agent iteration errors."""

    def __init__(
        self,
        message: str,
        code: str,
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

    def to_response(self) -> dict:
        """Convert to a structured error envelope."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "task_id": self.context.task_id,
                    "model_name": self.context.model_name,
                    "attempt": self.context.attempt,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Boundary Errors ────────────────────────────────────────────

class CallValidationError(AgentIterationError):
    """Call input failed validation before any provider call."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context,
        )
        self.field = field


class CallCancelledError(AgentIterationError):
    """Cancellation token fired before or during a call."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Call cancelled", "CALL_CANCELLED", ErrorCategory.CANCELLED,
            ErrorSeverity.WARNING, context,
        )


# ─── Provider Errors ────────────────────────────────────────────

class ProviderError(AgentIterationError):
    """Generation provider call failed.

    api_error_type is one of: rate_limit, server_error, overloaded,
    connection_error, timeout, client_error, unknown.
    details holds structured retry metadata (typed detail entries) when the
    provider supplies it.
    """
    def __init__(
        self,
        message: str,
        api_error_type: str,
        status_code: int | None = None,
        retry_after_seconds: float | None = None,
        details: list[dict] | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        if retry_after_seconds is not None:
            ctx.retry_after_ms = int(retry_after_seconds * 1000)
        super().__init__(
            f"Provider error ({api_error_type}): {message}",
            "PROVIDER_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx,
        )
        self.api_error_type = api_error_type
        self.status_code = status_code
        self.retry_after_seconds = retry_after_seconds
        self.details = details or []


class RetriesExhaustedError(AgentIterationError):
    """Attempt ceiling reached with only retryable failures."""
    def __init__(self, max_attempts: int, context: ErrorContext | None = None):
        super().__init__(
            f"Max retries reached for generation call ({max_attempts} attempts)",
            "RETRIES_EXHAUSTED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context,
        )
        self.max_attempts = max_attempts
