"""Error Hierarchy — verifies codes, categories, and response envelopes.

Tests:
    - Every error subclasses AgentIterationError with a stable code
    - ProviderError records api_error_type, status_code, retry_after in context
    - RetriesExhaustedError is not a ProviderError
    - to_response() exposes context without provider internals
"""

from agent_iteration.core.errors import (
    AgentIterationError,
    CallCancelledError,
    CallValidationError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    ProviderError,
    RetriesExhaustedError,
)


def test_provider_error_fields():
    err = ProviderError(
        "quota", "rate_limit", status_code=429, retry_after_seconds=2.5,
        details=[{"@type": "x"}],
    )
    assert isinstance(err, AgentIterationError)
    assert err.code == "PROVIDER_ERROR"
    assert err.category == ErrorCategory.EXTERNAL_API
    assert err.api_error_type == "rate_limit"
    assert err.status_code == 429
    assert err.retry_after_seconds == 2.5
    assert err.context.retry_after_ms == 2500
    assert err.details == [{"@type": "x"}]
    assert "rate_limit" in str(err)


def test_provider_error_defaults():
    err = ProviderError("boom", "unknown")
    assert err.status_code is None
    assert err.details == []
    assert err.context.retry_after_ms is None


def test_retries_exhausted_is_distinct_from_provider_error():
    err = RetriesExhaustedError(10, ErrorContext(task_id="t"))
    assert not isinstance(err, ProviderError)
    assert err.code == "RETRIES_EXHAUSTED"
    assert err.max_attempts == 10
    assert "10 attempts" in err.message
    assert err.severity == ErrorSeverity.CRITICAL


def test_validation_error_field():
    err = CallValidationError("bad", "model")
    assert err.field == "model"
    assert err.category == ErrorCategory.VALIDATION


def test_cancelled_error_category():
    err = CallCancelledError()
    assert err.category == ErrorCategory.CANCELLED
    assert err.severity == ErrorSeverity.WARNING


def test_to_response_envelope():
    ctx = ErrorContext(task_id="task-9", model_name="claude", attempt=3)
    body = RetriesExhaustedError(3, ctx).to_response()["error"]
    assert body["code"] == "RETRIES_EXHAUSTED"
    assert body["category"] == "external_api"
    assert body["severity"] == "critical"
    assert body["context"] == {
        "task_id": "task-9",
        "model_name": "claude",
        "attempt": 3,
        "retry_after_ms": None,
    }
    assert "T" in body["timestamp"]
