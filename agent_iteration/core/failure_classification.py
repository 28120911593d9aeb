"""Failure Classification — maps any provider failure to a closed tagged variant.

Invariants:
    - Exactly one of RateLimited | Transient | Fatal per failure
    - HTTP 429 (or api_error_type "rate_limit") → RateLimited
    - HTTP 5xx (or server_error / overloaded / connection_error) → Transient
    - Everything else, including validation and cancellation → Fatal
    - Malformed retry metadata is treated as absent, never raised

Design Decisions:
    - Classification at the provider boundary keeps the retry loop free of
      provider field shapes (ADR: closed variant over ad hoc inspection)
    - Duck-typed fallback (code / status_code / status) for exceptions that
      did not go through a provider adapter
    - Fractional retry delays kept as-is ("2.9s" → 2.9), never truncated to whole seconds
"""

import math
from dataclasses import dataclass
from typing import Any, ClassVar

from agent_iteration.core.domain_types import FailureKind
from agent_iteration.core.errors import ProviderError

RETRY_INFO_TYPE = "type.googleapis.com/google.rpc.RetryInfo"
RATE_LIMIT_STATUS = 429

_RATE_LIMIT_TYPES = frozenset({"rate_limit"})
_TRANSIENT_TYPES = frozenset({"server_error", "overloaded", "connection_error"})


@dataclass(frozen=True)
class RateLimited:
    retry_after_seconds: float | None = None
    kind: ClassVar[FailureKind] = FailureKind.RATE_LIMITED


@dataclass(frozen=True)
class Transient:
    status_code: int | None = None
    kind: ClassVar[FailureKind] = FailureKind.TRANSIENT


@dataclass(frozen=True)
class Fatal:
    cause: BaseException
    kind: ClassVar[FailureKind] = FailureKind.FATAL


Failure = RateLimited | Transient | Fatal


def classify_failure(error: BaseException) -> Failure:
    """Classify a failed provider call. Pure — never raises."""
    if isinstance(error, ProviderError):
        return _classify_provider_error(error)
    code = _status_code_of(error)
    if code == RATE_LIMIT_STATUS:
        return RateLimited(extract_retry_delay(getattr(error, "details", None)))
    if code is not None and _is_server_error(code):
        return Transient(code)
    return Fatal(error)


def extract_retry_delay(details: Any) -> float | None:
    """Seconds from a RetryInfo detail entry (e.g. "3s"), or None."""
    if not isinstance(details, (list, tuple)):
        return None
    for entry in details:
        if not isinstance(entry, dict):
            continue
        if entry.get("@type") != RETRY_INFO_TYPE:
            continue
        return parse_retry_delay(entry.get("retryDelay"))
    return None


def parse_retry_delay(value: Any) -> float | None:
    """Parse a duration string with trailing "s" unit. Malformed → None."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("s"):
        text = text[:-1]
    try:
        seconds = float(text)
    except ValueError:
        return None
    if not math.isfinite(seconds) or seconds <= 0:
        return None
    return seconds


# === Internal =================================================================

def _classify_provider_error(error: ProviderError) -> Failure:
    if (
        error.api_error_type in _RATE_LIMIT_TYPES
        or error.status_code == RATE_LIMIT_STATUS
    ):
        retry_after = error.retry_after_seconds
        if retry_after is None:
            retry_after = extract_retry_delay(error.details)
        return RateLimited(retry_after)
    if error.api_error_type in _TRANSIENT_TYPES:
        return Transient(error.status_code)
    if error.status_code is not None and _is_server_error(error.status_code):
        return Transient(error.status_code)
    return Fatal(error)


def _status_code_of(error: BaseException) -> int | None:
    for attr in ("code", "status_code", "status"):
        val = getattr(error, attr, None)
        if isinstance(val, bool):
            continue
        if isinstance(val, int):
            return val
    return None


def _is_server_error(code: int) -> bool:
    return 500 <= code < 600
