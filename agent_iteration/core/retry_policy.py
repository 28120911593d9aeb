"""Retry Policy — backoff parameters and pure delay arithmetic.

Invariants:
    - next_delay_ms() never exceeds max_delay_ms
    - Delay grows by multiplier per retryable failure, never shrinks mid-sequence
    - max_attempts >= 1

Design Decisions:
    - Milliseconds for delays, seconds only at the sleep boundary (mirrors provider retry-after units)
    - Frozen dataclass: one policy shared by every executor call, no per-call mutation
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff with a ceiling and a bounded attempt count."""
    initial_delay_ms: int = 5000
    multiplier: float = 2
    max_delay_ms: int = 60_000
    max_attempts: int = 10

    def __post_init__(self) -> None:
        if self.initial_delay_ms <= 0:
            raise ValueError("initial_delay_ms must be > 0")
        if self.multiplier < 1:
            raise ValueError("multiplier must be >= 1")
        if self.max_delay_ms < self.initial_delay_ms:
            raise ValueError("max_delay_ms must be >= initial_delay_ms")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    def next_delay_ms(self, delay_ms: int) -> int:
        """Delay after one more retryable failure, capped at the ceiling."""
        return min(int(delay_ms * self.multiplier), self.max_delay_ms)

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            initial_delay_ms=settings.retry_initial_delay_ms,
            multiplier=settings.retry_multiplier,
            max_delay_ms=settings.retry_max_delay_ms,
            max_attempts=settings.retry_max_attempts,
        )
