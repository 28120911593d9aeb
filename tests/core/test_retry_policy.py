"""Retry Policy — verifies defaults, validation, and capped doubling.

Tests:
    - Defaults: 5s initial, x2, 60s ceiling, 10 attempts
    - next_delay_ms doubles and never exceeds the ceiling
    - Invalid parameters rejected at construction
    - from_settings maps retry_* settings
"""

import pytest

from agent_iteration.config import Settings
from agent_iteration.core.retry_policy import RetryPolicy


def test_defaults():
    policy = RetryPolicy()
    assert policy.initial_delay_ms == 5000
    assert policy.multiplier == 2
    assert policy.max_delay_ms == 60_000
    assert policy.max_attempts == 10


def test_next_delay_doubles_until_ceiling():
    policy = RetryPolicy()
    delays = [policy.initial_delay_ms]
    for _ in range(6):
        delays.append(policy.next_delay_ms(delays[-1]))
    assert delays == [5000, 10_000, 20_000, 40_000, 60_000, 60_000, 60_000]


def test_next_delay_never_exceeds_ceiling():
    policy = RetryPolicy(initial_delay_ms=7000, max_delay_ms=9000)
    assert policy.next_delay_ms(7000) == 9000
    assert policy.next_delay_ms(9000) == 9000


@pytest.mark.parametrize("kwargs", [
    {"initial_delay_ms": 0},
    {"multiplier": 0.5},
    {"max_delay_ms": 1000},
    {"max_attempts": 0},
])
def test_invalid_parameters_rejected(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_policy_is_immutable():
    policy = RetryPolicy()
    with pytest.raises(AttributeError):
        policy.max_attempts = 3


def test_from_settings():
    settings = Settings(
        retry_initial_delay_ms=250, retry_multiplier=1.5,
        retry_max_delay_ms=1000, retry_max_attempts=3,
    )
    policy = RetryPolicy.from_settings(settings)
    assert policy == RetryPolicy(
        initial_delay_ms=250, multiplier=1.5, max_delay_ms=1000, max_attempts=3,
    )
    assert policy.next_delay_ms(250) == 375
