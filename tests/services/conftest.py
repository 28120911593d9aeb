"""Service test fixtures — scripted provider, recording sleep, in-memory sink.

Invariants:
    - No test ever sleeps for real: executors are built with RecordingSleep
    - Each test gets a fresh sink and sleep recorder
"""

import pytest

from agent_iteration.core.cancellation import CancellationToken
from agent_iteration.infrastructure.response_sink import InMemoryResponseSink

from tests.services.mock_provider import RecordingSleep


@pytest.fixture
def sleeps():
    return RecordingSleep()


@pytest.fixture
def sink():
    return InMemoryResponseSink()


@pytest.fixture
def token():
    return CancellationToken()
