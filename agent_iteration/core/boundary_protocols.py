"""Boundary Protocols — contracts between the executor/orchestrator and their collaborators.

Invariants:
    - Core NEVER imports from infrastructure — dependency arrows point inward only
    - Provider and persistence accessed only through these Protocol types
    - Implementations provided by the shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async in Protocol: both collaborators do IO
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

from agent_iteration.core.cancellation import CancellationToken

if TYPE_CHECKING:
    from agent_iteration.schemas.conversation import (
        ConversationTurn, GenerationResponse,
    )


class GenerationProvider(Protocol):
    """Remote text-generation capability — raises on failure, never retries."""
    async def generate_message(
        self,
        system_prompt: str,
        turns: Sequence["ConversationTurn"],
        model_name: str,
        is_primary_call: bool,
        cancellation: CancellationToken,
    ) -> "GenerationResponse": ...


class ResponseSink(Protocol):
    """Receives completed responses for storage — implemented by the shell."""
    async def save_response(
        self, task_id: str, response: "GenerationResponse", *, is_summary: bool,
    ) -> None: ...
