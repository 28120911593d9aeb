"""Iteration Orchestrator — one task's cycle: primary call, then optional summary call.

Invariants:
    - Primary and summarization calls run strictly sequentially
    - Summary turns = input turns + exactly one synthetic user turn (fresh per run)
    - should_summarize=False → exactly one executor call, no synthetic turn
    - One CancellationToken per orchestrator, shared by both calls
    - Errors from the executor propagate unmodified (no catch, no partial success)

Design Decisions:
    - Responses handed to an injected ResponseSink: persistence stays outside the core
    - Sink failures propagate; they are not retried (retry covers provider calls only)
    - Primary response is not rolled back when summarization fails (ADR: sink owns storage)
    - model=None falls back to the orchestrator's default model (settings.agent_model
      when built by create_orchestrator)
    - create_orchestrator is the process entry point: it also applies the logging
      settings via setup_logging unless configure_logging=False
"""

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from agent_iteration.config import Settings, get_settings
from agent_iteration.core.boundary_protocols import GenerationProvider, ResponseSink
from agent_iteration.core.cancellation import CancellationToken
from agent_iteration.core.errors import CallValidationError, ErrorContext
from agent_iteration.core.retry_policy import RetryPolicy
from agent_iteration.infrastructure.anthropic_provider import AnthropicGenerationProvider
from agent_iteration.infrastructure.observability import setup_logging
from agent_iteration.schemas.conversation import (
    ConversationTurn, ModelDescriptor, coerce_model, coerce_turns,
    summary_request_turn,
)
from agent_iteration.services.resilient_executor import ResilientCallExecutor
from agent_iteration.services.system_prompt import (
    AGENT_SYSTEM_PROMPT, SUMMARIZATION_SYSTEM_PROMPT,
)

logger = logging.getLogger(__name__)


class IterationOrchestrator:
    """Drives one task iteration end-to-end against the resilient executor."""

    def __init__(
        self,
        executor: ResilientCallExecutor,
        sink: ResponseSink,
        agent_system_prompt: str = AGENT_SYSTEM_PROMPT,
        summarization_system_prompt: str = SUMMARIZATION_SYSTEM_PROMPT,
        default_model: str | None = None,
    ):
        self.executor = executor
        self.sink = sink
        self.agent_system_prompt = agent_system_prompt
        self.summarization_system_prompt = summarization_system_prompt
        self.default_model = default_model
        self.cancellation = CancellationToken()

    def cancel(self) -> None:
        """Cancel in-flight and pending calls of this orchestrator."""
        self.cancellation.cancel()

    async def run_iteration(
        self,
        task_id: str,
        turns: Sequence[ConversationTurn | dict],
        model: ModelDescriptor | dict | None,
        should_summarize: bool,
    ) -> None:
        ctx = ErrorContext(task_id=task_id)
        turns, model = self._validate(task_id, turns, model, ctx)
        ctx.model_name = model.name
        logger.info(
            "Processing task %s with model %s", task_id, model.name,
            extra={"task_id": task_id, "model": model.name},
        )

        # 1. Agent response with retry
        agent_response = await self.executor.execute_with_retry(
            self.agent_system_prompt, turns, model.name,
            True, self.cancellation, context=ctx,
        )
        await self.sink.save_response(task_id, agent_response, is_summary=False)

        # 2. Optional summarization
        if should_summarize:
            summary_turns = [*turns, summary_request_turn(task_id)]
            summary_response = await self.executor.execute_with_retry(
                self.summarization_system_prompt, summary_turns, model.name,
                False, self.cancellation,
                context=ErrorContext(task_id=task_id, model_name=model.name),
            )
            await self.sink.save_response(
                task_id, summary_response, is_summary=True,
            )

        logger.info(
            "Task %s completed successfully", task_id,
            extra={"task_id": task_id, "model": model.name},
        )

    def _validate(self, task_id: Any, turns: Any, model: Any, ctx: ErrorContext):
        """Typed turns + model, or CallValidationError before any provider call."""
        if not isinstance(task_id, str) or not task_id.strip():
            raise CallValidationError(
                "Task id must be a non-empty string", "task_id", ctx,
            )
        try:
            typed_turns = coerce_turns(turns)
        except (ValidationError, TypeError) as e:
            raise CallValidationError(
                f"Invalid conversation turns: {e}", "turns", ctx,
            ) from e
        if model is None and self.default_model is not None:
            model = {"name": self.default_model}
        try:
            descriptor = coerce_model(model)
        except ValidationError as e:
            raise CallValidationError(
                f"Invalid model descriptor: {e}", "model", ctx,
            ) from e
        return typed_turns, descriptor


def create_orchestrator(
    sink: ResponseSink,
    settings: Settings | None = None,
    provider: GenerationProvider | None = None,
    configure_logging: bool = True,
) -> IterationOrchestrator:
    """Wire settings → logging, policy → executor → orchestrator.

    Builds the Anthropic provider when none is supplied. The orchestrator's
    default model is settings.agent_model.
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.log_level, settings.log_format)
    if provider is None:
        provider = AnthropicGenerationProvider(
            api_key=settings.anthropic_api_key,
            timeout_seconds=settings.anthropic_timeout_seconds,
            max_tokens=settings.agent_max_tokens,
            summary_max_tokens=settings.summary_max_tokens,
        )
    executor = ResilientCallExecutor(provider, RetryPolicy.from_settings(settings))
    return IterationOrchestrator(executor, sink, default_model=settings.agent_model)
