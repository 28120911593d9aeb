"""Resilient Call Executor — wraps one provider call with classified retry and backoff.

Invariants:
    - Attempts are sequential, numbered 1..max_attempts, never more
    - RateLimited: wait provider retry-after seconds, else delay/1000; then delay doubles
    - Transient: wait delay; then delay doubles (capped at RetryPolicy.max_delay_ms)
    - Fatal: original exception re-raised unmodified, no further attempts or waits
    - Exhaustion raises RetriesExhaustedError chained from the last provider error
    - Delay resets only per execute_with_retry() call, never mid-sequence
    - No wait follows the final attempt

Design Decisions:
    - Classification injected (default classify_failure): loop never inspects provider fields
    - Waits go through CancellationToken.sleep so cancel() ends a backoff early;
      an injected sleep callable replaces it (tests, custom schedulers) and is
      raced against the token, so cancel() ends an injected wait early too
    - Input validation before the first attempt: bad input is fatal, never retried
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from pydantic import ValidationError

from agent_iteration.core.boundary_protocols import GenerationProvider
from agent_iteration.core.cancellation import CancellationToken
from agent_iteration.core.errors import (
    CallCancelledError, CallValidationError, ErrorContext, RetriesExhaustedError,
)
from agent_iteration.core.failure_classification import (
    Failure, Fatal, RateLimited, classify_failure,
)
from agent_iteration.core.retry_policy import RetryPolicy
from agent_iteration.schemas.conversation import (
    ConversationTurn, GenerationResponse, coerce_turns,
)

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ResilientCallExecutor:
    """Executes a single generation call up to max_attempts times."""

    def __init__(
        self,
        provider: GenerationProvider,
        policy: RetryPolicy | None = None,
        sleep: Sleep | None = None,
        classify: Callable[[BaseException], Failure] = classify_failure,
    ):
        self.provider = provider
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._classify = classify

    async def execute_with_retry(
        self,
        system_prompt: str,
        turns: Sequence[ConversationTurn],
        model_name: str,
        is_primary_call: bool,
        cancellation: CancellationToken,
        max_retries: int | None = None,
        context: ErrorContext | None = None,
    ) -> GenerationResponse:
        """Call the provider, retrying RateLimited/Transient failures with backoff."""
        ctx = context or ErrorContext()
        if ctx.model_name is None:
            ctx.model_name = model_name
        max_attempts = self.policy.max_attempts if max_retries is None else max_retries
        turns = self._validate(system_prompt, turns, model_name, max_attempts, ctx)

        delay_ms = self.policy.initial_delay_ms
        last_error: Exception | None = None

        for attempt in range(1, max_attempts + 1):
            ctx.attempt = attempt
            cancellation.raise_if_cancelled(ctx)
            try:
                response = await self.provider.generate_message(
                    system_prompt, turns, model_name,
                    is_primary_call, cancellation,
                )
            except Exception as e:
                failure = self._classify(e)
                if isinstance(failure, Fatal):
                    logger.error(
                        "Fatal error: %s", e,
                        extra=self._log_extra(ctx, attempt, max_attempts),
                    )
                    raise
                last_error = e
                if attempt >= max_attempts:
                    break
                wait_seconds = self._wait_seconds(failure, delay_ms)
                self._log_retry(failure, wait_seconds, ctx, attempt, max_attempts)
                await self._wait(wait_seconds, cancellation, ctx)
                delay_ms = self.policy.next_delay_ms(delay_ms)
                continue

            if attempt > 1:
                logger.info(
                    "Generation call succeeded after %d attempts", attempt,
                    extra=self._log_extra(ctx, attempt, max_attempts),
                )
            return response

        logger.error(
            "Max retries reached for generation call (%d attempts)", max_attempts,
            extra=self._log_extra(ctx, max_attempts, max_attempts),
        )
        raise RetriesExhaustedError(max_attempts, ctx) from last_error

    def _validate(self, system_prompt, turns, model_name, max_attempts, ctx):
        """Reject bad input before any provider call. Returns typed turns."""
        if not isinstance(system_prompt, str) or not system_prompt.strip():
            raise CallValidationError(
                "System prompt must be a non-empty string", "system_prompt", ctx,
            )
        if not isinstance(model_name, str) or not model_name.strip():
            raise CallValidationError(
                "Model identifier must be a non-empty string", "model_name", ctx,
            )
        if isinstance(max_attempts, bool) or not isinstance(max_attempts, int) or max_attempts < 1:
            raise CallValidationError(
                f"max_retries must be an integer >= 1 (got {max_attempts!r})",
                "max_retries", ctx,
            )
        try:
            return coerce_turns(turns)
        except (ValidationError, TypeError) as e:
            raise CallValidationError(
                f"Invalid conversation turns: {e}", "turns", ctx,
            ) from e

    @staticmethod
    def _wait_seconds(failure: Failure, delay_ms: int) -> float:
        if isinstance(failure, RateLimited) and failure.retry_after_seconds:
            return failure.retry_after_seconds
        return delay_ms / 1000

    async def _wait(
        self, seconds: float, cancellation: CancellationToken, ctx: ErrorContext,
    ) -> None:
        if self._sleep is None:
            if await cancellation.sleep(seconds):
                raise CallCancelledError(ctx)
            return
        sleeper = asyncio.ensure_future(self._sleep(seconds))
        cancelled = asyncio.ensure_future(cancellation.wait())
        try:
            await asyncio.wait(
                {sleeper, cancelled}, return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in (sleeper, cancelled):
                if not task.done():
                    task.cancel()
            await asyncio.gather(sleeper, cancelled, return_exceptions=True)
        if cancellation.cancelled:
            raise CallCancelledError(ctx)
        sleeper.result()

    def _log_retry(self, failure, wait_seconds, ctx, attempt, max_attempts):
        extra = self._log_extra(ctx, attempt, max_attempts)
        extra["delay_ms"] = int(wait_seconds * 1000)
        if isinstance(failure, RateLimited):
            logger.warning(
                "429 quota exceeded. Retrying in %ss (attempt %d/%d)",
                wait_seconds, attempt, max_attempts, extra=extra,
            )
            return
        extra["status_code"] = failure.status_code
        logger.warning(
            "Server error %s. Retrying in %ss (attempt %d/%d)",
            failure.status_code, wait_seconds, attempt, max_attempts, extra=extra,
        )

    @staticmethod
    def _log_extra(ctx: ErrorContext, attempt: int, max_attempts: int) -> dict:
        return {
            "task_id": ctx.task_id,
            "model": ctx.model_name,
            "attempt": attempt,
            "max_attempts": max_attempts,
        }
