"""Anthropic Generation Provider — AsyncAnthropic adapter implementing GenerationProvider.

Invariants:
    - SDK retries disabled (max_retries=0): ResilientCallExecutor owns retry
    - Every SDK failure leaves as ProviderError with an api_error_type:
      rate_limit (429, retry-after header), server_error (5xx), overloaded (529),
      connection_error, timeout, client_error (other 4xx), unknown
    - Request raced against the CancellationToken; cancel() aborts the HTTP call
    - System-role turns folded into the system prompt (Messages API has no system role)

Design Decisions:
    - Adapter over raw client: executor and orchestrator never import anthropic
    - is_primary_call selects max_tokens (full agent budget vs. summary budget)
    - Timeouts are fatal, connection errors transient (retrying a 300s timeout
      would multiply the wait by max_attempts)
"""

import asyncio
import logging
from collections.abc import Sequence

import anthropic
from anthropic import (
    APIError,
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    InternalServerError,
    RateLimitError,
)

from agent_iteration.core.cancellation import CancellationToken
from agent_iteration.core.domain_types import Role
from agent_iteration.core.errors import CallCancelledError, ProviderError
from agent_iteration.core.failure_classification import parse_retry_delay
from agent_iteration.schemas.conversation import (
    ContentBlock, ConversationTurn, GenerationResponse, TokenUsage,
)

logger = logging.getLogger(__name__)

# OverloadedError (HTTP 529) is not re-exported by every SDK release.
# Detect via status code on APIStatusError instead of a private import.
_OVERLOADED_STATUS = 529


class AnthropicGenerationProvider:
    """Single-shot Anthropic Messages call with error mapping and cancellation."""

    def __init__(
        self,
        api_key: str,
        timeout_seconds: int = 300,
        max_tokens: int = 8192,
        summary_max_tokens: int = 2048,
    ):
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self.max_tokens = max_tokens
        self.summary_max_tokens = summary_max_tokens

    async def generate_message(
        self,
        system_prompt: str,
        turns: Sequence[ConversationTurn],
        model_name: str,
        is_primary_call: bool,
        cancellation: CancellationToken,
    ) -> GenerationResponse:
        cancellation.raise_if_cancelled()
        system, messages = build_messages(system_prompt, turns)
        request = asyncio.ensure_future(self.client.messages.create(
            model=model_name,
            max_tokens=self.max_tokens if is_primary_call else self.summary_max_tokens,
            system=system,
            messages=messages,
        ))
        cancelled = asyncio.ensure_future(cancellation.wait())
        try:
            done, _ = await asyncio.wait(
                {request, cancelled}, return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            await _cancel_pending(request, cancelled)

        if request not in done:
            logger.info("Provider call cancelled", extra={"model": model_name})
            raise CallCancelledError()

        try:
            message = request.result()
        except APIError as e:
            raise map_api_error(e) from e
        response = to_generation_response(message)
        if response.token_usage is not None:
            logger.info(
                "Anthropic API success",
                extra={
                    "model": model_name,
                    "input_tokens": response.token_usage.input_tokens,
                    "output_tokens": response.token_usage.output_tokens,
                },
            )
        return response


def build_messages(
    system_prompt: str, turns: Sequence[ConversationTurn],
) -> tuple[str, list[dict]]:
    """Split turns into (system text, Messages API message list)."""
    system_parts = [system_prompt]
    messages = []
    for turn in turns:
        if turn.role == Role.SYSTEM:
            text = turn.text()
            if text:
                system_parts.append(text)
            continue
        messages.append({
            "role": turn.role.value,
            "content": [b.model_dump(exclude_none=True) for b in turn.content],
        })
    return "\n\n".join(system_parts), messages


def to_generation_response(message) -> GenerationResponse:
    """Convert an SDK Message into the provider-neutral response payload."""
    usage = getattr(message, "usage", None)
    return GenerationResponse(
        content=[
            ContentBlock.model_validate(b.model_dump(exclude_none=True))
            for b in message.content
        ],
        token_usage=TokenUsage(
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
        ) if usage is not None else None,
        stop_reason=getattr(message, "stop_reason", None),
    )


def map_api_error(e: APIError) -> ProviderError:
    """Map an Anthropic SDK error to ProviderError (order matters: subclasses first)."""
    if isinstance(e, RateLimitError):
        return ProviderError(
            str(e), "rate_limit",
            status_code=e.status_code,
            retry_after_seconds=_extract_retry_after(e),
        )
    if isinstance(e, APITimeoutError):
        return ProviderError("API timeout", "timeout")
    if isinstance(e, APIConnectionError):
        return ProviderError(str(e), "connection_error")
    if isinstance(e, InternalServerError):
        return ProviderError(str(e), "server_error", status_code=e.status_code)
    if isinstance(e, APIStatusError):
        if e.status_code == _OVERLOADED_STATUS:
            return ProviderError(
                "Anthropic API overloaded (529)", "overloaded",
                status_code=e.status_code,
            )
        if 500 <= e.status_code < 600:
            return ProviderError(str(e), "server_error", status_code=e.status_code)
        return ProviderError(str(e), "client_error", status_code=e.status_code)
    return ProviderError(str(e), "unknown")


def _extract_retry_after(error: RateLimitError) -> float | None:
    """Retry-After header in seconds, or None when absent/malformed."""
    response = getattr(error, "response", None)
    if response is None:
        return None
    return parse_retry_delay(response.headers.get("retry-after"))


async def _cancel_pending(*tasks: asyncio.Future) -> None:
    pending = [t for t in tasks if not t.done()]
    for t in pending:
        t.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
