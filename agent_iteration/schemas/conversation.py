"""Conversation Schemas — typed turns, model descriptor, and provider response.

Invariants:
    - ConversationTurn.role is one of user / assistant / system
    - Text blocks carry non-None text; unknown block types pass through untouched
    - ModelDescriptor.name is non-empty after stripping
    - summary_request_turn() builds a fresh turn per call (never cached or shared)

Design Decisions:
    - Pydantic at the boundary replaces untyped message dicts: invalid input fails
      before any provider call (ADR: validation errors are fatal)
    - extra="allow" on ContentBlock: image/tool blocks survive round-trips unchanged
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from agent_iteration.core.domain_types import ContentType, Role

SUMMARY_REQUEST_TEXT = (
    "Respond with a summary of the messages above. "
    "Do not include any additional information."
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentBlock(BaseModel):
    """Single content entry of a turn (text, or passthrough for other types)."""
    model_config = ConfigDict(extra="allow")

    type: str
    text: str | None = None

    @model_validator(mode="after")
    def text_blocks_have_text(self) -> "ContentBlock":
        if self.type == ContentType.TEXT.value and self.text is None:
            raise ValueError("text block requires 'text'")
        return self


class ConversationTurn(BaseModel):
    """Role-tagged message supplied by the caller (or synthesized for summaries)."""
    id: str = ""
    role: Role
    content: list[ContentBlock]
    task_id: str | None = None
    summary_id: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "".join(
            b.text or "" for b in self.content
            if b.type == ContentType.TEXT.value
        )


class ModelDescriptor(BaseModel):
    """Model selection passed by the caller — only `name` reaches the provider."""
    model_config = ConfigDict(extra="allow")

    name: str
    provider: str = "anthropic"
    title: str | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("model name cannot be empty or whitespace")
        return v


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class GenerationResponse(BaseModel):
    """Provider response payload handed to the response sink."""
    content: list[ContentBlock]
    token_usage: TokenUsage | None = None
    stop_reason: str | None = None

    def text(self) -> str:
        return "".join(
            b.text or "" for b in self.content
            if b.type == ContentType.TEXT.value
        )


def summary_request_turn(task_id: str) -> ConversationTurn:
    """Synthetic user turn asking for a summary of the preceding turns."""
    return ConversationTurn(
        id="",
        role=Role.USER,
        content=[ContentBlock(type=ContentType.TEXT.value, text=SUMMARY_REQUEST_TEXT)],
        task_id=task_id,
        summary_id=None,
    )


def coerce_turns(turns: Any) -> list[ConversationTurn]:
    """Validate caller turns (models or dicts). Raises pydantic ValidationError."""
    if turns is None:
        return []
    if isinstance(turns, (str, bytes, dict)):
        raise TypeError("turns must be a sequence of turns")
    return [
        t if isinstance(t, ConversationTurn) else ConversationTurn.model_validate(t)
        for t in turns
    ]


def coerce_model(model: Any) -> ModelDescriptor:
    """Validate caller model (descriptor or dict). Raises pydantic ValidationError."""
    if isinstance(model, ModelDescriptor):
        return model
    return ModelDescriptor.model_validate(model)
