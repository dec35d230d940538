"""Domain event contracts consumed by the timeline core.

Events are produced and owned by the durable thread log (or a live stream);
the core only reads them. Field names follow Python conventions while the
wire aliases (``threadId``, ``isError``) match the JSON the log writes, so
``DomainEvent.model_validate(json_obj)`` works on raw log lines.

Timestamps
----------
Naive timestamps are interpreted as UTC. A stream mixing naive and aware
datetimes would otherwise make ordering comparisons raise ``TypeError``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventKind(StrEnum):
    """Event kinds the classifier knows how to project."""

    USER_MESSAGE = "USER_MESSAGE"
    AGENT_MESSAGE = "AGENT_MESSAGE"
    LOCAL_SYSTEM_MESSAGE = "LOCAL_SYSTEM_MESSAGE"
    SYSTEM_PROMPT = "SYSTEM_PROMPT"
    USER_SYSTEM_PROMPT = "USER_SYSTEM_PROMPT"
    TOOL_CALL = "TOOL_CALL"
    TOOL_RESULT = "TOOL_RESULT"


class ToolCall(BaseModel):
    """A tool invocation requested by the agent."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Call identifier, unique within a thread")
    name: str = Field(description="Tool name, e.g. 'bash'")
    arguments: dict[str, Any] = Field(default_factory=dict, description="Structured input")

    @field_validator("arguments", mode="before")
    @classmethod
    def _null_arguments(cls, v: Any) -> Any:
        return {} if v is None else v


class ContentBlock(BaseModel):
    """One block of tool output. Only ``text`` is interpreted by the core."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str = Field(default="text")
    text: str | None = Field(default=None)

    @field_validator("type", mode="before")
    @classmethod
    def _null_type(cls, v: Any) -> Any:
        return "text" if v is None else v

    @field_validator("text", mode="before")
    @classmethod
    def _text_or_none(cls, v: Any) -> str | None:
        """Only string text is interpreted; anything else reads as non-text."""
        return v if isinstance(v, str) else None


class ToolResult(BaseModel):
    """Outcome of a tool call, correlated to it through ``id``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str | None = Field(default=None, description="Identifier of the originating call")
    is_error: bool = Field(default=False, alias="isError")
    content: list[ContentBlock] = Field(default_factory=list)
    metadata: dict[str, Any] | None = Field(
        default=None, description="Auxiliary data, e.g. a delegate's child thread id"
    )

    @field_validator("is_error", mode="before")
    @classmethod
    def _null_is_error(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("content", mode="before")
    @classmethod
    def _null_content(cls, v: Any) -> Any:
        return [] if v is None else v

    def text(self) -> str | None:
        """Return the text blocks joined by newlines, or None if none carry text."""
        parts = [block.text for block in self.content if isinstance(block.text, str)]
        return "\n".join(parts) if parts else None


class DomainEvent(BaseModel):
    """Immutable record of something that happened in a conversation thread."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    thread_id: str = Field(alias="threadId")
    # Plain string so kinds added by newer logs still load; see `kind`.
    type: str
    timestamp: datetime
    data: Any = None

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        """Attach UTC to naive timestamps so every pair is comparable."""
        return v.replace(tzinfo=UTC) if v.tzinfo is None else v

    @property
    def kind(self) -> EventKind | None:
        """Return the known kind of this event, or None for unknown kinds."""
        try:
            return EventKind(self.type)
        except ValueError:
            return None


__all__ = [
    "ContentBlock",
    "DomainEvent",
    "EventKind",
    "ToolCall",
    "ToolResult",
]
