"""Timeline contracts: projected items and the snapshot that carries them.

``TimelineItem`` is a closed tagged union discriminated on ``type``. Renderers
switch on the tag; adding a variant means adding it to ``TimelineItem`` and to
every ``match`` that dispatches on it.

All models are frozen and ``Timeline.items`` is a tuple, so a snapshot handed
to a consumer cannot be used to mutate the projector that produced it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from .events import EventKind, ToolCall, ToolResult


class _Item(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime


class UserMessageItem(_Item):
    """Text sent by the user."""

    type: Literal["user_message"] = "user_message"
    id: str
    text: str


class AgentMessageItem(_Item):
    """Text produced by the agent.

    Embedded thinking markup is left in ``text`` untouched; splitting it out
    is a rendering concern.
    """

    type: Literal["agent_message"] = "agent_message"
    id: str
    text: str


class SystemMessageItem(_Item):
    """System-ish text, tagged with the event kind that produced it."""

    type: Literal["system_message"] = "system_message"
    id: str
    text: str
    origin_kind: EventKind

    @property
    def orphaned(self) -> bool:
        """True for the notice synthesized from a result with no matching call."""
        return self.origin_kind is EventKind.TOOL_RESULT


class ToolExecutionItem(_Item):
    """A tool call paired with its result, or with None while it is in flight.

    ``timestamp`` is the call's timestamp, never the result's.
    """

    type: Literal["tool_execution"] = "tool_execution"
    call_id: str
    call: ToolCall
    result: ToolResult | None = None

    @property
    def pending(self) -> bool:
        """True while no result has been paired with the call."""
        return self.result is None


class EphemeralMessageItem(_Item):
    """Transient, non-persisted UI message merged in by a consumer."""

    type: Literal["ephemeral_message"] = "ephemeral_message"
    message_kind: str
    text: str


TimelineItem = Annotated[
    UserMessageItem
    | AgentMessageItem
    | SystemMessageItem
    | ToolExecutionItem
    | EphemeralMessageItem,
    Field(discriminator="type"),
]

MESSAGE_TYPES: frozenset[str] = frozenset({"user_message", "agent_message"})


class TimelineMetadata(BaseModel):
    """Summary numbers shown alongside a timeline."""

    model_config = ConfigDict(frozen=True)

    event_count: int = Field(ge=0, description="Events processed, including tool calls")
    message_count: int = Field(ge=0, description="User plus agent message items")
    last_activity: datetime


class Timeline(BaseModel):
    """Immutable, chronologically ordered snapshot of a projected thread."""

    model_config = ConfigDict(frozen=True)

    items: tuple[TimelineItem, ...] = ()
    metadata: TimelineMetadata


__all__ = [
    "MESSAGE_TYPES",
    "AgentMessageItem",
    "EphemeralMessageItem",
    "SystemMessageItem",
    "Timeline",
    "TimelineItem",
    "TimelineMetadata",
    "ToolExecutionItem",
    "UserMessageItem",
]
