"""Pydantic contracts shared by the timeline core, CLI and API."""

from __future__ import annotations

from .events import ContentBlock, DomainEvent, EventKind, ToolCall, ToolResult
from .timeline import (
    MESSAGE_TYPES,
    AgentMessageItem,
    EphemeralMessageItem,
    SystemMessageItem,
    Timeline,
    TimelineItem,
    TimelineMetadata,
    ToolExecutionItem,
    UserMessageItem,
)

__all__ = [
    "MESSAGE_TYPES",
    "AgentMessageItem",
    "ContentBlock",
    "DomainEvent",
    "EphemeralMessageItem",
    "EventKind",
    "SystemMessageItem",
    "Timeline",
    "TimelineItem",
    "TimelineMetadata",
    "ToolCall",
    "ToolExecutionItem",
    "ToolResult",
    "UserMessageItem",
]
