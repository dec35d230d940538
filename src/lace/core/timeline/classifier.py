"""Event classifier: maps one domain event to zero or more timeline items.

The classifier holds no state of its own. Tool calls and results are
correlated through the :class:`PendingToolCalls` table passed in by the
caller, which is the only thing it mutates:

- ``TOOL_CALL``   registers an entry and yields no item;
- ``TOOL_RESULT`` resolves the entry into one ``tool_execution`` item, or
  yields an orphan notice when no entry matches.

Nothing here raises on bad input. Unknown kinds yield nothing, malformed
payloads degrade into visible ``system_message`` items, and the returned
:class:`Outcome` tells the caller what happened so it can log and count.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, assert_never

from pydantic import ValidationError

from lace.core.contracts import (
    AgentMessageItem,
    ContentBlock,
    DomainEvent,
    EventKind,
    SystemMessageItem,
    TimelineItem,
    ToolCall,
    ToolExecutionItem,
    ToolResult,
    UserMessageItem,
)

from .pending import PendingToolCalls

NON_TEXT_PLACEHOLDER = "[non-text result]"
ORPHAN_PREFIX = "Tool result (orphaned): "
MALFORMED_CALL_PREFIX = "Tool call (malformed): "
DEFAULT_PREVIEW_CHARS = 200


class Outcome(StrEnum):
    """What classifying one event did."""

    ITEM = "item"  # plain message item
    PENDING = "pending"  # tool call registered
    MATCHED = "matched"  # result paired with its call
    ORPHANED = "orphaned"  # result without a call
    MALFORMED = "malformed"  # payload could not be parsed
    IGNORED = "ignored"  # unknown kind


@dataclass(frozen=True, slots=True)
class Classification:
    """Items produced by one event plus the outcome that produced them."""

    outcome: Outcome
    items: tuple[TimelineItem, ...] = field(default_factory=tuple)


def classify(
    event: DomainEvent,
    pending: PendingToolCalls,
    *,
    preview_chars: int = DEFAULT_PREVIEW_CHARS,
) -> Classification:
    """Classify ``event``, registering or resolving tool calls in ``pending``."""
    kind = event.kind
    if kind is None:
        return Classification(Outcome.IGNORED)

    match kind:
        case EventKind.USER_MESSAGE:
            item: TimelineItem = UserMessageItem(
                id=event.id, timestamp=event.timestamp, text=_text(event.data)
            )
            return Classification(Outcome.ITEM, (item,))
        case EventKind.AGENT_MESSAGE:
            item = AgentMessageItem(id=event.id, timestamp=event.timestamp, text=_text(event.data))
            return Classification(Outcome.ITEM, (item,))
        case (
            EventKind.LOCAL_SYSTEM_MESSAGE
            | EventKind.SYSTEM_PROMPT
            | EventKind.USER_SYSTEM_PROMPT
        ):
            item = SystemMessageItem(
                id=event.id,
                timestamp=event.timestamp,
                text=_text(event.data),
                origin_kind=kind,
            )
            return Classification(Outcome.ITEM, (item,))
        case EventKind.TOOL_CALL:
            return _classify_call(event, pending)
        case EventKind.TOOL_RESULT:
            return _classify_result(event, pending, preview_chars)
        case _:
            assert_never(kind)


def _classify_call(event: DomainEvent, pending: PendingToolCalls) -> Classification:
    try:
        call = ToolCall.model_validate(event.data)
    except ValidationError:
        name = event.data.get("name") if isinstance(event.data, dict) else None
        item = SystemMessageItem(
            id=event.id,
            timestamp=event.timestamp,
            text=f"{MALFORMED_CALL_PREFIX}{name or '[unknown tool]'}",
            origin_kind=EventKind.TOOL_CALL,
        )
        return Classification(Outcome.MALFORMED, (item,))

    pending.register(event, call)
    return Classification(Outcome.PENDING)


def _classify_result(
    event: DomainEvent, pending: PendingToolCalls, preview_chars: int
) -> Classification:
    malformed = False
    try:
        result = ToolResult.model_validate(event.data)
    except ValidationError:
        result = _salvage_result(event.data)
        malformed = True

    entry = pending.resolve(result.id)
    if entry is not None:
        item: TimelineItem = ToolExecutionItem(
            call_id=entry.call.id,
            call=entry.call,
            result=result,
            timestamp=entry.event.timestamp,
        )
        return Classification(Outcome.MALFORMED if malformed else Outcome.MATCHED, (item,))

    item = SystemMessageItem(
        id=event.id,
        timestamp=event.timestamp,
        text=ORPHAN_PREFIX + _preview(result.text(), preview_chars),
        origin_kind=EventKind.TOOL_RESULT,
    )
    return Classification(Outcome.MALFORMED if malformed else Outcome.ORPHANED, (item,))


def _salvage_result(data: Any) -> ToolResult:
    """Keep what a broken result payload still offers: its id and plain-string content."""
    if not isinstance(data, dict):
        return ToolResult()
    raw_id = data.get("id")
    raw_content = data.get("content")
    return ToolResult(
        id=raw_id if isinstance(raw_id, str) and raw_id else None,
        content=[ContentBlock(text=raw_content)] if isinstance(raw_content, str) else [],
    )


def _text(data: Any) -> str:
    if data is None:
        return ""
    return data if isinstance(data, str) else str(data)


def _preview(text: str | None, limit: int) -> str:
    if text is None:
        return NON_TEXT_PLACEHOLDER
    return text if len(text) <= limit else text[:limit] + "..."


__all__ = [
    "NON_TEXT_PLACEHOLDER",
    "ORPHAN_PREFIX",
    "Classification",
    "Outcome",
    "classify",
]
