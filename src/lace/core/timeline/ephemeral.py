"""Consumer-side merge of transient UI messages into a projected timeline.

Streaming text, local notices and the like are shown before they are
persisted. They never pass through the projector; a renderer merges them
into a snapshot with :func:`merge_ephemeral` to get one ordered list.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lace.core.contracts import EphemeralMessageItem, Timeline, TimelineMetadata

from .ordering import merge_ordered

EphemeralKind = Literal["user", "assistant", "system", "tool"]


class EphemeralMessage(BaseModel):
    """A message held only in UI memory."""

    model_config = ConfigDict(frozen=True)

    kind: EphemeralKind
    text: str = Field(default="")
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        return v.replace(tzinfo=UTC) if v.tzinfo is None else v

    def as_item(self) -> EphemeralMessageItem:
        return EphemeralMessageItem(
            message_kind=self.kind, text=self.text, timestamp=self.timestamp
        )


def merge_ephemeral(timeline: Timeline, messages: Iterable[EphemeralMessage]) -> Timeline:
    """
    Return a new timeline with ``messages`` merged in chronological order.

    Persisted items sort before ephemeral ones with the same timestamp.
    ``event_count`` and ``message_count`` describe processed events only and
    are carried over; ``last_activity`` accounts for the merged messages.
    """
    extra = sorted((m.as_item() for m in messages), key=lambda item: item.timestamp)
    if not extra:
        return timeline

    items = merge_ordered(timeline.items, extra)
    if timeline.items:
        last_activity = max(max(i.timestamp for i in timeline.items), extra[-1].timestamp)
    else:
        last_activity = extra[-1].timestamp
    return Timeline(
        items=tuple(items),
        metadata=TimelineMetadata(
            event_count=timeline.metadata.event_count,
            message_count=timeline.metadata.message_count,
            last_activity=last_activity,
        ),
    )


__all__ = ["EphemeralKind", "EphemeralMessage", "merge_ephemeral"]
