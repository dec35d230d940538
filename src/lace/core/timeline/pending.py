"""Pending tool-call table.

Maps a call id to the event that issued it and its parsed payload. One table
belongs to one projector; only that projector writes to it.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from lace.core.contracts import DomainEvent, ToolCall, ToolExecutionItem


@dataclass(frozen=True, slots=True)
class PendingCall:
    """A call seen in the stream whose result has not arrived yet."""

    event: DomainEvent
    call: ToolCall

    def as_item(self) -> ToolExecutionItem:
        """Project this call as an in-flight execution (no result)."""
        return ToolExecutionItem(
            call_id=self.call.id,
            call=self.call,
            result=None,
            timestamp=self.event.timestamp,
        )


class PendingToolCalls:
    """Insertion-ordered table of unresolved tool calls keyed by call id."""

    __slots__ = ("_calls",)

    def __init__(self) -> None:
        self._calls: dict[str, PendingCall] = {}

    def register(self, event: DomainEvent, call: ToolCall) -> None:
        """Record ``call``; a repeated id replaces the earlier entry."""
        self._calls[call.id] = PendingCall(event=event, call=call)

    def resolve(self, call_id: str | None) -> PendingCall | None:
        """Remove and return the entry for ``call_id``, or None if absent."""
        if call_id is None:
            return None
        return self._calls.pop(call_id, None)

    def ids(self) -> tuple[str, ...]:
        return tuple(self._calls)

    def drain(self) -> list[tuple[str, PendingCall]]:
        """Remove every entry and return ``(call_id, entry)`` in registration order."""
        drained = list(self._calls.items())
        self._calls.clear()
        return drained

    def clear(self) -> None:
        self._calls.clear()

    def __iter__(self) -> Iterator[PendingCall]:
        return iter(list(self._calls.values()))

    def __contains__(self, call_id: object) -> bool:
        return call_id in self._calls

    def __len__(self) -> int:
        return len(self._calls)


__all__ = ["PendingCall", "PendingToolCalls"]
