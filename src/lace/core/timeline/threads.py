"""Projection of mixed streams that interleave a main thread and its delegates.

A delegate (sub-agent) thread id is its parent's id plus a dotted suffix,
e.g. ``lace_20250101_abc123.1``. Events of every thread arrive in one stream;
each thread gets its own projector so pending tables never cross threads.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime

from lace.core.contracts import DomainEvent, Timeline, TimelineItem, ToolExecutionItem

from .projector import TimelineProjector

DELEGATE_SEPARATOR = "."
DELEGATE_METADATA_KEYS = ("threadId", "thread_id")


@dataclass(frozen=True, slots=True)
class ThreadGroup:
    thread_id: str
    events: tuple[DomainEvent, ...]

    @property
    def is_delegate(self) -> bool:
        return is_delegate_thread(self.thread_id)


@dataclass(frozen=True, slots=True)
class ProcessedThreads:
    """Main timeline plus one timeline per delegate thread."""

    main_thread_id: str | None
    main: Timeline
    delegates: dict[str, Timeline] = field(default_factory=dict)


def is_delegate_thread(thread_id: str) -> bool:
    return DELEGATE_SEPARATOR in thread_id


def parent_thread_id(thread_id: str) -> str:
    """Return the id of the thread that spawned ``thread_id`` (itself for a main thread)."""
    return thread_id.rsplit(DELEGATE_SEPARATOR, 1)[0]


def group_by_thread(events: Iterable[DomainEvent]) -> list[ThreadGroup]:
    """
    Group events by thread id.

    Each group is sorted by timestamp; groups are ordered by the timestamp of
    their earliest event.
    """
    buckets: dict[str, list[DomainEvent]] = {}
    for event in events:
        buckets.setdefault(event.thread_id, []).append(event)

    groups = [
        ThreadGroup(thread_id, tuple(sorted(bucket, key=lambda e: e.timestamp)))
        for thread_id, bucket in buckets.items()
    ]
    groups.sort(key=lambda g: g.events[0].timestamp)
    return groups


def project_threads(
    events: Iterable[DomainEvent],
    *,
    preview_chars: int | None = None,
    clock: Callable[[], datetime] | None = None,
) -> ProcessedThreads:
    """Bulk-load every thread in ``events`` into its own timeline."""
    main_id: str | None = None
    main: Timeline | None = None
    delegates: dict[str, Timeline] = {}

    for group in group_by_thread(events):
        projector = TimelineProjector(preview_chars=preview_chars, clock=clock)
        projector.load(group.events)
        if group.is_delegate:
            delegates[group.thread_id] = projector.snapshot()
        elif main is None:
            main_id, main = group.thread_id, projector.snapshot()

    if main is None:
        main = TimelineProjector(preview_chars=preview_chars, clock=clock).snapshot()
    return ProcessedThreads(main_thread_id=main_id, main=main, delegates=delegates)


def delegate_thread_id(item: TimelineItem) -> str | None:
    """Return the child thread a delegation result points at, if any."""
    if not isinstance(item, ToolExecutionItem) or item.result is None:
        return None
    metadata = item.result.metadata or {}
    for key in DELEGATE_METADATA_KEYS:
        value = metadata.get(key)
        if isinstance(value, str) and value:
            return value
    return None


__all__ = [
    "ProcessedThreads",
    "ThreadGroup",
    "delegate_thread_id",
    "group_by_thread",
    "is_delegate_thread",
    "parent_thread_id",
    "project_threads",
]
