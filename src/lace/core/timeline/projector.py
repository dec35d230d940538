"""
Incremental timeline projector.

A :class:`TimelineProjector` owns the projected state of one thread:

- an ordered list of timeline items,
- the pending tool-call table,
- a processed-event counter and a few diagnostic counters.

It exposes the operations a rendering layer needs:

- ``append(event)``: live path, O(1) amortized for in-order events.
- ``load(events)``: resume path, resets then replays a full history in
  timestamp order and materializes calls whose result never arrived.
- ``reset()``: back to the empty state.
- ``snapshot()``: immutable :class:`Timeline` plus summary metadata.

Pending calls on read
---------------------
During live use a call without a result is still shown by ``snapshot()`` as an
in-flight ``tool_execution`` item (``result=None``) at the call's position.
The entry stays in the pending table so a later result can still resolve it.
``load`` differs only in that it removes such entries from the table, so a
bulk load and the same events appended in timestamp order read the same.

Notifications
-------------
Listeners registered with ``subscribe`` are called with no arguments after
every ``append`` and ``reset``, and after a ``load`` of a non-empty batch.
They run after the lock is released and should re-read ``snapshot()``.

Threading
---------
Mutations are expected from a single dispatch loop. An ``RLock`` still wraps
each mutation and each snapshot copy so a concurrent reader never observes a
half-applied update.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from lace.core.contracts import (
    MESSAGE_TYPES,
    DomainEvent,
    Timeline,
    TimelineItem,
    TimelineMetadata,
    ToolExecutionItem,
)
from lace.core.errors import TimelineInvariantError
from lace.core.settings import get_logger, load_settings

from .classifier import Classification, Outcome, classify
from .ordering import insert_ordered, merge_ordered, sort_stable
from .pending import PendingToolCalls

Listener = Callable[[], None]
Clock = Callable[[], datetime]

logger = get_logger("lace.timeline")


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class ProjectorStats:
    """Diagnostic counters of a projector since its last reset."""

    events_appended: int = 0
    events_loaded: int = 0
    out_of_order_inserts: int = 0
    orphaned_results: int = 0
    malformed_payloads: int = 0
    ignored_events: int = 0
    reconciled_calls: int = 0
    pending_calls: int = 0


class TimelineProjector:
    """Projects a thread's event stream into an ordered, renderable timeline."""

    __slots__ = (
        "_items",
        "_pending",
        "_event_count",
        "_counters",
        "_listeners",
        "_lock",
        "_preview_chars",
        "_clock",
    )

    def __init__(self, *, preview_chars: int | None = None, clock: Clock | None = None) -> None:
        self._items: list[TimelineItem] = []
        self._pending = PendingToolCalls()
        self._event_count: int = 0
        self._counters: dict[str, int] = {}
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()
        self._preview_chars = (
            preview_chars if preview_chars is not None else load_settings().orphan_preview_chars
        )
        self._clock: Clock = clock or _utcnow

    # ------------------------------- Mutations ------------------------------

    def append(self, event: DomainEvent) -> None:
        """Project one live event; always notifies listeners."""
        with self._lock:
            result = self._classify(event)
            for item in result.items:
                tail_before = len(self._items) - 1
                if insert_ordered(self._items, item) <= tail_before:
                    self._bump("out_of_order_inserts")
            self._event_count += 1
            self._bump("events_appended")
        self._notify()

    def load(self, events: Iterable[DomainEvent]) -> None:
        """
        Replace all state with the projection of a full event history.

        Events are replayed in timestamp order (stable for equal timestamps).
        Calls still pending at the end are materialized as ``tool_execution``
        items with no result and removed from the pending table.
        """
        batch = sorted(events, key=lambda e: e.timestamp)
        with self._lock:
            self._clear()
            for event in batch:
                self._items.extend(self._classify(event).items)
                self._event_count += 1
            self._bump("events_loaded", len(batch))

            for call_id, entry in self._pending.drain():
                if call_id != entry.call.id:
                    raise TimelineInvariantError(
                        f"pending table key {call_id!r} holds call {entry.call.id!r}"
                    )
                self._items.append(entry.as_item())
                self._bump("reconciled_calls")
            sort_stable(self._items)
        if batch:
            self._notify()

    def reset(self) -> None:
        """Clear items, pending calls and counters; always notifies listeners."""
        with self._lock:
            self._clear()
        self._notify()

    # ------------------------------- Reads ----------------------------------

    def snapshot(self) -> Timeline:
        """Return an immutable, chronologically ordered copy of the timeline."""
        with self._lock:
            in_flight = sorted(
                (entry.as_item() for entry in self._pending), key=lambda item: item.timestamp
            )
            items = merge_ordered(self._items, in_flight) if in_flight else list(self._items)
            event_count = self._event_count

        message_count = sum(1 for item in items if item.type in MESSAGE_TYPES)
        last_activity = max((item.timestamp for item in items), default=None) or self._clock()
        return Timeline(
            items=tuple(items),
            metadata=TimelineMetadata(
                event_count=event_count,
                message_count=message_count,
                last_activity=last_activity,
            ),
        )

    get_snapshot = snapshot

    def pending_calls(self) -> tuple[ToolExecutionItem, ...]:
        """Return the in-flight calls, oldest registration first."""
        with self._lock:
            return tuple(entry.as_item() for entry in self._pending)

    def stats(self) -> ProjectorStats:
        with self._lock:
            return ProjectorStats(pending_calls=len(self._pending), **self._counters)

    @property
    def is_empty(self) -> bool:
        """True in the initial state and after ``reset``."""
        with self._lock:
            return not self._items and not len(self._pending) and self._event_count == 0

    # ------------------------------- Listeners ------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a function that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------- Internals ------------------------------

    def _classify(self, event: DomainEvent) -> Classification:
        result = classify(event, self._pending, preview_chars=self._preview_chars)
        match result.outcome:
            case Outcome.IGNORED:
                self._bump("ignored_events")
                logger.warning("Ignoring event %s of unknown kind %r", event.id, event.type)
            case Outcome.ORPHANED:
                self._bump("orphaned_results")
                logger.warning(
                    "Orphaned tool result in event %s (pending calls: %s)",
                    event.id,
                    ", ".join(self._pending.ids()) or "none",
                )
            case Outcome.MALFORMED:
                self._bump("malformed_payloads")
                logger.warning("Malformed %s payload in event %s", event.type, event.id)
            case Outcome.PENDING:
                logger.debug("Tool call registered from event %s", event.id)
            case Outcome.MATCHED:
                logger.debug("Tool result in event %s paired with its call", event.id)
            case Outcome.ITEM:
                pass
        return result

    def _clear(self) -> None:
        self._items.clear()
        self._pending.clear()
        self._event_count = 0
        self._counters.clear()

    def _bump(self, name: str, by: int = 1) -> None:
        self._counters[name] = self._counters.get(name, 0) + by

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener()


__all__ = ["ProjectorStats", "TimelineProjector"]
