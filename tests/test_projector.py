"""Tests for the incremental timeline projector.

Scenarios
---------
1. Messages appended in order become ordered message items.
2. A call followed by its result becomes one execution at the call's time.
3. A lone result becomes an orphan notice.
4. A lone call is shown in flight on read and reconciled by `load`.
5. `reset()` empties the projector.
6. Out-of-order appends end up in timestamp order.

Properties
----------
- Any append order yields a chronological snapshot.
- `load(events)` equals appending the same events in timestamp order.
- `reset()` and `snapshot()` are idempotent.
"""

from __future__ import annotations

import random
import threading
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from pydantic import ValidationError

from lace.core.contracts import (
    DomainEvent,
    EventKind,
    SystemMessageItem,
    ToolExecutionItem,
    UserMessageItem,
)
from lace.core.timeline import TimelineProjector
from lace.core.timeline.ordering import is_chronological

T0 = datetime(2023, 1, 1, 10, 0, 0, tzinfo=UTC)
FIXED_NOW = datetime(2030, 1, 1, tzinfo=UTC)


def _at(seconds: int) -> datetime:
    return T0 + timedelta(seconds=seconds)


def _event(eid: str, kind: str, data: Any, seconds: int, thread_id: str = "t1") -> DomainEvent:
    return DomainEvent(id=eid, thread_id=thread_id, type=kind, timestamp=_at(seconds), data=data)


def _call(eid: str, call_id: str, seconds: int, name: str = "bash") -> DomainEvent:
    return _event(eid, EventKind.TOOL_CALL, {"id": call_id, "name": name, "arguments": {}}, seconds)


def _result(eid: str, call_id: str, seconds: int, text: str = "ok") -> DomainEvent:
    payload = {"id": call_id, "isError": False, "content": [{"type": "text", "text": text}]}
    return _event(eid, EventKind.TOOL_RESULT, payload, seconds)


@pytest.fixture  # type: ignore[misc]
def projector() -> TimelineProjector:
    return TimelineProjector(clock=lambda: FIXED_NOW)


# ------------------------------- Scenarios ----------------------------------


def test_user_then_agent_message(projector: TimelineProjector) -> None:
    projector.append(_event("1", EventKind.USER_MESSAGE, "Hello", 0))
    projector.append(_event("2", EventKind.AGENT_MESSAGE, "Hi!", 1))

    snap = projector.snapshot()
    assert len(snap.items) == 2
    assert snap.items[0].type == "user_message"
    assert snap.items[1].type == "agent_message"
    assert snap.metadata.message_count == 2
    assert snap.metadata.event_count == 2
    assert snap.metadata.last_activity == _at(1)


def test_call_and_result_make_one_execution(projector: TimelineProjector) -> None:
    projector.append(_call("1", "c1", 0))
    projector.append(_result("2", "c1", 1))

    snap = projector.snapshot()
    assert len(snap.items) == 1
    item = snap.items[0]
    assert isinstance(item, ToolExecutionItem)
    assert item.timestamp == _at(0)
    assert item.result is not None and not item.result.is_error
    assert snap.metadata.event_count == 2
    assert snap.metadata.message_count == 0


def test_lone_result_is_orphan_notice(projector: TimelineProjector) -> None:
    projector.append(_result("1", "orphan", 0, text="result text"))

    (item,) = projector.snapshot().items
    assert isinstance(item, SystemMessageItem)
    assert item.orphaned
    assert "orphaned" in item.text and "result text" in item.text
    assert projector.stats().orphaned_results == 1


def test_lone_call_is_shown_in_flight_without_leaving_pending(
    projector: TimelineProjector,
) -> None:
    projector.append(_call("1", "pending", 0))

    (item,) = projector.snapshot().items
    assert isinstance(item, ToolExecutionItem)
    assert item.result is None and item.call_id == "pending"
    # Read-time projection only; the entry can still be resolved.
    assert projector.stats().pending_calls == 1

    projector.append(_result("2", "pending", 3))
    (done,) = projector.snapshot().items
    assert isinstance(done, ToolExecutionItem)
    assert done.result is not None and done.timestamp == _at(0)
    assert projector.stats().pending_calls == 0


def test_load_reconciles_unresolved_call(projector: TimelineProjector) -> None:
    projector.load([_call("1", "pending", 0)])

    (item,) = projector.snapshot().items
    assert isinstance(item, ToolExecutionItem)
    assert item.result is None
    stats = projector.stats()
    assert stats.pending_calls == 0
    assert stats.reconciled_calls == 1


def test_result_after_load_reconciliation_is_orphaned(projector: TimelineProjector) -> None:
    """Reconciled calls leave the pending table, so a late result cannot pair."""
    projector.load([_call("1", "c1", 0)])
    projector.append(_result("2", "c1", 5))

    items = projector.snapshot().items
    assert [i.type for i in items] == ["tool_execution", "system_message"]


def test_reset_clears_everything(projector: TimelineProjector) -> None:
    for n in range(5):
        projector.append(_event(str(n), EventKind.USER_MESSAGE, f"m{n}", n))
    projector.append(_call("c", "c1", 9))
    assert len(projector.snapshot().items) == 6

    projector.reset()
    snap = projector.snapshot()
    assert snap.items == ()
    assert snap.metadata.event_count == 0
    assert snap.metadata.last_activity == FIXED_NOW
    assert projector.is_empty
    assert projector.stats().pending_calls == 0


def test_out_of_order_appends_are_sorted(projector: TimelineProjector) -> None:
    projector.append(_event("3", EventKind.USER_MESSAGE, "three", 3))
    projector.append(_event("1", EventKind.USER_MESSAGE, "one", 1))
    projector.append(_event("2", EventKind.USER_MESSAGE, "two", 2))

    items = projector.snapshot().items
    assert [i.timestamp for i in items] == [_at(1), _at(2), _at(3)]
    assert projector.stats().out_of_order_inserts == 2


# ------------------------------- Behaviour ----------------------------------


def test_execution_is_placed_at_call_time_among_messages(projector: TimelineProjector) -> None:
    projector.append(_event("1", EventKind.USER_MESSAGE, "run ls", 0))
    projector.append(_call("2", "c1", 1))
    projector.append(_event("3", EventKind.AGENT_MESSAGE, "working on it", 2))
    projector.append(_result("4", "c1", 3))

    assert [i.type for i in projector.snapshot().items] == [
        "user_message",
        "tool_execution",
        "agent_message",
    ]


def test_unknown_kind_counts_but_adds_nothing(projector: TimelineProjector) -> None:
    projector.append(_event("1", "COMPACTION", {"summary": "..."}, 0))

    snap = projector.snapshot()
    assert snap.items == ()
    assert snap.metadata.event_count == 1
    assert projector.stats().ignored_events == 1


def test_load_sorts_and_counts_input(projector: TimelineProjector) -> None:
    events = [
        _event("3", EventKind.LOCAL_SYSTEM_MESSAGE, "note", 3),
        _event("1", EventKind.USER_MESSAGE, "Hello", 0),
        _result("4", "c1", 2),
        _call("2", "c1", 1),
    ]
    projector.load(events)

    snap = projector.snapshot()
    assert [i.type for i in snap.items] == ["user_message", "tool_execution", "system_message"]
    assert snap.metadata.event_count == 4
    assert snap.metadata.message_count == 1
    assert projector.stats().events_loaded == 4


def test_load_discards_previous_state(projector: TimelineProjector) -> None:
    projector.append(_event("old", EventKind.USER_MESSAGE, "old", 0))
    projector.append(_call("oc", "old-call", 1))

    projector.load([_event("new", EventKind.AGENT_MESSAGE, "new", 5)])

    snap = projector.snapshot()
    assert [i.type for i in snap.items] == ["agent_message"]
    assert snap.metadata.event_count == 1


def test_snapshot_is_a_defensive_copy(projector: TimelineProjector) -> None:
    projector.append(_event("1", EventKind.USER_MESSAGE, "Hello", 0))
    snap = projector.snapshot()

    local = list(snap.items)
    local.append(UserMessageItem(id="x", timestamp=_at(9), text="local"))
    with pytest.raises(ValidationError):
        snap.items[0].text = "mutated"  # type: ignore[misc]

    assert len(projector.snapshot().items) == 1
    assert projector.snapshot().items[0].text == "Hello"  # type: ignore[union-attr]


def test_reset_and_snapshot_are_idempotent(projector: TimelineProjector) -> None:
    projector.append(_event("1", EventKind.USER_MESSAGE, "Hello", 0))
    projector.append(_call("2", "c1", 1))
    assert projector.snapshot() == projector.snapshot()

    projector.reset()
    once = projector.snapshot()
    projector.reset()
    assert projector.snapshot() == once


def test_null_optional_fields_keep_call_and_result_paired(
    projector: TimelineProjector,
) -> None:
    projector.append(
        _event("1", EventKind.TOOL_CALL, {"id": "c1", "name": "bash", "arguments": None}, 0)
    )
    projector.append(
        _event("2", EventKind.TOOL_RESULT, {"id": "c1", "isError": None, "content": None}, 1)
    )

    (item,) = projector.snapshot().items
    assert isinstance(item, ToolExecutionItem)
    assert item.result is not None and item.result.content == []
    stats = projector.stats()
    assert stats.orphaned_results == 0 and stats.malformed_payloads == 0
    assert stats.pending_calls == 0


def test_pending_calls_and_get_snapshot(projector: TimelineProjector) -> None:
    projector.append(_call("1", "c1", 0))
    projector.append(_call("2", "c2", 1))
    projector.append(_result("3", "c1", 2))

    (in_flight,) = projector.pending_calls()
    assert in_flight.call_id == "c2" and in_flight.result is None
    assert projector.get_snapshot() == projector.snapshot()
    ids = [i.call_id for i in projector.get_snapshot().items]  # type: ignore[union-attr]
    assert ids == ["c1", "c2"]


# ------------------------------- Notifications ------------------------------


def test_notifications_follow_each_operation(projector: TimelineProjector) -> None:
    calls: list[str] = []
    unsubscribe = projector.subscribe(lambda: calls.append("a"))
    projector.subscribe(lambda: calls.append("b"))

    projector.append(_call("1", "c1", 0))  # pending-only change still notifies
    assert calls == ["a", "b"]

    projector.load([])
    assert calls == ["a", "b"], "loading nothing must not signal a change"
    assert projector.is_empty

    projector.load([_event("2", EventKind.USER_MESSAGE, "hi", 1)])
    assert calls == ["a", "b", "a", "b"]

    unsubscribe()
    projector.reset()
    assert calls == ["a", "b", "a", "b", "b"]


def test_listener_sees_completed_state(projector: TimelineProjector) -> None:
    seen: list[int] = []
    projector.subscribe(lambda: seen.append(len(projector.snapshot().items)))

    projector.append(_event("1", EventKind.USER_MESSAGE, "Hello", 0))
    projector.append(_event("2", EventKind.USER_MESSAGE, "again", 1))
    assert seen == [1, 2]


# ------------------------------- Properties ---------------------------------


def _random_stream(rng: random.Random, size: int) -> list[DomainEvent]:
    """Messages, calls and results (some orphaned) with clustered timestamps."""
    events: list[DomainEvent] = []
    call_ids: list[str] = []
    for n in range(size):
        seconds = rng.randint(0, size // 2)
        roll = rng.random()
        if roll < 0.35:
            kind = rng.choice([EventKind.USER_MESSAGE, EventKind.AGENT_MESSAGE])
            events.append(_event(f"e{n}", kind, f"text {n}", seconds))
        elif roll < 0.65:
            call_id = f"c{n}"
            call_ids.append(call_id)
            events.append(_call(f"e{n}", call_id, seconds))
        elif roll < 0.9 and call_ids:
            events.append(_result(f"e{n}", rng.choice(call_ids), seconds))
        elif roll < 0.95:
            events.append(_result(f"e{n}", f"missing{n}", seconds))
        else:
            events.append(_event(f"e{n}", EventKind.SYSTEM_PROMPT, "prompt", seconds))
    return events


@pytest.mark.parametrize("seed", range(20))
def test_any_append_order_is_chronological(seed: int) -> None:
    rng = random.Random(seed)
    events = _random_stream(rng, 40)
    rng.shuffle(events)

    projector = TimelineProjector(clock=lambda: FIXED_NOW)
    for event in events:
        projector.append(event)

    snap = projector.snapshot()
    assert is_chronological(snap.items)
    assert snap.metadata.event_count == len(events)


@pytest.mark.parametrize("seed", range(20))
def test_load_equals_ordered_appends(seed: int) -> None:
    events = _random_stream(random.Random(seed), 40)

    loaded = TimelineProjector(clock=lambda: FIXED_NOW)
    loaded.load(events)

    live = TimelineProjector(clock=lambda: FIXED_NOW)
    for event in sorted(events, key=lambda e: e.timestamp):
        live.append(event)

    assert loaded.snapshot() == live.snapshot()


def test_concurrent_appends_stay_consistent() -> None:
    projector = TimelineProjector(clock=lambda: FIXED_NOW)
    snapshots_ok: list[bool] = []

    def writer(offset: int) -> None:
        for n in range(100):
            projector.append(
                _event(f"w{offset}-{n}", EventKind.USER_MESSAGE, "x", n * 4 + offset)
            )

    def reader() -> None:
        for _ in range(50):
            snapshots_ok.append(is_chronological(projector.snapshot().items))

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(4)]
    threads.append(threading.Thread(target=reader))
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    snap = projector.snapshot()
    assert len(snap.items) == 400
    assert snap.metadata.event_count == 400
    assert is_chronological(snap.items)
    assert all(snapshots_ok)
