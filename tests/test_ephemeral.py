"""Tests for merging transient UI messages into a projected snapshot."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from lace.core.contracts import DomainEvent, EphemeralMessageItem, EventKind, Timeline
from lace.core.timeline import EphemeralMessage, TimelineProjector, merge_ephemeral

T0 = datetime(2023, 1, 1, 10, 0, 0, tzinfo=UTC)
FIXED_NOW = datetime(2030, 1, 1, tzinfo=UTC)


def _at(seconds: int) -> datetime:
    return T0 + timedelta(seconds=seconds)


def _snapshot_with_two_messages() -> Timeline:
    projector = TimelineProjector(clock=lambda: FIXED_NOW)
    for eid, seconds in (("1", 0), ("2", 10)):
        projector.append(
            DomainEvent(
                id=eid,
                thread_id="t1",
                type=EventKind.USER_MESSAGE,
                timestamp=_at(seconds),
                data=f"m{eid}",
            )
        )
    return projector.snapshot()


def test_no_messages_returns_timeline_unchanged() -> None:
    snap = _snapshot_with_two_messages()
    assert merge_ephemeral(snap, []) is snap


def test_messages_are_interleaved_by_timestamp() -> None:
    snap = _snapshot_with_two_messages()
    merged = merge_ephemeral(
        snap,
        [
            EphemeralMessage(kind="assistant", text="streaming...", timestamp=_at(20)),
            EphemeralMessage(kind="system", text="Compacting", timestamp=_at(5)),
        ],
    )

    assert [i.type for i in merged.items] == [
        "user_message",
        "ephemeral_message",
        "user_message",
        "ephemeral_message",
    ]
    assert merged.metadata.event_count == snap.metadata.event_count
    assert merged.metadata.message_count == snap.metadata.message_count
    assert merged.metadata.last_activity == _at(20)
    # The original snapshot is untouched.
    assert len(snap.items) == 2


def test_persisted_item_wins_timestamp_tie() -> None:
    snap = _snapshot_with_two_messages()
    merged = merge_ephemeral(snap, [EphemeralMessage(kind="tool", text="x", timestamp=_at(10))])

    assert merged.items[1].type == "user_message"
    tail = merged.items[2]
    assert isinstance(tail, EphemeralMessageItem)
    assert tail.message_kind == "tool"


def test_merge_into_empty_timeline() -> None:
    empty = TimelineProjector(clock=lambda: FIXED_NOW).snapshot()
    naive = datetime(2023, 1, 1, 12, 0, 0)

    merged = merge_ephemeral(empty, [EphemeralMessage(kind="user", text="draft", timestamp=naive)])

    (item,) = merged.items
    assert item.timestamp.tzinfo is not None
    assert merged.metadata.last_activity == item.timestamp
    assert merged.metadata.event_count == 0
