"""Chronological insertion into an item list.

Items are ordered by ``timestamp``; equal timestamps keep arrival order.
The common live case (new item not older than the tail) is a plain append;
an older item is placed by binary search and spliced in.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable, Sequence
from datetime import datetime
from heapq import merge
from typing import Protocol, TypeVar

from lace.core.errors import TimelineInvariantError


class Timestamped(Protocol):
    @property
    def timestamp(self) -> datetime: ...


T = TypeVar("T", bound=Timestamped)


def _key(item: Timestamped) -> datetime:
    return item.timestamp


def insert_ordered(items: list[T], item: T) -> int:
    """Insert ``item`` into the sorted list ``items`` and return its index.

    O(1) amortized when ``item`` is at or after the tail, O(log n) search
    plus the list splice otherwise. Ties go after existing equal timestamps.
    """
    if not items or item.timestamp >= items[-1].timestamp:
        items.append(item)
        return len(items) - 1

    index = bisect_right(items, item.timestamp, key=_key)
    if not 0 <= index < len(items):
        raise TimelineInvariantError(
            f"insert position {index} outside 0..{len(items) - 1} for an out-of-order item"
        )
    items.insert(index, item)
    return index


def sort_stable(items: list[T]) -> None:
    """Sort ``items`` in place by timestamp, preserving order among ties."""
    items.sort(key=_key)


def merge_ordered(first: Iterable[T], second: Iterable[T]) -> list[T]:
    """Merge two sorted iterables; on ties items from ``first`` come first."""
    return list(merge(first, second, key=_key))


def is_chronological(items: Sequence[Timestamped]) -> bool:
    """Return True if ``items`` is non-decreasing by timestamp."""
    return all(a.timestamp <= b.timestamp for a, b in zip(items, items[1:], strict=False))


__all__ = ["insert_ordered", "is_chronological", "merge_ordered", "sort_stable"]
