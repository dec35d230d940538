"""
In-memory registry of timeline projectors, one per thread.

Each thread id owns its own :class:`TimelineProjector`, created on first use
and kept until the thread is dropped. Projectors are never shared between
threads, so pending tool calls of a delegate cannot resolve in its parent.

Note on Persistence
-------------------
This is a volatile store. Clients re-seed a thread after a restart with a
bulk load of its persisted history (``PUT /threads/{id}/events``).
"""

from __future__ import annotations

import threading
from typing import ClassVar

from lace.core.timeline import TimelineProjector


class ProjectorStore:
    """A dictionary-backed store of per-thread projectors."""

    _instance: ClassVar[ProjectorStore | None] = None

    def __init__(self) -> None:
        self._projectors: dict[str, TimelineProjector] = {}
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> ProjectorStore:
        """Accessor for the global singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def get_or_create(self, thread_id: str) -> TimelineProjector:
        """Return the projector for ``thread_id``, creating an empty one if needed."""
        with self._lock:
            projector = self._projectors.get(thread_id)
            if projector is None:
                projector = self._projectors[thread_id] = TimelineProjector()
            return projector

    def get(self, thread_id: str) -> TimelineProjector | None:
        with self._lock:
            return self._projectors.get(thread_id)

    def drop(self, thread_id: str) -> bool:
        """Forget ``thread_id``; return False if it was unknown."""
        with self._lock:
            return self._projectors.pop(thread_id, None) is not None

    def thread_ids(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(sorted(self._projectors))

    def clear(self) -> None:
        with self._lock:
            self._projectors.clear()


def get_projector_store() -> ProjectorStore:
    return ProjectorStore.get_instance()


__all__ = ["ProjectorStore", "get_projector_store"]
