"""
API Routes for Thread Timelines.

This module exposes the projector operations over HTTP so a web UI can feed
events and read snapshots.

Endpoints
---------
- `POST   /threads/{thread_id}/events`: Append one live event.
- `PUT    /threads/{thread_id}/events`: Replace the timeline with a full history.
- `GET    /threads/{thread_id}/timeline`: Read the current snapshot.
- `DELETE /threads/{thread_id}/timeline`: Reset the thread's projector.
- `DELETE /threads/{thread_id}`: Forget the thread and its projector.
- `GET    /threads`: List known threads.

Design Decisions
----------------
- **One projector per thread**: events whose `threadId` disagrees with the
  path are rejected instead of silently landing in another thread.
- **Snapshots are the contract**: responses reuse the core `Timeline` model.
"""

from __future__ import annotations

from collections.abc import Iterable

from fastapi import APIRouter, HTTPException, status

from lace.api.projector_store import get_projector_store
from lace.api.schemas import EventBatch, ProjectionStatus, ThreadSummary
from lace.core.contracts import DomainEvent, Timeline
from lace.core.timeline import TimelineProjector, is_delegate_thread

router = APIRouter(prefix="/threads", tags=["Timelines"])


def _check_thread(thread_id: str, events: Iterable[DomainEvent]) -> None:
    for event in events:
        if event.thread_id != thread_id:
            raise ValueError(
                f"Event {event.id} belongs to thread {event.thread_id}, not {thread_id}"
            )


def _status(thread_id: str, projector: TimelineProjector) -> ProjectionStatus:
    snapshot = projector.snapshot()
    return ProjectionStatus(
        thread_id=thread_id,
        item_count=len(snapshot.items),
        pending_calls=len(projector.pending_calls()),
        metadata=snapshot.metadata,
    )


@router.get("", response_model=list[ThreadSummary], summary="List known threads")
async def list_threads() -> list[ThreadSummary]:
    store = get_projector_store()
    summaries: list[ThreadSummary] = []
    for thread_id in store.thread_ids():
        projector = store.get(thread_id)
        if projector is None:
            continue
        snapshot = projector.snapshot()
        summaries.append(
            ThreadSummary(
                thread_id=thread_id,
                is_delegate=is_delegate_thread(thread_id),
                item_count=len(snapshot.items),
                last_activity=snapshot.metadata.last_activity,
            )
        )
    return summaries


@router.post(
    "/{thread_id}/events",
    response_model=ProjectionStatus,
    summary="Append one live event",
)
async def append_event(thread_id: str, event: DomainEvent) -> ProjectionStatus:
    """
    Feed one event to the thread's projector.

    The thread is created on first use. Out-of-order events are accepted and
    placed at their chronological position.
    """
    _check_thread(thread_id, [event])
    projector = get_projector_store().get_or_create(thread_id)
    projector.append(event)
    return _status(thread_id, projector)


@router.put(
    "/{thread_id}/events",
    response_model=ProjectionStatus,
    summary="Replace the timeline with a full history",
)
async def load_events(thread_id: str, batch: EventBatch) -> ProjectionStatus:
    """
    Bulk-load a thread (resume path).

    Existing state is discarded first; calls whose result is missing from the
    batch come back as tool executions without a result.
    """
    _check_thread(thread_id, batch.events)
    projector = get_projector_store().get_or_create(thread_id)
    projector.load(batch.events)
    return _status(thread_id, projector)


@router.get(
    "/{thread_id}/timeline",
    response_model=Timeline,
    summary="Read the current timeline snapshot",
)
async def get_timeline(thread_id: str) -> Timeline:
    projector = get_projector_store().get(thread_id)
    if projector is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Thread {thread_id} not found",
        )
    return projector.snapshot()


@router.delete(
    "/{thread_id}/timeline",
    response_model=ProjectionStatus,
    summary="Reset the thread's timeline",
)
async def reset_timeline(thread_id: str) -> ProjectionStatus:
    projector = get_projector_store().get(thread_id)
    if projector is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Thread {thread_id} not found",
        )
    projector.reset()
    return _status(thread_id, projector)


@router.delete(
    "/{thread_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Forget a thread",
)
async def drop_thread(thread_id: str) -> None:
    if not get_projector_store().drop(thread_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Thread {thread_id} not found",
        )


__all__ = ["router"]
