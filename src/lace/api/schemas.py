"""
Request/response schemas for the Lace HTTP API.

Timelines are returned as the core's own :class:`Timeline` contract; the
models here only cover what the API adds around it.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from lace.core.contracts import DomainEvent, TimelineMetadata


class EventBatch(BaseModel):
    """Full history of a thread, sent to (re)load its timeline."""

    events: list[DomainEvent] = Field(default_factory=list)


class ProjectionStatus(BaseModel):
    """Short acknowledgement returned after a mutating request."""

    thread_id: str
    item_count: int = Field(ge=0)
    pending_calls: int = Field(ge=0)
    metadata: TimelineMetadata


class ThreadSummary(BaseModel):
    thread_id: str
    is_delegate: bool
    item_count: int
    last_activity: datetime


__all__ = ["EventBatch", "ProjectionStatus", "ThreadSummary"]
