"""Timeline projection: classifier, projector and the helpers around them."""

from __future__ import annotations

from .classifier import Classification, Outcome, classify
from .ephemeral import EphemeralMessage, merge_ephemeral
from .pending import PendingCall, PendingToolCalls
from .projector import ProjectorStats, TimelineProjector
from .threads import (
    ProcessedThreads,
    ThreadGroup,
    delegate_thread_id,
    group_by_thread,
    is_delegate_thread,
    project_threads,
)

__all__ = [
    "Classification",
    "EphemeralMessage",
    "Outcome",
    "PendingCall",
    "PendingToolCalls",
    "ProcessedThreads",
    "ProjectorStats",
    "ThreadGroup",
    "TimelineProjector",
    "classify",
    "delegate_thread_id",
    "group_by_thread",
    "is_delegate_thread",
    "merge_ephemeral",
    "project_threads",
]
