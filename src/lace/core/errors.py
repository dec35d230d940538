"""Exceptions raised by the timeline package.

Data-quality problems in the event stream are never raised: the classifier
turns them into visible items instead. What remains here signals a bug in
the core itself or an unusable input file at the outer edge.
"""

from __future__ import annotations


class TimelineError(Exception):
    """Base class for timeline errors."""


class TimelineInvariantError(TimelineError):
    """Internal state of the projector is inconsistent (a programmer error)."""


class EventLogError(TimelineError):
    """A thread event log could not be opened or read."""


__all__ = ["EventLogError", "TimelineError", "TimelineInvariantError"]
