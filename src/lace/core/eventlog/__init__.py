"""On-disk thread event logs (JSON Lines)."""

from __future__ import annotations

from .storage import EventLogWriter, encode_event, read_events

__all__ = ["EventLogWriter", "encode_event", "read_events"]
