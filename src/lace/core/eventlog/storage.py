"""JSON Lines thread logs: the on-disk source the CLI and scripts read from.

One file per thread, one ``DomainEvent`` JSON object per line, written with
the wire aliases (``threadId``) so files written elsewhere load unchanged.

- Default directory: `LACE_THREAD_DIR` env var or `artifacts/threads/`
- Filename pattern:  `{thread_id}.jsonl`

The timeline core never touches these files; it only receives the decoded
events.

Usage
-----
>>> writer = EventLogWriter()  # uses default dir
>>> path = writer.append(event)  # returns the file path
>>> events = read_events(path)
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path

from pydantic import ValidationError

from lace.core.contracts import DomainEvent
from lace.core.errors import EventLogError
from lace.core.settings import get_logger, load_settings

logger = get_logger("lace.eventlog")


def _default_dir() -> Path:
    """Return the default base directory for thread logs."""
    root = load_settings().thread_dir
    return Path(root) if root else Path("artifacts") / "threads"


def encode_event(event: DomainEvent) -> str:
    """Serialize ``event`` as a single JSON line (no trailing newline)."""
    return event.model_dump_json(by_alias=True)


def read_events(path: Path) -> list[DomainEvent]:
    """Decode every event in ``path``.

    Blank lines are skipped silently; lines that are not valid JSON or not a
    valid event are skipped with a warning so one bad record does not hide the
    rest of a thread.

    Raises
    ------
    EventLogError
        If the file does not exist or cannot be read.
    """
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise EventLogError(f"Cannot read event log {path}: {e}") from e

    events: list[DomainEvent] = []
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            events.append(DomainEvent.model_validate(json.loads(line)))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Skipping %s:%d: %s", path, lineno, e.__class__.__name__)
    return events


class EventLogWriter:
    """Append domain events to per-thread JSON Lines files."""

    def __init__(self, base_dir: Path | None = None) -> None:
        self.base_dir: Path = base_dir if base_dir is not None else _default_dir()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, thread_id: str) -> Path:
        return self.base_dir / f"{thread_id}.jsonl"

    def append(self, event: DomainEvent) -> Path:
        """Append ``event`` to its thread's file and return the file path."""
        path = self.path_for(event.thread_id)
        with path.open("a", encoding="utf-8") as f:
            f.write(encode_event(event))
            f.write("\n")
        return path

    def extend(self, events: Iterable[DomainEvent]) -> list[Path]:
        """Append several events; return the distinct files touched, in order."""
        touched: list[Path] = []
        for event in events:
            path = self.append(event)
            if path not in touched:
                touched.append(path)
        return touched


__all__ = ["EventLogWriter", "encode_event", "read_events"]
