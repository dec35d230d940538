# scripts/smoke.py
"""
Smoke Test Script for the Lace timeline.

Writes a small demo session (main thread plus one delegate) to a JSON Lines
log, projects it both ways (bulk load and live append) and prints the result.

Usage
-----
1. Use a temporary demo log:
    $ python scripts/smoke.py

2. Keep the log under a directory for `lace show`:
    $ python scripts/smoke.py --dir artifacts/threads
"""

import argparse
import logging
import sys
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path

from dotenv import load_dotenv

from lace.core.contracts import DomainEvent, EventKind
from lace.core.eventlog import EventLogWriter, read_events
from lace.core.timeline import TimelineProjector, project_threads

# --------------------------------------------------------------------------- #
# Environment Setup
# --------------------------------------------------------------------------- #
env_path = Path(".env")
if env_path.exists():
    load_dotenv(env_path)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

# --------------------------------------------------------------------------- #
# Demo Data
# --------------------------------------------------------------------------- #
MAIN = "lace_20250101_demo01"
DELEGATE = f"{MAIN}.1"
T0 = datetime(2025, 1, 1, 10, 0, 0, tzinfo=UTC)


def _event(n: int, thread: str, kind: EventKind, seconds: int, data: object) -> DomainEvent:
    return DomainEvent(
        id=f"evt_{n:03d}",
        thread_id=thread,
        type=kind,
        timestamp=T0 + timedelta(seconds=seconds),
        data=data,
    )


def demo_events() -> list[DomainEvent]:
    """A short session: a bash call, a delegation, and a call cut off mid-flight."""
    ls_call = {"id": "c1", "name": "bash", "arguments": {"command": "ls"}}
    ls_result = {"id": "c1", "content": [{"type": "text", "text": "README.md\nsrc"}]}
    delegate_call = {"id": "c2", "name": "delegate", "arguments": {"task": "summarize"}}
    delegate_result = {
        "id": "c2",
        "content": [{"type": "text", "text": "It describes the project."}],
        "metadata": {"threadId": DELEGATE},
    }
    read_call = {"id": "c3", "name": "file_read", "arguments": {"path": "src"}}
    return [
        _event(1, MAIN, EventKind.SYSTEM_PROMPT, 0, "You are a coding assistant."),
        _event(2, MAIN, EventKind.USER_MESSAGE, 1, "List the files, then summarize README."),
        _event(3, MAIN, EventKind.TOOL_CALL, 2, ls_call),
        _event(4, MAIN, EventKind.TOOL_RESULT, 3, ls_result),
        _event(5, MAIN, EventKind.TOOL_CALL, 4, delegate_call),
        _event(6, DELEGATE, EventKind.USER_MESSAGE, 5, "Summarize README.md"),
        _event(7, DELEGATE, EventKind.AGENT_MESSAGE, 6, "<think>short</think>Describes it."),
        _event(8, MAIN, EventKind.TOOL_RESULT, 7, delegate_result),
        _event(9, MAIN, EventKind.AGENT_MESSAGE, 8, "The repo has a README and a src directory."),
        _event(10, MAIN, EventKind.TOOL_CALL, 9, read_call),
    ]


def main() -> None:
    """Execute the smoke test workflow."""
    parser = argparse.ArgumentParser(description="Run the Lace timeline smoke test")
    parser.add_argument("--dir", "-d", type=str, help="Directory to write the demo log into")
    args = parser.parse_args()

    base_dir = Path(args.dir) if args.dir else Path(tempfile.mkdtemp(prefix="lace-smoke-"))
    writer = EventLogWriter(base_dir)
    paths = writer.extend(demo_events())
    print(f"Wrote {len(paths)} thread log(s) under {base_dir}")

    events = [event for path in paths for event in read_events(path)]
    processed = project_threads(events)

    print(f"\nMain thread {processed.main_thread_id}:")
    for item in processed.main.items:
        print(f"  {item.timestamp:%H:%M:%S}  {item.type}")
    for thread_id, timeline in processed.delegates.items():
        print(f"Delegate {thread_id}: {len(timeline.items)} items")

    live = TimelineProjector()
    for event in (e for e in events if e.thread_id == MAIN):
        live.append(event)
    same_order = [i.type for i in live.snapshot().items] == [i.type for i in processed.main.items]
    print(f"\nLive replay matches bulk load: {same_order}")
    print(f"Stats: {live.stats()}")


if __name__ == "__main__":
    main()
