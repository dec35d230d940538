# src/lace/cli.py
"""
Lace Command Line Interface (CLI).

This module implements the terminal viewer for thread logs using `typer` and
`rich`. It is a consumer of the timeline core: it reads a JSON Lines event log,
feeds the events to a :class:`TimelineProjector` and renders the snapshot.

Features
--------
- **Resume or Live**: Project a log with one bulk `load` (default) or replay
  it event by event through `append` (`--live`), the way a live session would.
- **Thread Aware**: Logs mixing a main thread and its delegates are split per
  thread; pick one with `--thread`.
- **Machine Readable**: `--json` prints the snapshot instead of a table.

Usage
-----
    $ lace show artifacts/threads/lace_20250101_abc123.jsonl
    $ lace show session.jsonl --thread lace_20250101_abc123.1 --live
    $ lace threads session.jsonl
"""

from __future__ import annotations

import traceback
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from lace.core.contracts import (
    DomainEvent,
    EphemeralMessageItem,
    SystemMessageItem,
    Timeline,
    TimelineItem,
    ToolExecutionItem,
)
from lace.core.errors import TimelineError
from lace.core.eventlog import read_events
from lace.core.timeline import TimelineProjector, delegate_thread_id, group_by_thread

# Ensure env vars (like LACE_ORPHAN_PREVIEW_CHARS) are loaded before any logic runs
load_dotenv()

app = typer.Typer(
    help="Lace: inspect agent thread logs as timelines.",
    rich_markup_mode="markdown",
)
console = Console()

PREVIEW_WIDTH = 80


# --------------------------------------------------------------------------- #
# Helpers: Rendering
# --------------------------------------------------------------------------- #


def _one_line(text: str, width: int = PREVIEW_WIDTH) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= width else flat[: width - 3] + "..."


def _describe(item: TimelineItem) -> tuple[str, str]:
    """Return the (label, detail) pair shown for ``item``."""
    match item:
        case ToolExecutionItem():
            if item.result is None:
                status = "[yellow]running[/yellow]"
            elif item.result.is_error:
                status = "[red]error[/red]"
            else:
                status = "[green]ok[/green]"
            detail = f"{item.call.name} {status}"
            if child := delegate_thread_id(item):
                detail += f" [dim]-> {child}[/dim]"
            return "tool", detail
        case SystemMessageItem():
            label = "orphan" if item.orphaned else item.origin_kind.lower()
            return label, _one_line(item.text)
        case EphemeralMessageItem():
            return item.message_kind, _one_line(item.text)
        case _:
            return item.type.removesuffix("_message"), _one_line(item.text)


def _render_timeline(title: str, timeline: Timeline) -> None:
    """Render ``timeline`` as a table followed by its metadata line."""
    table = Table(title=title, show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Time", style="cyan", no_wrap=True)
    table.add_column("Kind", style="magenta")
    table.add_column("Detail")

    for index, item in enumerate(timeline.items, start=1):
        label, detail = _describe(item)
        table.add_row(str(index), item.timestamp.strftime("%H:%M:%S"), label, detail)

    console.print(table)
    meta = timeline.metadata
    console.print(
        f"[dim]{meta.event_count} events, {meta.message_count} messages, "
        f"last activity {meta.last_activity.isoformat()}[/dim]"
    )


# --------------------------------------------------------------------------- #
# Helpers: Projection
# --------------------------------------------------------------------------- #


def _select_thread(events: list[DomainEvent], thread: str | None) -> tuple[str, list[DomainEvent]]:
    """Pick the requested thread, or the main thread when none is given."""
    groups = group_by_thread(events)
    if thread is not None:
        for group in groups:
            if group.thread_id == thread:
                return thread, list(group.events)
        raise typer.BadParameter(f"Thread {thread!r} not found in log", param_hint="--thread")

    for group in groups:
        if not group.is_delegate:
            return group.thread_id, list(group.events)
    if groups:
        return groups[0].thread_id, list(groups[0].events)
    return "(empty)", []


def _project(events: list[DomainEvent], live: bool) -> Timeline:
    projector = TimelineProjector()
    if live:
        # Log order, not timestamp order: exercises the out-of-order insert path.
        for event in events:
            projector.append(event)
    else:
        projector.load(events)
    return projector.snapshot()


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def show(
    log_file: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="Path to a JSON Lines thread log.",
        ),
    ],
    thread: Annotated[
        str | None,
        typer.Option("--thread", "-t", help="Thread id to show (default: the main thread)."),
    ] = None,
    live: Annotated[
        bool,
        typer.Option("--live/--load", help="Feed events one by one instead of a bulk load."),
    ] = False,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the timeline snapshot as JSON."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show full error tracebacks for debugging."),
    ] = False,
) -> None:
    """
    Project one thread of a log into a timeline and render it.
    """
    try:
        events = read_events(log_file)
    except TimelineError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if verbose:
            traceback.print_exc()
        raise typer.Exit(code=1) from e

    thread_id, thread_events = _select_thread(events, thread)
    timeline = _project(thread_events, live)

    if as_json:
        console.print_json(timeline.model_dump_json())
        return

    mode = "live" if live else "load"
    console.print(
        Panel.fit(
            f"[bold cyan]Lace[/bold cyan] {thread_id} [dim]({mode})[/dim]", border_style="cyan"
        )
    )
    _render_timeline(thread_id, timeline)


@app.command()  # type: ignore[misc]
def threads(
    log_file: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            help="Path to a JSON Lines thread log.",
        ),
    ],
) -> None:
    """
    List the threads found in a log with their event and message counts.
    """
    try:
        events = read_events(log_file)
    except TimelineError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    table = Table(title=log_file.name)
    table.add_column("Thread", style="cyan")
    table.add_column("Role")
    table.add_column("Events", justify="right")
    table.add_column("Messages", justify="right")
    table.add_column("Last activity", style="dim")

    for group in group_by_thread(events):
        timeline = _project(list(group.events), live=False)
        table.add_row(
            group.thread_id,
            "delegate" if group.is_delegate else "main",
            str(timeline.metadata.event_count),
            str(timeline.metadata.message_count),
            timeline.metadata.last_activity.isoformat(),
        )
    console.print(table)


if __name__ == "__main__":
    app()
