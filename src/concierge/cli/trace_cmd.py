"""concierge trace / traces / archive -- inspect stored conversation traces."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from concierge.cli.output import (
    output_json,
    output_json_list,
    render_trace,
    render_trace_list,
    setup_logging,
)
from concierge.errors import TraceNotFoundError
from concierge.models.config import ConciergeSettings, find_project_root, load_settings
from concierge.tracing.json_store import JsonTraceStore
from concierge.tracing.models import TraceFilter
from concierge.tracing.recorder import TraceRecorder

console = Console(stderr=True)


def open_recorder(
    project_root: Path | None = None, settings: ConciergeSettings | None = None
) -> TraceRecorder:
    """Build a TraceRecorder over the project's JSON trace store."""
    project_root = project_root or find_project_root()
    settings = settings or load_settings(project_root)
    store = JsonTraceStore(project_root, storage_dir=settings.storage_dir)
    return TraceRecorder(store, custom_patterns=settings.recording.custom_redaction_patterns)


def trace(
    trace_id: str = typer.Argument(..., help="Trace ID to show"),
    format_json: bool = typer.Option(False, "--json", help="Output pure JSON to stdout"),
) -> None:
    """Show a trace with all of its messages and tool calls."""
    setup_logging()
    recorder = open_recorder()
    try:
        complete = recorder.get_complete_trace(trace_id)
    except TraceNotFoundError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    if format_json:
        output_json(complete)
    else:
        render_trace(complete, Console())


def traces(
    channel: Optional[str] = typer.Option(None, "--channel", help="Only sms or webchat traces"),
    student_id: Optional[int] = typer.Option(None, "--student-id", help="Only this student"),
    case_id: Optional[int] = typer.Option(None, "--case-id", help="Only this case"),
    archived: Optional[bool] = typer.Option(
        None, "--archived/--active", help="Only archived or only active traces"
    ),
    format_json: bool = typer.Option(False, "--json", help="Output pure JSON to stdout"),
) -> None:
    """List stored traces, newest first."""
    setup_logging()
    if channel is not None and channel not in ("sms", "webchat"):
        console.print(
            f"[bold red]Error:[/bold red] Invalid channel '{channel}'. Use sms or webchat."
        )
        raise typer.Exit(code=1)

    filters = TraceFilter(
        channel=channel, student_id=student_id, case_id=case_id, archived=archived
    )
    found = open_recorder().list_traces(filters)

    if format_json:
        output_json_list(found)
    else:
        render_trace_list(found, Console())


def archive(
    trace_id: str = typer.Argument(..., help="Trace ID to archive"),
    undo: bool = typer.Option(False, "--undo", help="Unarchive instead"),
) -> None:
    """Archive (or unarchive) a trace."""
    setup_logging()
    try:
        updated = open_recorder().archive_trace(trace_id, archived=not undo)
    except TraceNotFoundError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    state = "archived" if updated.archived else "active"
    Console().print(f"Trace {updated.id} is now [bold]{state}[/bold].")
