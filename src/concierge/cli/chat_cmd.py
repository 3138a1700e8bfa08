"""concierge chat -- run one orchestrator turn from the command line.

Loads concierge.yaml, builds the campus directory, tool registry, trace
recorder and adapter, runs one turn, then prints the response with its
trace id, counts and violations (or pure JSON with --json).
"""

from __future__ import annotations

import asyncio
from datetime import date
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from concierge.adapters.registry import get_default_adapter
from concierge.agent.models import OrchestratorResult
from concierge.agent.orchestrator import Orchestrator
from concierge.cli.output import output_json, render_result, setup_logging
from concierge.cli.trace_cmd import open_recorder
from concierge.errors import InvalidRequestError, TraceNotFoundError
from concierge.models.config import ConciergeSettings, find_project_root, load_settings
from concierge.tools.campus import CampusDirectory
from concierge.tools.registry import ToolRegistry

console = Console(stderr=True)


def load_campus(project_root: Path, settings: ConciergeSettings) -> CampusDirectory:
    """Seed the campus directory from settings.seed_file, or use built-in defaults."""
    if settings.seed_file:
        return CampusDirectory.from_yaml(project_root / settings.seed_file)
    return CampusDirectory.with_defaults(today=date.today(), scheduling=settings.scheduling)


def chat(
    message: str = typer.Argument(..., help="The student's message"),
    channel: str = typer.Option("webchat", "--channel", "-c", help="sms or webchat"),
    student_id: int = typer.Option(1, "--student-id", "-s", help="Student ID"),
    case_id: Optional[int] = typer.Option(None, "--case-id", help="Case ID"),
    case_name: Optional[str] = typer.Option(None, "--case-name", help="Case name for context"),
    case_description: Optional[str] = typer.Option(
        None, "--case-description", help="Case description for context"
    ),
    cohort_id: Optional[int] = typer.Option(None, "--cohort-id", help="Cohort ID"),
    trace_id: Optional[str] = typer.Option(
        None, "--trace-id", "-t", help="Continue an existing trace"
    ),
    max_rounds: Optional[int] = typer.Option(
        None, "--max-rounds", help="Model call budget (default from concierge.yaml)"
    ),
    provider: Optional[str] = typer.Option(
        None, "--provider", "-p", help="mock, openai, anthropic or a dotted adapter path"
    ),
    format_json: bool = typer.Option(False, "--json", help="Output pure JSON to stdout"),
    verbose: bool = typer.Option(False, "-V", "--verbose", help="Debug logging on stderr"),
) -> None:
    """Send one message to the concierge and print its reply."""
    setup_logging(verbose)

    project_root = find_project_root()
    try:
        settings = load_settings(project_root)
    except ValueError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=1)
    if provider:
        settings = settings.model_copy(update={"provider": provider})

    try:
        adapter = get_default_adapter(settings)
    except (ImportError, ValueError, TypeError) as exc:
        console.print(f"[bold red]Adapter error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    try:
        campus = load_campus(project_root, settings)
    except (OSError, ValueError) as exc:
        console.print(f"[bold red]Seed file error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    orchestrator = Orchestrator(
        recorder=open_recorder(project_root, settings),
        tools=ToolRegistry(campus, scheduling=settings.scheduling),
        adapter=adapter,
        settings=settings,
    )
    context = {
        "channel": channel,
        "student_id": student_id,
        "case_id": case_id,
        "case_name": case_name,
        "case_description": case_description,
        "cohort_id": cohort_id,
        "trace_id": trace_id,
        "max_rounds": max_rounds,
    }

    try:
        result: OrchestratorResult = asyncio.run(orchestrator.run(message, context))
    except (InvalidRequestError, TraceNotFoundError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    if format_json:
        output_json(result)
    else:
        render_result(result, Console())
