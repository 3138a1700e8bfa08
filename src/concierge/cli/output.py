"""Rich terminal output for orchestrator results and traces.

Provides key-value result tables, the message/tool-call timeline of a
trace, the trace listing table, JSON output for scripting, and the
RichHandler logging setup shared by all commands.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING

from pydantic import BaseModel
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

if TYPE_CHECKING:
    from concierge.agent.models import OrchestratorResult
    from concierge.tracing.models import CompleteTrace, Trace

_ROLE_STYLES: dict[str, str] = {
    "user": "bold cyan",
    "assistant": "bold green",
    "system": "bold magenta",
}


def setup_logging(verbose: bool = False) -> None:
    """Send concierge log records to stderr through Rich.

    WARNING by default, DEBUG with --verbose. Calling it again replaces
    the previous handler rather than stacking another one.
    """
    root = logging.getLogger("concierge")
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)


def render_result(result: OrchestratorResult, console: Console) -> None:
    """Render the response of one chat turn followed by its metadata."""
    console.print()
    console.print(result.response, markup=False, highlight=False)
    console.print()

    table = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("Trace", result.trace_id)
    table.add_row("Rounds", str(result.round_count))
    table.add_row("Tool calls", str(result.tool_call_count))
    if result.violations:
        table.add_row(
            "Violations",
            "\n".join(f"[yellow]{v}[/yellow]" for v in result.violations),
        )
    else:
        table.add_row("Violations", "[green]none[/green]")
    console.print(table)


def render_trace(complete: CompleteTrace, console: Console) -> None:
    """Render trace metadata, then messages and tool calls in time order."""
    trace = complete.trace

    table = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("Trace", trace.id)
    table.add_row("Channel", trace.channel)
    table.add_row("Student", _or_dash(trace.student_id))
    table.add_row("Case", _or_dash(trace.case_id))
    table.add_row("Cohort", _or_dash(trace.cohort_id))
    table.add_row("Created", trace.created_at.isoformat())
    table.add_row("Archived", "yes" if trace.archived else "no")
    console.print(table)

    # Messages and tool calls interleaved by timestamp; messages first on ties.
    events = [(m.created_at, 0, m.id, m) for m in complete.messages]
    events += [(c.created_at, 1, c.id, c) for c in complete.tool_calls]
    events.sort(key=lambda e: e[:3])

    for _, kind, _, item in events:
        if kind == 0:
            style = _ROLE_STYLES.get(item.role, "bold")
            console.print(f"[{style}]{item.role}[/{style}] [dim]#{item.id}[/dim]")
            console.print(item.content, markup=False, highlight=False)
        else:
            ok = isinstance(item.output, dict) and item.output.get("success")
            status = "ok" if ok else "failed"
            console.print(
                f"[bold yellow]tool[/bold yellow] {item.tool_name} [dim]({status})[/dim]"
            )
            console.print(f"  input:  {json.dumps(item.input, default=str)}", markup=False)
            console.print(f"  output: {json.dumps(item.output, default=str)}", markup=False)
        console.print()


def render_trace_list(traces: list[Trace], console: Console) -> None:
    """Render a table of traces, newest first."""
    if not traces:
        console.print("[dim]No traces found.[/dim]")
        return

    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("Trace", style="bold")
    table.add_column("Channel")
    table.add_column("Student", justify="right")
    table.add_column("Case", justify="right")
    table.add_column("Created")
    table.add_column("Archived")
    for trace in traces:
        table.add_row(
            trace.id,
            trace.channel,
            _or_dash(trace.student_id),
            _or_dash(trace.case_id),
            trace.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            "yes" if trace.archived else "",
        )
    console.print(table)


def output_json(model: BaseModel) -> None:
    """Write a model as pure JSON to stdout (no Rich markup)."""
    sys.stdout.write(model.model_dump_json(indent=2))
    sys.stdout.write("\n")


def output_json_list(models: list[BaseModel]) -> None:
    """Write a list of models as a pure JSON array to stdout."""
    sys.stdout.write(json.dumps([m.model_dump(mode="json") for m in models], indent=2))
    sys.stdout.write("\n")


def _or_dash(value: object) -> str:
    return "-" if value is None else str(value)
