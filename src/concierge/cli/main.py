"""Concierge CLI entry point."""

import typer

from concierge import __version__
from concierge.cli.chat_cmd import chat
from concierge.cli.trace_cmd import archive, trace, traces

app = typer.Typer(
    name="concierge",
    help="Student Success Concierge: tool-calling chat agent with guardrails and traces",
    no_args_is_help=True,
)

# Register subcommands
app.command()(chat)
app.command()(trace)
app.command()(traces)
app.command()(archive)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"concierge {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Student Success Concierge: tool-calling chat agent with guardrails and traces."""
