"""History command for viewing the operation journal.

This module provides the `sandfm history` command for viewing
mutations recorded by previous runs.
"""

import json
from datetime import datetime
from typing import Annotated

import typer

from sandfm.cli.display import create_history_table
from sandfm.core.state import StateManager
from sandfm.models.history import HistoryActionType
from sandfm.utils.formatting import console, print_info

app = typer.Typer(
    name="history",
    help="View the operation journal.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of entries to show.",
        ),
    ] = 20,
    action: Annotated[
        HistoryActionType | None,
        typer.Option(
            "--action",
            "-a",
            help="Only show entries of this action type.",
            case_sensitive=False,
        ),
    ] = None,
    since: Annotated[
        str | None,
        typer.Option(
            "--since",
            help="Show entries since date (YYYY-MM-DD).",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show recorded file operations, newest first.

    Examples:
        sandfm history              # Show last 20 entries
        sandfm history -a delete    # Only deletions
        sandfm history --since 2026-01-01
        sandfm history --json       # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    entries = StateManager().get_history()

    if action is not None:
        entries = [e for e in entries if e.action_type == action]

    if since:
        try:
            datetime.strptime(since, "%Y-%m-%d")
        except ValueError:
            typer.echo(f"Invalid date format: {since}. Use YYYY-MM-DD.", err=True)
            raise typer.Exit(code=1) from None
        entries = [e for e in entries if e.timestamp[:10] >= since]

    entries = entries[:limit]

    if not entries:
        print_info("No history entries found.")
        return

    if json_output:
        console.print_json(json.dumps([e.to_dict() for e in entries]))
    else:
        console.print(create_history_table(entries))
