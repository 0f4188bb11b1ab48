"""Read-only commands: listing and searching.

Provides the `sandfm ls` and `sandfm search` commands.
"""

import json
from typing import Annotated

import typer

from sandfm.cli.display import create_listing_table, create_search_table
from sandfm.cli.types import exit_with_error, get_session
from sandfm.core.errors import FileManagerError
from sandfm.utils.formatting import console, print_info


def ls(
    ctx: typer.Context,
    path: Annotated[
        str,
        typer.Argument(help="Folder relative to the root (default: the root)."),
    ] = "",
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """List the folders and files directly inside a folder.

    Examples:
        sandfm ls                 # List the root
        sandfm ls docs/reports    # List a subfolder
        sandfm ls --json          # JSON output for scripting
    """
    session = get_session(ctx)
    manager = session.manager()

    try:
        listing = manager.browse(path)
    except FileManagerError as e:
        raise exit_with_error(e) from e

    if json_output:
        console.print_json(json.dumps(listing.to_dict()))
        return

    if not listing.folders and not listing.files:
        print_info("Folder is empty.")
        return

    title = "/" + manager.sandbox.to_relative(manager.resolve(path))
    console.print(create_listing_table(listing, title=title))


def search(
    ctx: typer.Context,
    pattern: Annotated[
        str,
        typer.Argument(help="Wildcard pattern (* and ?); plain text matches anywhere in the name."),
    ],
    path: Annotated[
        str,
        typer.Option("--in", "-C", help="Folder to search under (default: the root)."),
    ] = "",
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", help="Limit number of results."),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Search for files by name, recursively and case-insensitively.

    Examples:
        sandfm search 'rep*'          # Names starting with "rep"
        sandfm search report          # Names containing "report"
        sandfm search '*.pdf' --in docs
    """
    session = get_session(ctx)

    try:
        hits = session.manager().search(pattern, path)
    except FileManagerError as e:
        raise exit_with_error(e) from e

    if limit is not None:
        hits = hits[:limit]

    if json_output:
        console.print_json(json.dumps([h.to_dict() for h in hits]))
        return

    if not hits:
        print_info("No matching files found.")
        return

    console.print(create_search_table(hits, pattern))
