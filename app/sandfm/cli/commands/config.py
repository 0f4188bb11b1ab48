"""Configuration commands.

Provides `sandfm config show` and `sandfm config init` for inspecting
and writing ~/.config/sandfm/config.toml.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from sandfm.core.config import (
    DEFAULT_ARCHIVE_NAME,
    ConfigError,
    SandfmConfig,
    load_config_or_default,
    save_config,
)
from sandfm.core.paths import get_config_path
from sandfm.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or write the sandfm configuration.",
    no_args_is_help=True,
)


@app.command()
def show(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Show the effective configuration."""
    try:
        config = load_config_or_default()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if json_output:
        console.print_json(json.dumps(config.model_dump(mode="json")))
        return

    config_path = get_config_path()
    source = str(config_path) if config_path.exists() else "defaults (no config file)"
    console.print(f"[muted]Source:[/muted] {source}")
    console.print(f"root_dir          = {config.root_dir or '[muted]unset[/muted]'}")
    console.print(f"archive_name      = {config.archive_name}")
    console.print(f"compress_archives = {str(config.compress_archives).lower()}")
    console.print(f"journal           = {str(config.journal).lower()}")


@app.command()
def init(
    root_dir: Annotated[
        Path,
        typer.Argument(
            help="Directory all operations are confined to.",
            exists=True,
            file_okay=False,
            resolve_path=True,
        ),
    ],
    archive_name: Annotated[
        str,
        typer.Option("--archive-name", help="Default file name for 'sandfm zip'."),
    ] = DEFAULT_ARCHIVE_NAME,
    no_compress: Annotated[
        bool,
        typer.Option("--no-compress", help="Store zip entries without compression."),
    ] = False,
    no_journal: Annotated[
        bool,
        typer.Option("--no-journal", help="Do not record operations in the journal."),
    ] = False,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a config file with the given root directory.

    Examples:
        sandfm config init ~/shared
        sandfm config init /srv/files --no-journal --force
    """
    config_path = get_config_path()
    if config_path.exists() and not force:
        print_error(f"Config already exists: {config_path}")
        print_info("Use --force to overwrite.")
        raise typer.Exit(code=1)

    config = SandfmConfig(
        root_dir=root_dir,
        archive_name=archive_name,
        compress_archives=not no_compress,
        journal=not no_journal,
    )

    try:
        saved = save_config(config)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {saved}")
