"""Shared types and utilities for CLI commands.

This module provides item parsing and file manager construction used
across multiple CLI command modules.
"""

from dataclasses import dataclass
from pathlib import Path

import typer

from sandfm.core.config import ConfigError, SandfmConfig, load_config_or_default, resolve_root_dir
from sandfm.core.context import RootContext
from sandfm.core.errors import FileManagerError
from sandfm.core.service import FileManager
from sandfm.filesystem.models import Item, ItemKind
from sandfm.utils.formatting import print_error


@dataclass(frozen=True, slots=True)
class CliSession:
    """Configuration and root context for one CLI invocation.

    Attributes:
        config: Loaded configuration (defaults when no file exists).
        context: Root context for the selected root directory.
    """

    config: SandfmConfig
    context: RootContext

    def manager(self, *, dry_run: bool = False) -> FileManager:
        """Build a FileManager for this session."""
        return FileManager(
            self.context,
            compress_archives=self.config.compress_archives,
            dry_run=dry_run,
        )


def parse_item(value: str) -> Item:
    """Parse a CLI item argument.

    A trailing ``/`` asserts a folder (``docs/``); anything else is a file.

    Raises:
        typer.BadParameter: If the name is empty.
    """
    if value.endswith("/") or value.endswith("\\"):
        name = value.rstrip("/\\")
        kind = ItemKind.FOLDER
    else:
        name = value
        kind = ItemKind.FILE
    if not name:
        msg = f"Invalid item: {value!r}"
        raise typer.BadParameter(msg)
    return Item(name=name, kind=kind)


def parse_items(values: list[str]) -> list[Item]:
    """Parse a list of CLI item arguments."""
    return [parse_item(v) for v in values]


def get_session(ctx: typer.Context) -> CliSession:
    """Load configuration and the root context for a command.

    The root directory is taken from --root, then SANDFM_ROOT, then
    the config file.

    Raises:
        typer.Exit: With code 2 if no usable root directory is configured.
    """
    obj = ctx.find_root().obj or {}
    cli_root: Path | None = obj.get("root")

    try:
        config = load_config_or_default()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=2) from e

    root_dir = resolve_root_dir(cli_root, config)
    if root_dir is None:
        print_error("No root directory configured. Use --root, SANDFM_ROOT or 'sandfm config init'.")
        raise typer.Exit(code=2)

    try:
        context = RootContext.create(root_dir)
    except FileManagerError as e:
        print_error(str(e))
        raise typer.Exit(code=2) from e

    return CliSession(config=config, context=context)


def exit_with_error(error: Exception) -> typer.Exit:
    """Print a whole-call error and return the exit to raise."""
    print_error(str(error))
    return typer.Exit(code=1)
