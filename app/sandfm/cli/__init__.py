"""CLI package for sandfm.

This package contains the Typer application and all subcommands.
"""

from sandfm.cli.main import app

__all__ = ["app"]
