"""CLI package for aps.

This package contains the Typer application and all subcommands.
"""

from aps.cli.main import app

__all__ = ["app"]
