"""CLI commands for aps.

This package contains all subcommand implementations.
"""

from aps.cli.commands import init, status, sync, validate

__all__ = ["init", "status", "sync", "validate"]
