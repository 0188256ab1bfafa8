"""Themed Rich consoles and the one-line message helpers built on them.

Results go to ``console`` (stdout). Warnings and errors go to
``err_console`` so they stay visible when stdout is piped.
"""

import sys

from rich.console import Console

from aps.core.theme import get_theme

SHORT_COMMIT_LENGTH = 8


def _make_console(*, stderr: bool = False) -> Console:
    stream = sys.stderr if stderr else sys.stdout
    # Full hex colors on a terminal; otherwise let Rich decide
    color_system = "truecolor" if stream.isatty() else None
    return Console(theme=get_theme(), stderr=stderr, color_system=color_system)


console = _make_console()
err_console = _make_console(stderr=True)


def short_commit(commit: str | None) -> str:
    """Abbreviate a commit SHA for tables and result lines ("-" when unset)."""
    return commit[:SHORT_COMMIT_LENGTH] if commit else "-"


def print_info(message: str) -> None:
    console.print(f"[info]{message}[/]")


def print_success(message: str) -> None:
    console.print(f"[success]{message}[/]")


def print_warning(message: str) -> None:
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    err_console.print(f"[error]Error:[/] {message}", highlight=False)
