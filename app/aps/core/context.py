"""Per-run execution context shared by the sync engine.

The context carries the flags of one invocation and an explicit logger
handle, so the engine never consults process-wide configuration.
"""

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import typer


def _default_interactive() -> bool:
    return sys.stdin.isatty()


def _default_confirm(message: str) -> bool:
    return typer.confirm(message, default=False)


@dataclass(slots=True)
class RunContext:
    """Flags and collaborators for a single sync run.

    Attributes:
        base_dir: Directory relative sources and destinations resolve against.
        dry_run: Report intended actions without writing anything.
        allow_overwrite: Overwrite conflicting content without prompting (``--yes``).
        strict: Treat structural validation warnings as fatal.
        upgrade: Re-resolve git sources instead of honouring locked commits.
        interactive: Whether the user can be prompted for confirmation.
        logger: Logger the engine reports through.
        confirm: Callable asking the user a yes/no question.
    """

    base_dir: Path
    dry_run: bool = False
    allow_overwrite: bool = False
    strict: bool = False
    upgrade: bool = False
    interactive: bool = field(default_factory=_default_interactive)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("aps"))
    confirm: Callable[[str], bool] = _default_confirm
