"""Subprocess helpers for external tools (currently only git)."""

import logging
import os
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300.0


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured outcome of one external command.

    Attributes:
        stdout: Decoded standard output.
        stderr: Decoded standard error.
        returncode: Process exit code.
        args: The argument vector that was run.
    """

    stdout: str
    stderr: str
    returncode: int
    args: tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def error_output(self) -> str:
        """Best available description of a failure for error messages."""
        text = self.stderr.strip() or self.stdout.strip()
        return text or f"exit code {self.returncode}"


def run_command(
    args: Sequence[str],
    *,
    timeout: float | None = DEFAULT_TIMEOUT,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    """Run a command to completion with captured text output.

    A non-zero exit is reported through the result, never raised.

    Args:
        args: Executable followed by its arguments.
        timeout: Seconds before the process is killed. Clones of large
            repositories are slow, so the default is generous.
        cwd: Working directory, or the current one when None.
        env: Variables layered over the inherited environment.

    Raises:
        FileNotFoundError: The executable is not on PATH.
        subprocess.TimeoutExpired: The command ran past ``timeout``.
    """
    argv = tuple(args)
    logger.debug("Running: %s", " ".join(argv))
    completed = subprocess.run(
        argv,
        capture_output=True,
        text=True,
        check=False,
        timeout=timeout,
        cwd=cwd,
        env={**os.environ, **env} if env else None,
    )
    if completed.returncode != 0:
        logger.debug("%s exited with %d", argv[0], completed.returncode)
    return CommandResult(
        stdout=completed.stdout,
        stderr=completed.stderr,
        returncode=completed.returncode,
        args=argv,
    )
