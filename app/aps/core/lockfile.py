"""Lockfile persistence.

The lockfile is read once at the start of a run, mutated in memory, and
written once at the end. Writes are atomic so an interrupted save never
leaves a truncated ledger behind.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile

import tomli_w
from pydantic import ValidationError

from aps import __version__
from aps.core.errors import LockfileError
from aps.models.lockfile import Lockfile

logger = logging.getLogger(__name__)


def load_lockfile(path: Path) -> Lockfile:
    """Load a lockfile, returning an empty one when none exists yet.

    Args:
        path: Path to aps.lock.toml.

    Returns:
        The parsed Lockfile, or a new empty Lockfile if the file is absent.

    Raises:
        LockfileError: If the file exists but cannot be read or parsed.
    """
    if not path.exists():
        logger.info("No existing lockfile at %s, starting fresh", path)
        return Lockfile()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise LockfileError(f"Invalid lockfile syntax in {path}: {e}") from e
    except OSError as e:
        raise LockfileError(f"Failed to read lockfile at {path}: {e}") from e

    try:
        lockfile = Lockfile.model_validate(data)
    except ValidationError as e:
        raise LockfileError(f"Invalid lockfile content in {path}: {e}") from e

    logger.debug("Loaded lockfile with %d entries", len(lockfile.entries))
    return lockfile


def save_lockfile(lockfile: Lockfile, path: Path) -> Path:
    """Write the lockfile atomically, stamping the current aps version.

    Args:
        lockfile: Lockfile image to persist.
        path: Destination path.

    Returns:
        Path where the lockfile was saved.

    Raises:
        LockfileError: If the file cannot be written.
    """
    lockfile.aps_version = __version__

    tmp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(mode="wb", dir=path.parent, delete=False, suffix=".tmp") as f:
            tmp_path = Path(f.name)
            tomli_w.dump(lockfile.to_dict(), f)
        os.replace(str(tmp_path), str(path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise LockfileError(f"Failed to write lockfile at {path}: {e}") from e

    logger.info("Saved lockfile to %s", path)
    return path
