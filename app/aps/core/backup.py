"""Backups and conflict checks for install destinations.

Content about to be overwritten or deleted is copied into a backup root
beside the base directory. Symlinks and directories made only of
symlinks are tool-managed state and are never considered user content.
"""

import logging
import shutil
from datetime import datetime
from pathlib import Path

from aps.core.errors import IOFailureError
from aps.core.paths import get_backup_dir

logger = logging.getLogger(__name__)

# Minute granularity: two backups of one path within a minute share a name
BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%d-%H%M"


def is_symlink_only_dir(path: Path) -> bool:
    """Check whether a directory holds nothing but symlinks at every depth.

    Empty directories qualify. Unreadable directories do not.

    Args:
        path: Directory to inspect.

    Returns:
        True if every non-directory entry below path is a symlink.
    """
    try:
        children = list(path.iterdir())
    except OSError:
        return False

    for child in children:
        if child.is_symlink():
            continue
        if child.is_dir():
            if not is_symlink_only_dir(child):
                return False
        else:
            return False
    return True


def has_conflict(dest_path: Path) -> bool:
    """Check whether writing to a destination would clobber user content.

    A destination is not a conflict when it is absent, is itself a symlink
    (dangling or not), is an empty directory, or is a directory that
    recursively contains only symlinks.

    Args:
        dest_path: Destination about to be written.

    Returns:
        True if the destination holds content that needs a backup.
    """
    if dest_path.is_symlink():
        return False
    if not dest_path.exists():
        return False
    if dest_path.is_dir():
        return not is_symlink_only_dir(dest_path)
    return True


def backup_name(base_dir: Path, path: Path, now: datetime | None = None) -> str:
    """Build the backup entry name for a path.

    The name is the path relative to base_dir (or the full path when it
    lies outside) with separators flattened to ``-``, plus a timestamp.

    Args:
        base_dir: Directory the backup root lives in.
        path: Path being backed up.
        now: Timestamp to use. If None, uses the current local time.

    Returns:
        Backup entry name, e.g. ``.cursor-rules-2024-01-15-1030``.
    """
    try:
        relative = path.relative_to(base_dir).as_posix()
    except ValueError:
        relative = path.as_posix()
    flattened = relative.replace("/", "-").replace("\\", "-").strip("-")
    timestamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
    return f"{flattened}-{timestamp}"


def create_backup(base_dir: Path, path: Path) -> Path:
    """Copy a file or directory into the backup root.

    Args:
        base_dir: Directory whose ``.aps-backups`` folder receives the copy.
        path: Existing file or directory to back up.

    Returns:
        Path of the created backup.

    Raises:
        IOFailureError: If the backup root cannot be created or the copy fails.
    """
    backup_root = get_backup_dir(base_dir)
    try:
        backup_root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        msg = f"Failed to create backup directory at {backup_root}"
        raise IOFailureError(msg) from e

    backup_path = backup_root / backup_name(base_dir, path)

    try:
        if path.is_dir():
            if backup_path.exists():
                shutil.rmtree(backup_path)
            shutil.copytree(path, backup_path, symlinks=True)
            logger.info("Backed up directory %s to %s", path, backup_path)
        else:
            shutil.copy2(path, backup_path)
            logger.info("Backed up file %s to %s", path, backup_path)
    except OSError as e:
        msg = f"Failed to back up {path}"
        raise IOFailureError(msg) from e

    return backup_path
