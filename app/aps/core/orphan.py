"""Detection and cleanup of destinations left behind by destination changes.

When an entry's destination changes between runs, the path recorded in
the lockfile still holds the old install. Such paths are reported as
orphans and, once confirmed, removed (with a backup when they hold real
content).
"""

import logging
import shutil
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from aps.core.backup import create_backup, is_symlink_only_dir
from aps.core.context import RunContext
from aps.core.errors import ApsError, IOFailureError
from aps.models.lockfile import Lockfile
from aps.models.manifest import Entry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OrphanedPath:
    """A previous destination that no entry installs to anymore.

    Attributes:
        entry_id: Entry whose destination moved.
        old_dest: Destination recorded in the lockfile.
        new_dest: Destination the entry declares now.
    """

    entry_id: str
    old_dest: Path
    new_dest: Path


@dataclass(frozen=True, slots=True)
class OrphanCleanupResult:
    """Outcome of an orphan cleanup pass.

    Attributes:
        deleted: Orphans that were removed.
        backups: Backups taken before removal.
        warnings: Per-orphan failures and skipped-cleanup notices.
    """

    deleted: list[OrphanedPath] = field(default_factory=list)
    backups: list[Path] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def canonicalize(path: Path) -> Path:
    """Canonicalize a path for comparison without following a final symlink.

    The containing directory is resolved and the last component kept, so
    a destination that is itself a symlink is compared by its location,
    not by its target.
    """
    try:
        return path.absolute().parent.resolve() / path.name
    except (OSError, RuntimeError) as e:
        logger.debug("Cannot canonicalize %s: %s", path, e)
        return path.absolute()


def paths_overlap(first: Path, second: Path) -> bool:
    """Check whether either path equals or contains the other."""
    return first == second or first.is_relative_to(second) or second.is_relative_to(first)


def detect_orphaned_paths(
    entries: Iterable[Entry],
    lockfile: Lockfile,
    base_dir: Path,
) -> list[OrphanedPath]:
    """Find recorded destinations that differ from the declared ones.

    A pair is skipped when both paths are the same, when the old path no
    longer exists, or when one contains the other.

    Args:
        entries: Entries taking part in this run.
        lockfile: Lockfile from the start of the run.
        base_dir: Directory destinations resolve against.

    Returns:
        Orphan candidates in entry order.
    """
    orphans: list[OrphanedPath] = []
    for entry in entries:
        locked = lockfile.get(entry.id)
        if locked is None:
            continue

        old_dest = base_dir / locked.dest
        new_dest = base_dir / entry.destination()
        old_canonical = canonicalize(old_dest)
        new_canonical = canonicalize(new_dest)
        logger.debug("Entry %s: old_dest=%s, new_dest=%s", entry.id, old_canonical, new_canonical)

        if old_canonical == new_canonical:
            continue
        if not (old_dest.exists() or old_dest.is_symlink()):
            logger.debug("Old dest %s for entry %s no longer exists", old_dest, entry.id)
            continue
        if paths_overlap(old_canonical, new_canonical):
            logger.debug(
                "Skipping orphan for %s: %s and %s overlap", entry.id, old_dest, new_dest
            )
            continue

        logger.info("Detected orphan for entry %s: %s (new dest: %s)", entry.id, old_dest, new_dest)
        orphans.append(OrphanedPath(entry_id=entry.id, old_dest=old_dest, new_dest=new_dest))
    return orphans


def delete_orphan(orphan: OrphanedPath, base_dir: Path) -> Path | None:
    """Remove an orphaned path, backing up real content first.

    Symlinks and symlink-only directories are removed without a backup.

    Args:
        orphan: Orphan to remove.
        base_dir: Directory whose backup root receives the copy.

    Returns:
        Path of the backup taken, or None when none was needed.

    Raises:
        IOFailureError: If the backup or removal fails.
    """
    path = orphan.old_dest
    backup_path: Path | None = None
    try:
        if path.is_symlink():
            path.unlink()
            logger.info("Removed orphaned symlink %s", path)
        elif path.is_dir():
            if not is_symlink_only_dir(path):
                backup_path = create_backup(base_dir, path)
            shutil.rmtree(path)
            logger.info("Removed orphaned directory %s", path)
        else:
            backup_path = create_backup(base_dir, path)
            path.unlink()
            logger.info("Removed orphaned file %s", path)
    except OSError as e:
        msg = f"Failed to remove orphaned path {path}"
        raise IOFailureError(msg) from e
    return backup_path


def cleanup_orphans(orphans: list[OrphanedPath], ctx: RunContext) -> OrphanCleanupResult:
    """Delete confirmed orphans.

    Dry runs only report. Otherwise deletion needs ``--yes`` or an
    interactive confirmation. A non-interactive run without ``--yes``
    deletes nothing and returns a warning.

    Args:
        orphans: Candidates from detect_orphaned_paths.
        ctx: Run context.

    Returns:
        OrphanCleanupResult listing what was removed.
    """
    if not orphans:
        return OrphanCleanupResult()

    if ctx.dry_run:
        ctx.logger.info("[dry-run] Would delete %d orphaned path(s)", len(orphans))
        return OrphanCleanupResult()

    if not ctx.allow_overwrite:
        if not ctx.interactive:
            notice = (
                f"Skipped cleanup of {len(orphans)} orphaned path(s); "
                "re-run with --yes to delete them"
            )
            ctx.logger.warning(notice)
            return OrphanCleanupResult(warnings=[notice])
        if not ctx.confirm(f"Delete {len(orphans)} orphaned path(s)?"):
            ctx.logger.info("User declined orphan cleanup")
            return OrphanCleanupResult()

    result = OrphanCleanupResult()
    for orphan in orphans:
        try:
            backup_path = delete_orphan(orphan, ctx.base_dir)
        except ApsError as e:
            warning = f"Failed to clean up {orphan.old_dest} for {orphan.entry_id}: {e}"
            ctx.logger.warning(warning)
            result.warnings.append(warning)
            continue
        result.deleted.append(orphan)
        if backup_path is not None:
            result.backups.append(backup_path)
    return result
