"""Sync run driver.

Loads the lockfile, installs the selected entries in declared order,
cleans up orphaned destinations and writes the lockfile exactly once,
also when an entry fails part way through the batch.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from aps.core.context import RunContext
from aps.core.errors import ApsError, EntryNotFoundError, EntrySyncError
from aps.core.install import InstallResult, install_composite_entry, install_entry
from aps.core.lockfile import load_lockfile, save_lockfile
from aps.core.orphan import (
    OrphanCleanupResult,
    OrphanedPath,
    cleanup_orphans,
    detect_orphaned_paths,
)
from aps.core.paths import get_lockfile_path
from aps.models.lockfile import Lockfile
from aps.models.manifest import Entry, Manifest


@dataclass(slots=True)
class SyncReport:
    """Everything a sync run produced.

    Attributes:
        results: One install result per processed entry, in order.
        orphans: Orphan candidates detected before installing.
        cleanup: Outcome of the orphan cleanup.
        removed_lock_ids: Stale lockfile ids dropped on a full sync.
        lockfile_path: Where the lockfile lives.
    """

    results: list[InstallResult] = field(default_factory=list)
    orphans: list[OrphanedPath] = field(default_factory=list)
    cleanup: OrphanCleanupResult = field(default_factory=OrphanCleanupResult)
    removed_lock_ids: list[str] = field(default_factory=list)
    lockfile_path: Path | None = None

    @property
    def warnings(self) -> list[str]:
        collected = [w for result in self.results for w in result.warnings]
        return collected + self.cleanup.warnings


def select_entries(manifest: Manifest, only: list[str] | None) -> list[Entry]:
    """Pick the entries to process, preserving declared order.

    Raises:
        EntryNotFoundError: If an id in only is not declared.
    """
    if not only:
        return list(manifest.entries)
    for entry_id in only:
        if manifest.get_entry(entry_id) is None:
            raise EntryNotFoundError(entry_id)
    wanted = set(only)
    return [entry for entry in manifest.entries if entry.id in wanted]


def sync_entry(entry: Entry, lockfile: Lockfile, ctx: RunContext) -> InstallResult:
    """Install one entry with the pipeline matching its kind."""
    if entry.is_composite:
        return install_composite_entry(entry, lockfile, ctx)
    return install_entry(entry, lockfile, ctx)


def run_sync(
    manifest: Manifest,
    manifest_path: Path,
    ctx: RunContext,
    *,
    only: list[str] | None = None,
    on_orphans: Callable[[list[OrphanedPath]], None] | None = None,
) -> SyncReport:
    """Sync the manifest's entries into ctx.base_dir.

    Args:
        manifest: Validated manifest.
        manifest_path: Path of the manifest; the lockfile lives beside it.
        ctx: Run context.
        only: Restrict the run to these entry ids.
        on_orphans: Called with the detected orphans before cleanup asks
            for confirmation.

    Returns:
        SyncReport for display.

    Raises:
        EntryNotFoundError: If only names an undeclared id.
        EntrySyncError: If an entry fails. Entries installed before it are
            still recorded in the saved lockfile.
        LockfileError: If the lockfile cannot be read or written.
    """
    log = ctx.logger
    entries = select_entries(manifest, only)
    lockfile_path = get_lockfile_path(manifest_path)
    previous = load_lockfile(lockfile_path)
    lockfile = previous.model_copy(deep=True)
    report = SyncReport(lockfile_path=lockfile_path)

    report.orphans = detect_orphaned_paths(entries, previous, ctx.base_dir)

    try:
        for entry in entries:
            try:
                result = sync_entry(entry, previous, ctx)
            except ApsError as e:
                dest = ctx.base_dir / entry.destination()
                log.error("Entry %s failed: %s", entry.id, e)
                raise EntrySyncError(entry.id, dest, e, completed=list(report.results)) from e
            report.results.append(result)
            if result.locked_entry is not None and not ctx.dry_run:
                lockfile.upsert(entry.id, result.locked_entry)

        if report.orphans:
            if on_orphans is not None:
                on_orphans(report.orphans)
            report.cleanup = cleanup_orphans(report.orphans, ctx)

        if not only and not ctx.dry_run:
            report.removed_lock_ids = lockfile.retain_entries(manifest.entry_ids)
            if report.removed_lock_ids:
                log.info(
                    "Removed %d stale entries from lockfile", len(report.removed_lock_ids)
                )
    finally:
        if not ctx.dry_run:
            save_lockfile(lockfile, lockfile_path)

    return report
