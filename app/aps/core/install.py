"""Per-entry install pipeline.

For each entry this module resolves the source, decides whether the
destination is already current, protects conflicting user content with
a backup, validates the asset layout and materializes it. The locked
entry it returns is persisted by the caller once the whole run is over.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from aps.core.backup import create_backup, has_conflict
from aps.core.checksum import compute_checksum, compute_string_checksum
from aps.core.context import RunContext
from aps.core.errors import (
    ConflictBlockedError,
    EntryRequiresSourceError,
    GitOperationError,
    IOFailureError,
    UserCancelledError,
)
from aps.core.materialize import install_asset, planned_paths
from aps.core.validation import validate_structure
from aps.models.lockfile import LockedEntry, Lockfile
from aps.models.manifest import Entry, GitSource
from aps.sources import resolve_filesystem, resolve_source
from aps.sources.base import ResolvedSource
from aps.sources.git import candidate_refs, clone_and_resolve, clone_at_commit, get_remote_commit

logger = logging.getLogger(__name__)

COMPOSITE_HEADER = (
    "<!-- This file is auto-generated by agentic-prompt-sync (aps). "
    "Edit the sources instead. -->"
)


@dataclass(frozen=True, slots=True)
class UpgradeInfo:
    """A newer upstream commit than the one installed.

    Attributes:
        current_commit: Commit recorded in the lockfile.
        available_commit: Commit the remote branch points at now.
    """

    current_commit: str
    available_commit: str


@dataclass(frozen=True, slots=True)
class InstallResult:
    """Outcome of installing one entry.

    Attributes:
        id: Entry id.
        dest_path: Absolute destination path.
        installed: Whether content was written.
        skipped_no_change: Whether the destination was already current.
        backed_up: Whether conflicting content was backed up.
        locked_entry: Record to persist, None when nothing was installed.
        warnings: Non-fatal structural problems.
        was_symlink: Whether the install symlinks rather than copies.
        upgrade_available: Newer upstream commit, if one was detected.
    """

    id: str
    dest_path: Path
    installed: bool = False
    skipped_no_change: bool = False
    backed_up: bool = False
    locked_entry: LockedEntry | None = None
    warnings: list[str] = field(default_factory=list)
    was_symlink: bool = False
    upgrade_available: UpgradeInfo | None = None


def install_entry(entry: Entry, lockfile: Lockfile, ctx: RunContext) -> InstallResult:
    """Install a single-source entry.

    Args:
        entry: Entry to install.
        lockfile: Lockfile image from the start of the run (read only).
        ctx: Run context.

    Returns:
        InstallResult describing what happened.

    Raises:
        EntryRequiresSourceError: If the entry has no source.
        SourceUnavailableError: If the resolved source path is missing.
        GitOperationError: If cloning fails.
        ConflictBlockedError: If an overwrite needs --yes in a non-interactive run.
        UserCancelledError: If the user declines an overwrite.
        StructuralValidationError: Under strict mode, for a layout violation.
        IOFailureError: If a filesystem operation fails.
    """
    ctx.logger.info("Processing entry: %s", entry.id)
    source = entry.source
    if source is None:
        raise EntryRequiresSourceError(entry.id)

    dest_path = ctx.base_dir / entry.destination()
    locked = lockfile.get(entry.id)

    if isinstance(source, GitSource):
        pinned = _pinned_lock(source, locked, ctx)
        current = _check_git_current(entry, source, pinned, dest_path, ctx)
        if current is not None:
            return current
        resolved = _resolve_git(source, pinned, ctx)
    else:
        resolved = resolve_filesystem(source, ctx.base_dir)

    with resolved:
        return _install_resolved(entry, resolved, dest_path, locked, ctx)


def _pinned_lock(
    source: GitSource, locked: LockedEntry | None, ctx: RunContext
) -> LockedEntry | None:
    """Return the locked entry when it was recorded for this exact git source.

    A lock from another repository, in-repo path or ref does not pin the
    entry, which is then resolved from scratch.
    """
    if locked is None or not locked.commit:
        return None
    if locked.source != source.display_path:
        ctx.logger.info("Source changed from %s to %s", locked.source, source.display_path)
        return None
    if locked.resolved_ref and locked.resolved_ref not in candidate_refs(source.ref):
        ctx.logger.info("Ref changed from %s to %s", locked.resolved_ref, source.ref)
        return None
    return locked


def _check_git_current(
    entry: Entry,
    source: GitSource,
    locked: LockedEntry | None,
    dest_path: Path,
    ctx: RunContext,
) -> InstallResult | None:
    """Skip a git entry without cloning when the lockfile allows it.

    Args:
        locked: Lock pinning this source, from _pinned_lock.

    Returns:
        A skipped result, or None when the entry must be resolved.
    """
    dest_present = dest_path.exists() or dest_path.is_symlink()

    if not ctx.upgrade and locked is not None and locked.commit:
        if not dest_present:
            return None
        ctx.logger.info("Entry %s is pinned at %s", entry.id, locked.commit[:8])
        upgrade = None
        try:
            remote = get_remote_commit(source.repo, locked.resolved_ref or source.ref)
        except GitOperationError as e:
            ctx.logger.debug("Upgrade check for %s failed: %s", entry.id, e)
            remote = None
        if remote and remote != locked.commit:
            upgrade = UpgradeInfo(current_commit=locked.commit, available_commit=remote)
        return InstallResult(
            id=entry.id,
            dest_path=dest_path,
            skipped_no_change=True,
            upgrade_available=upgrade,
        )

    try:
        remote = get_remote_commit(source.repo, source.ref)
    except GitOperationError as e:
        ctx.logger.debug("Remote query for %s failed: %s", entry.id, e)
        return None
    if remote and dest_present and locked is not None and locked.commit == remote:
        ctx.logger.info("Entry %s is up to date at %s", entry.id, remote[:8])
        return InstallResult(id=entry.id, dest_path=dest_path, skipped_no_change=True)
    return None


def _resolve_git(source: GitSource, locked: LockedEntry | None, ctx: RunContext) -> ResolvedSource:
    if not ctx.upgrade and locked is not None and locked.commit:
        return clone_at_commit(source, locked.commit, locked.resolved_ref or source.ref)
    return clone_and_resolve(source)


def _install_resolved(
    entry: Entry,
    resolved: ResolvedSource,
    dest_path: Path,
    locked: LockedEntry | None,
    ctx: RunContext,
) -> InstallResult:
    log = ctx.logger
    log.debug("Source path: %s", resolved.source_path)

    checksum = compute_checksum(resolved.source_path)
    log.debug("Source checksum: %s", checksum)
    use_symlink = resolved.use_symlink and not entry.kind.is_hooks

    if locked is not None and locked.checksum == checksum:
        if locked.is_symlink != use_symlink:
            mode = "symlink" if use_symlink else "copy"
            log.info("Entry %s switches to %s, reinstalling", entry.id, mode)
        elif locked.source != resolved.source_display:
            log.info("Entry %s now comes from %s, reinstalling", entry.id, resolved.source_display)
        elif _destination_is_current(locked, dest_path, ctx):
            log.info("Entry %s is up to date (checksum match)", entry.id)
            return InstallResult(
                id=entry.id,
                dest_path=dest_path,
                skipped_no_change=True,
                was_symlink=use_symlink,
            )
        else:
            log.info("Entry %s has drifted from the lockfile, reinstalling", entry.id)

    candidates = planned_paths(
        entry.kind,
        resolved.source_path,
        dest_path,
        use_symlink=use_symlink,
        include=entry.include,
    )
    conflicts = [
        path
        for path, replacement in candidates
        if has_conflict(path) and not _is_tool_managed(path, replacement, locked)
    ]
    backed_up = _resolve_conflicts(conflicts, ctx)

    warnings = validate_structure(entry.kind, resolved.source_path, strict=ctx.strict)
    for warning in warnings:
        log.warning(warning)

    if ctx.dry_run:
        log.info("[dry-run] Would install %s to %s", entry.id, dest_path)
        return InstallResult(
            id=entry.id,
            dest_path=dest_path,
            warnings=warnings,
            was_symlink=use_symlink,
        )

    symlinked_items = install_asset(
        entry.kind,
        resolved.source_path,
        dest_path,
        use_symlink=use_symlink,
        include=list(entry.include),
    )
    log.info("%s %s to %s", "Symlinked" if use_symlink else "Installed", entry.id, dest_path)

    return InstallResult(
        id=entry.id,
        dest_path=dest_path,
        installed=True,
        backed_up=backed_up,
        locked_entry=resolved.to_locked_entry(
            entry.destination().as_posix(),
            checksum,
            symlinked_items,
            as_symlink=use_symlink,
        ),
        warnings=warnings,
        was_symlink=use_symlink,
    )


def _canonical(path: Path, ctx: RunContext) -> Path | None:
    """Canonicalize path, returning None when that is impossible."""
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        ctx.logger.debug("Cannot canonicalize %s: %s", path, e)
        return None


def _link_points_to(link: Path, target: Path, ctx: RunContext) -> bool:
    if not link.is_symlink():
        return False
    actual = _canonical(link, ctx)
    expected = _canonical(target, ctx)
    return actual is not None and actual == expected


def _destination_is_current(locked: LockedEntry, dest_path: Path, ctx: RunContext) -> bool:
    """Confirm a checksum match is backed by the destination on disk.

    The destination must exist. For symlink installs every recorded link
    must still canonicalize to its expected source. A link that cannot be
    canonicalized counts as drift.
    """
    if not dest_path.exists():
        return False
    if not locked.is_symlink:
        return True

    if not locked.symlinked_items:
        if dest_path.is_symlink() and locked.target_path:
            return _link_points_to(dest_path, Path(locked.target_path), ctx)
        return True

    target_root = Path(locked.target_path) if locked.target_path else None
    for item in locked.symlinked_items:
        item_path = Path(item)
        if target_root is None or item_path == target_root:
            link = dest_path
        else:
            try:
                link = dest_path / item_path.relative_to(target_root)
            except ValueError:
                ctx.logger.debug("Symlinked item %s is outside %s", item_path, target_root)
                return False
        if not _link_points_to(link, item_path, ctx):
            ctx.logger.debug("Symlink %s no longer points to %s", link, item_path)
            return False
    return True


def _is_tool_managed(path: Path, replacement: Path, locked: LockedEntry | None) -> bool:
    """Whether overwriting a conflicting path would lose nothing.

    True when the content still matches the locked checksum (an unedited
    earlier copy) or already equals the content replacing it.
    """
    try:
        current = compute_checksum(path)
        if locked is not None and not locked.is_symlink and current == locked.checksum:
            return True
        return current == compute_checksum(replacement)
    except IOFailureError as e:
        logger.debug("Cannot compare %s with %s: %s", path, replacement, e)
        return False


def _resolve_conflicts(conflicts: list[Path], ctx: RunContext) -> bool:
    """Get permission to overwrite conflicting paths and back them up.

    Returns:
        True if at least one backup was taken.

    Raises:
        ConflictBlockedError: If a non-interactive run lacks --yes.
        UserCancelledError: If the user declines.
    """
    if not conflicts:
        return False

    for path in conflicts:
        ctx.logger.info("Conflict detected at %s", path)

    if ctx.dry_run:
        for path in conflicts:
            ctx.logger.info("[dry-run] Would back up and overwrite: %s", path)
        return False

    if not ctx.allow_overwrite:
        if not ctx.interactive:
            raise ConflictBlockedError(conflicts[0])
        label = str(conflicts[0]) if len(conflicts) == 1 else f"{len(conflicts)} paths"
        if not ctx.confirm(f"Overwrite existing content at {label}?"):
            ctx.logger.info("User declined to overwrite %s", label)
            raise UserCancelledError()

    for path in conflicts:
        backup_path = create_backup(ctx.base_dir, path)
        ctx.logger.info("Created backup at %s", backup_path)
    return True


def compose_sources(entry: Entry, ctx: RunContext) -> tuple[str, list[str]]:
    """Read every source of a composite entry and merge them into one document.

    Each source is resolved, read and released before the next one.

    Returns:
        Tuple of (generated content, source display paths in order).

    Raises:
        SourceUnavailableError: If a source path is missing.
        GitOperationError: If a git source cannot be cloned.
        IOFailureError: If a source cannot be read as UTF-8 text.
    """
    sections: list[str] = []
    displays: list[str] = []
    for source in entry.sources:
        with resolve_source(source, ctx) as resolved:
            try:
                text = resolved.source_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                msg = f"Failed to read composite source {resolved.source_path}"
                raise IOFailureError(msg) from e
        sections.append(text.strip())
        displays.append(source.display_path)

    content = COMPOSITE_HEADER + "\n\n" + "\n\n".join(sections) + "\n"
    return content, displays


def install_composite_entry(entry: Entry, lockfile: Lockfile, ctx: RunContext) -> InstallResult:
    """Generate a composite file from several sources and install it.

    The checksum is taken over the generated text, so the entry is
    current only when the merged output is unchanged.

    Raises:
        The same errors as install_entry.
    """
    ctx.logger.info("Processing composite entry: %s (%d sources)", entry.id, len(entry.sources))
    dest_path = ctx.base_dir / entry.destination()
    locked = lockfile.get(entry.id)

    content, displays = compose_sources(entry, ctx)
    checksum = compute_string_checksum(content)
    ctx.logger.debug("Composite checksum: %s", checksum)

    if lockfile.checksum_matches(entry.id, checksum) and dest_path.is_file():
        ctx.logger.info("Entry %s is up to date (checksum match)", entry.id)
        return InstallResult(id=entry.id, dest_path=dest_path, skipped_no_change=True)

    conflicts = []
    if has_conflict(dest_path) and not _is_generated(dest_path, locked):
        conflicts.append(dest_path)
    backed_up = _resolve_conflicts(conflicts, ctx)

    if ctx.dry_run:
        ctx.logger.info("[dry-run] Would write composite %s to %s", entry.id, dest_path)
        return InstallResult(id=entry.id, dest_path=dest_path)

    try:
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        if dest_path.is_symlink():
            dest_path.unlink()
        dest_path.write_text(content, encoding="utf-8")
    except OSError as e:
        msg = f"Failed to write composite file {dest_path}"
        raise IOFailureError(msg) from e
    ctx.logger.info("Wrote composite %s to %s", entry.id, dest_path)

    return InstallResult(
        id=entry.id,
        dest_path=dest_path,
        installed=True,
        backed_up=backed_up,
        locked_entry=LockedEntry.for_composite(
            displays, entry.destination().as_posix(), checksum
        ),
    )


def _is_generated(path: Path, locked: LockedEntry | None) -> bool:
    """Whether path is a composite file aps wrote and nobody has edited."""
    if locked is None or not path.is_file():
        return False
    try:
        return compute_checksum(path) == locked.checksum
    except IOFailureError as e:
        logger.debug("Cannot checksum %s: %s", path, e)
        return False
