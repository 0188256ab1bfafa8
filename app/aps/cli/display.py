"""Shared Rich display functions for sync, status and validation output."""

from enum import Enum
from pathlib import Path

from rich.table import Table

from aps.core.install import InstallResult
from aps.core.orphan import OrphanedPath
from aps.core.status import EntryState, EntryStatus
from aps.core.sync import SyncReport
from aps.core.validation import EntryValidation
from aps.utils.formatting import console, print_success, short_commit


class SyncStatus(str, Enum):
    """Display status of one synced entry."""

    SYNCED = "synced"
    COPIED = "copied"
    CURRENT = "current"
    UPGRADABLE = "upgrade available"
    WARNING = "warning"


_STATUS_STYLES: dict[SyncStatus, tuple[str, str]] = {
    SyncStatus.SYNCED: ("✓", "synced"),
    SyncStatus.COPIED: ("✓", "synced"),
    SyncStatus.CURRENT: ("·", "muted"),
    SyncStatus.UPGRADABLE: ("↑", "upgrade"),
    SyncStatus.WARNING: ("!", "warning"),
}


def classify_result(result: InstallResult) -> SyncStatus:
    """Map an install result to its display status."""
    if result.warnings:
        return SyncStatus.WARNING
    if result.skipped_no_change and result.upgrade_available is not None:
        return SyncStatus.UPGRADABLE
    if result.skipped_no_change:
        return SyncStatus.CURRENT
    if result.was_symlink:
        return SyncStatus.SYNCED
    return SyncStatus.COPIED


def format_dest_path(dest_path: Path, base_dir: Path) -> str:
    """Show a destination relative to the manifest directory when possible."""
    try:
        relative = dest_path.relative_to(base_dir)
    except ValueError:
        return str(dest_path)
    text = relative.as_posix()
    return "." if text == "." else f"./{text}"


def result_message(result: InstallResult) -> str | None:
    """Secondary line shown under an entry: warnings or upgrade info."""
    if result.warnings:
        return ", ".join(result.warnings)
    if result.upgrade_available is not None:
        current = short_commit(result.upgrade_available.current_commit)
        available = short_commit(result.upgrade_available.available_commit)
        return f"{current} → {available}"
    return None


def print_sync_results(
    results: list[InstallResult], manifest_path: Path, base_dir: Path, dry_run: bool
) -> None:
    """Print one aligned line per entry, plus any message beneath it.

    Args:
        results: Install results in declared order.
        manifest_path: Manifest the run was driven by.
        base_dir: Directory destinations are shown relative to.
        dry_run: Whether this was a dry run (adds a marker to the header).
    """
    header = f"[muted]Syncing from[/] [info]{manifest_path.name}[/]"
    if dry_run:
        header += " [warning]\\[dry-run][/]"
    console.print(header)
    console.print()

    id_width = max((len(r.id) for r in results), default=0)
    dests = [format_dest_path(r.dest_path, base_dir) for r in results]
    dest_width = max((len(d) for d in dests), default=0)

    for result, dest in zip(results, dests, strict=True):
        status = classify_result(result)
        badge, style = _STATUS_STYLES[status]
        console.print(
            f"  [{style}]{badge}[/] [{style}]{result.id:<{id_width}}[/] "
            f"[muted]→ {dest:<{dest_width}}[/] [{style}]\\[{status.value}][/]",
            highlight=False,
        )
        message = result_message(result)
        if message:
            console.print(f"      [{style}]{message}[/]", highlight=False)
    console.print()


def print_sync_summary(report: SyncReport, dry_run: bool) -> None:
    """Print the one-line summary that ends a sync run."""
    statuses = [classify_result(r) for r in report.results]
    installed = sum(1 for s in statuses if s in (SyncStatus.SYNCED, SyncStatus.COPIED))
    current = statuses.count(SyncStatus.CURRENT)
    upgradable = statuses.count(SyncStatus.UPGRADABLE)
    warnings = statuses.count(SyncStatus.WARNING)
    orphans = len(report.cleanup.deleted)

    parts: list[str] = []
    if installed:
        verb = "would sync" if dry_run else "synced"
        parts.append(f"[synced]{installed} {verb}[/]")
    if current:
        parts.append(f"[muted]{current} current[/]")
    if upgradable:
        noun = "upgrade" if upgradable == 1 else "upgrades"
        parts.append(f"[upgrade]{upgradable} {noun} available[/]")
    if warnings:
        parts.append(f"[warning]{warnings} with warnings[/]")
    if orphans:
        parts.append(f"[muted]{orphans} orphaned path(s) removed[/]")

    if not parts:
        console.print("[muted]Nothing to sync.[/]")
        return
    console.print(", ".join(parts))
    if upgradable:
        console.print("[muted]Run 'aps sync --upgrade' to update pinned git sources.[/]")


def print_orphans(orphans: list[OrphanedPath]) -> None:
    """List orphaned paths before their cleanup is confirmed."""
    console.print()
    console.print(f"Detected {len(orphans)} orphaned path(s) from destination changes:")
    for orphan in orphans:
        console.print(f"  [info]{orphan.entry_id}[/]")
        console.print(f"      [error]was:[/] {orphan.old_dest}", highlight=False)
        console.print(f"      [success]now:[/] {orphan.new_dest}", highlight=False)
    console.print()


def create_status_table(statuses: list[EntryStatus], base_dir: Path) -> Table:
    """Create a Rich table showing the install state of every entry.

    Args:
        statuses: Entry statuses in manifest order.
        base_dir: Directory destinations are shown relative to.

    Returns:
        Rich Table configured for status display.
    """
    table = Table(
        title="Entries",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Entry", no_wrap=True)
    table.add_column("Kind", style="muted")
    table.add_column("Destination")
    table.add_column("State", justify="center")
    table.add_column("Source", style="muted", overflow="ellipsis")
    table.add_column("Commit", style="info")
    table.add_column("Updated", style="muted")

    state_styles = {
        EntryState.INSTALLED: "success",
        EntryState.MISSING: "error",
        EntryState.MOVED: "warning",
        EntryState.NOT_INSTALLED: "muted",
    }

    for status in statuses:
        locked = status.locked
        style = state_styles[status.state]
        table.add_row(
            f"[entry.id]{status.entry_id}[/]",
            status.kind.value,
            format_dest_path(status.dest_path, base_dir),
            f"[{style}]{status.state.value}[/]",
            str(locked.source) if locked else "-",
            short_commit(locked.commit) if locked else "-",
            locked.last_updated_at.strftime("%Y-%m-%d %H:%M") if locked else "-",
        )
    return table


def print_validation_results(results: list[EntryValidation]) -> None:
    """Print validation outcomes and a closing summary line."""
    for result in results:
        if result.error:
            console.print(f"  [error]✗[/] {result.entry_id}: [error]{result.error}[/]")
        elif result.warnings:
            for warning in result.warnings:
                console.print(f"  [warning]![/] {result.entry_id}: [warning]{warning}[/]")
        else:
            console.print(f"  [success]✓[/] {result.entry_id}")

    failed = sum(1 for r in results if not r.ok)
    if failed == 0:
        print_success(f"All {len(results)} entry(ies) are valid.")
    else:
        console.print(f"\n[error]{failed} of {len(results)} entry(ies) failed validation[/]")
