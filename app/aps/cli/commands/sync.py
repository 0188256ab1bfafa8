"""Sync command implementation.

Installs every manifest entry from its source, records the result in
the lockfile and cleans up destinations left behind by moved entries.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer

from aps.cli.display import print_orphans, print_sync_results, print_sync_summary
from aps.core.context import RunContext
from aps.core.errors import ApsError, EntrySyncError
from aps.core.manifest import require_manifest
from aps.core.paths import get_manifest_dir
from aps.core.sync import run_sync
from aps.utils.formatting import print_error, print_warning

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Install or update all entries from the manifest.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def sync(
    ctx: typer.Context,
    manifest: Annotated[
        Path | None,
        typer.Option(
            "--manifest",
            "-m",
            help="Path to aps.toml (default: search upwards from the current directory).",
        ),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Overwrite conflicting content and delete orphans without prompting.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would change without writing anything.",
        ),
    ] = False,
    strict: Annotated[
        bool,
        typer.Option(
            "--strict",
            help="Fail on structural warnings such as a skill missing SKILL.md.",
        ),
    ] = False,
    upgrade: Annotated[
        bool,
        typer.Option(
            "--upgrade",
            "-u",
            help="Fetch the latest commit for git sources instead of the locked one.",
        ),
    ] = False,
    only: Annotated[
        list[str] | None,
        typer.Option(
            "--only",
            help="Only sync the entry with this id (repeatable).",
        ),
    ] = None,
) -> None:
    """Sync all manifest entries into this repository.

    Entries are installed in declared order. Entries whose source is
    unchanged are skipped. Conflicting files are backed up to
    .aps-backups/ before being overwritten.

    Examples:
        aps sync                     # Sync everything
        aps sync --dry-run           # Preview changes
        aps sync --only my-rules     # Sync a single entry
        aps sync --upgrade --yes     # Move git sources to their latest commit
    """
    loaded, manifest_path = require_manifest(manifest)
    base_dir = get_manifest_dir(manifest_path).resolve()

    run_ctx = RunContext(
        base_dir=base_dir,
        dry_run=dry_run,
        allow_overwrite=yes,
        strict=strict,
        upgrade=upgrade,
        logger=logger,
    )

    try:
        report = run_sync(
            loaded,
            manifest_path,
            run_ctx,
            only=only or None,
            on_orphans=print_orphans,
        )
    except EntrySyncError as e:
        if e.completed:
            print_sync_results(e.completed, manifest_path, base_dir, dry_run)
        print_error(f"Failed to sync {e}")
        raise typer.Exit(code=1) from e
    except ApsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_sync_results(report.results, manifest_path, base_dir, dry_run)
    for warning in report.cleanup.warnings:
        print_warning(warning)
    print_sync_summary(report, dry_run)
