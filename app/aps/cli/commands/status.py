"""Status command implementation.

Shows what the lockfile records for each manifest entry.
"""

from pathlib import Path
from typing import Annotated

import typer

from aps.cli.display import create_status_table
from aps.core.errors import LockfileError
from aps.core.lockfile import load_lockfile
from aps.core.manifest import require_manifest
from aps.core.paths import get_lockfile_path, get_manifest_dir
from aps.core.status import collect_status
from aps.utils.formatting import console, print_error, print_info

app = typer.Typer(
    help="Show the install state of manifest entries.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def status(
    ctx: typer.Context,
    manifest: Annotated[
        Path | None,
        typer.Option(
            "--manifest",
            "-m",
            help="Path to aps.toml (default: search upwards from the current directory).",
        ),
    ] = None,
) -> None:
    """Show each entry's destination, source and locked commit."""
    loaded, manifest_path = require_manifest(manifest)
    base_dir = get_manifest_dir(manifest_path).resolve()

    try:
        lockfile = load_lockfile(get_lockfile_path(manifest_path))
    except LockfileError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not loaded.entries:
        print_info("Manifest has no entries.")
        return

    statuses = collect_status(loaded, lockfile, base_dir)
    console.print(create_status_table(statuses, base_dir))
