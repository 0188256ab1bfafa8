"""Init command implementation.

Creates a starter aps.toml and keeps backups out of version control.
"""

from pathlib import Path
from typing import Annotated

import typer

from aps.core.manifest import ManifestError, default_manifest, save_manifest
from aps.core.paths import BACKUP_DIRNAME, MANIFEST_FILENAME
from aps.utils.formatting import print_error, print_info, print_success, print_warning

app = typer.Typer(
    help="Create a starter manifest in the current directory.",
    invoke_without_command=True,
)

GITIGNORE_ENTRY = f"{BACKUP_DIRNAME}/"


def ensure_gitignored(directory: Path) -> bool:
    """Add the backup directory to .gitignore in directory.

    The file is created if it does not exist.

    Returns:
        True if .gitignore was changed.
    """
    gitignore = directory / ".gitignore"
    existing = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
    lines = {line.strip() for line in existing.splitlines()}
    if GITIGNORE_ENTRY in lines or BACKUP_DIRNAME in lines:
        return False

    prefix = "" if not existing or existing.endswith("\n") else "\n"
    with open(gitignore, "a", encoding="utf-8") as f:
        f.write(f"{prefix}{GITIGNORE_ENTRY}\n")
    return True


@app.callback(invoke_without_command=True)
def init_manifest(
    ctx: typer.Context,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path for the manifest file.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing manifest without prompting.",
        ),
    ] = False,
) -> None:
    """Initialize a new aps.toml with an example entry.

    Also adds .aps-backups/ to the .gitignore next to the manifest.

    Examples:
        aps init                       # Create ./aps.toml
        aps init --output sub/aps.toml # Create manifest at custom path
        aps init --force               # Overwrite existing manifest
    """
    manifest_path = output or Path.cwd() / MANIFEST_FILENAME

    if manifest_path.exists() and not force:
        print_warning(f"Manifest already exists: {manifest_path}")
        if not typer.confirm("Overwrite existing manifest?", default=False):
            print_info("Aborted.")
            raise typer.Exit(code=0)

    try:
        saved_path = save_manifest(default_manifest(), manifest_path)
    except ManifestError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Manifest created: {saved_path}")

    try:
        if ensure_gitignored(saved_path.parent):
            print_info(f"Added {GITIGNORE_ENTRY} to .gitignore")
    except OSError as e:
        print_warning(f"Could not update .gitignore: {e}")

    print_info("Edit the manifest, then run 'aps sync'.")
