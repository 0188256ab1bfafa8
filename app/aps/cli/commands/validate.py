"""Validate command implementation.

Checks that every entry's sources resolve and have the expected layout,
without installing anything.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer

from aps.cli.display import print_validation_results
from aps.core.context import RunContext
from aps.core.manifest import require_manifest
from aps.core.paths import get_manifest_dir
from aps.core.validation import validate_entries
from aps.utils.formatting import print_info

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Validate the manifest and its sources.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def validate(
    ctx: typer.Context,
    manifest: Annotated[
        Path | None,
        typer.Option(
            "--manifest",
            "-m",
            help="Path to aps.toml (default: search upwards from the current directory).",
        ),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option(
            "--strict",
            help="Treat structural warnings as errors.",
        ),
    ] = False,
) -> None:
    """Resolve every source and check its structure.

    Git sources are cloned to a temporary directory and removed again.
    Exits with status 1 if any entry fails.
    """
    loaded, manifest_path = require_manifest(manifest)
    base_dir = get_manifest_dir(manifest_path).resolve()
    print_info(f"Validating {len(loaded.entries)} entry(ies) from {manifest_path}")

    run_ctx = RunContext(base_dir=base_dir, strict=strict, logger=logger)
    results = validate_entries(loaded.entries, run_ctx)
    print_validation_results(results)

    if any(not result.ok for result in results):
        raise typer.Exit(code=1)
