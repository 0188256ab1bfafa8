"""Manifest file I/O operations.

This module provides functions for discovering, loading and saving
aps.toml manifests with validation using Pydantic models.
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

import tomli_w
from pydantic import ValidationError

from aps.core.paths import MANIFEST_FILENAME, find_manifest
from aps.models.manifest import Entry, FilesystemSource, GitSource, Manifest


class ManifestError(Exception):
    """Base exception for manifest-related errors."""


class ManifestNotFoundError(ManifestError):
    """Raised when manifest file is not found."""


class ManifestParseError(ManifestError):
    """Raised when manifest file cannot be parsed."""


class ManifestValidationError(ManifestError):
    """Raised when manifest content is invalid."""


def load_manifest(path: Path) -> Manifest:
    """Load and validate a manifest from a TOML file.

    Args:
        path: Path to the manifest file.

    Returns:
        Validated Manifest object.

    Raises:
        ManifestNotFoundError: If the manifest file doesn't exist.
        ManifestParseError: If the TOML syntax is invalid.
        ManifestValidationError: If the content doesn't match the schema.
    """
    if not path.exists():
        raise ManifestNotFoundError(f"Manifest not found: {path}")

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ManifestParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ManifestError(f"Failed to read manifest: {e}") from e

    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        raise ManifestValidationError(f"Invalid manifest content: {e}") from e


def discover_manifest(override: Path | None = None) -> tuple[Manifest, Path]:
    """Locate and load the manifest for this invocation.

    Args:
        override: Explicit manifest path (``--manifest``). If None, walks up
            from the current directory.

    Returns:
        Tuple of (manifest, manifest path).

    Raises:
        ManifestNotFoundError: If no manifest could be located.
        ManifestError: If the manifest cannot be loaded.
    """
    path = override or find_manifest()
    if path is None:
        raise ManifestNotFoundError(
            f"No {MANIFEST_FILENAME} found in this directory or any parent"
        )
    return load_manifest(path), path


def save_manifest(manifest: Manifest, path: Path) -> Path:
    """Save a manifest to a TOML file.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace() for atomic rename.

    Args:
        manifest: The Manifest object to save.
        path: Path to save the manifest.

    Returns:
        Path where the manifest was saved.

    Raises:
        ManifestError: If the file cannot be written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"entries": [_entry_to_dict(entry) for entry in manifest.entries]}

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(mode="wb", dir=path.parent, delete=False, suffix=".tmp") as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ManifestError(f"Failed to write manifest: {e}") from e

    return path


def require_manifest(manifest_path: Path | None = None) -> tuple[Manifest, Path]:
    """Load manifest or exit with helpful error message.

    This is a convenience wrapper around discover_manifest() that handles
    common error cases by printing user-friendly messages and exiting.

    Args:
        manifest_path: Optional custom manifest path.

    Returns:
        Tuple of (manifest, manifest path).

    Raises:
        typer.Exit: If manifest cannot be loaded.
    """
    import typer

    from aps.utils.formatting import print_error, print_info

    try:
        return discover_manifest(manifest_path)
    except ManifestNotFoundError as e:
        print_error(str(e))
        print_info("Run 'aps init' to create a manifest, or pass --manifest <path>.")
        raise typer.Exit(code=1) from e
    except ManifestError as e:
        print_error(f"Failed to load manifest: {e}")
        raise typer.Exit(code=1) from e


def default_manifest() -> Manifest:
    """Build the starter manifest written by ``aps init``."""
    return Manifest(
        entries=[
            Entry(
                id="my-agents",
                kind="agents_md",
                source=FilesystemSource(root="../shared-assets", path="AGENTS.md"),
            )
        ]
    )


def _source_to_dict(source: GitSource | FilesystemSource) -> dict[str, Any]:
    """Convert a source descriptor to a dictionary for TOML serialization."""
    if isinstance(source, GitSource):
        result: dict[str, Any] = {"type": "git", "repo": source.repo, "ref": source.ref}
        if not source.shallow:
            result["shallow"] = False
    else:
        result = {"type": "filesystem", "root": source.root}
        if not source.symlink:
            result["symlink"] = False
    if source.path:
        result["path"] = source.path
    return result


def _entry_to_dict(entry: Entry) -> dict[str, Any]:
    """Convert an Entry to a dictionary for TOML serialization."""
    result: dict[str, Any] = {"id": entry.id, "kind": entry.kind.value}
    if entry.source is not None:
        result["source"] = _source_to_dict(entry.source)
    if entry.sources:
        result["sources"] = [_source_to_dict(source) for source in entry.sources]
    if entry.dest:
        result["dest"] = entry.dest
    if entry.include:
        result["include"] = list(entry.include)
    return result
