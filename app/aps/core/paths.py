"""Path management for aps.

This module provides the fixed file and directory names used next to a
manifest (lockfile, backups), manifest discovery, and the XDG-compliant
user configuration directory used for optional overrides.

XDG defaults:
- Config: ~/.config/aps/
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Application identifier for directory naming
APP_NAME = "aps"

# Files and directories that live beside the manifest
MANIFEST_FILENAME = "aps.toml"
LOCKFILE_FILENAME = "aps.lock.toml"
BACKUP_DIRNAME = ".aps-backups"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the user configuration directory path.

    Returns:
        Path to ~/.config/aps/ (or XDG_CONFIG_HOME/aps/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_user_theme_path() -> Path:
    """Get the user theme override path.

    Returns:
        Path to ~/.config/aps/theme.toml.
    """
    return get_config_dir() / "theme.toml"


def get_manifest_dir(manifest_path: Path) -> Path:
    """Get the directory relative paths in a manifest resolve against.

    Args:
        manifest_path: Path to the manifest file.

    Returns:
        The manifest's parent directory (``.`` for a bare filename).
    """
    return manifest_path.parent if manifest_path.parent != Path("") else Path(".")


def get_lockfile_path(manifest_path: Path) -> Path:
    """Get the lockfile path that belongs to a manifest.

    Returns:
        Path to aps.lock.toml beside the manifest.
    """
    return get_manifest_dir(manifest_path) / LOCKFILE_FILENAME


def get_backup_dir(base_dir: Path) -> Path:
    """Get the backup root for a base directory.

    Returns:
        Path to <base_dir>/.aps-backups.
    """
    return base_dir / BACKUP_DIRNAME


def find_manifest(start: Path | None = None) -> Path | None:
    """Walk up from a directory looking for a manifest file.

    The search stops at the first directory containing a ``.git`` entry
    (the repository root) or at the filesystem root.

    Args:
        start: Directory to start from. If None, uses the current directory.

    Returns:
        Path to the manifest, or None if no manifest was found.
    """
    current = (start or Path.cwd()).resolve()

    while True:
        candidate = current / MANIFEST_FILENAME
        logger.debug("Checking for manifest at %s", candidate)
        if candidate.is_file():
            return candidate

        if (current / ".git").exists():
            logger.debug("Reached repository root at %s, stopping search", current)
            return None

        if current.parent == current:
            return None
        current = current.parent
