"""Unit tests for path management.

Tests fixed file names, manifest discovery and the XDG config directory.
"""

import os
from pathlib import Path
from unittest.mock import patch

from aps.core.paths import (
    APP_NAME,
    BACKUP_DIRNAME,
    LOCKFILE_FILENAME,
    MANIFEST_FILENAME,
    find_manifest,
    get_backup_dir,
    get_config_dir,
    get_lockfile_path,
    get_manifest_dir,
    get_user_theme_path,
)


class TestGetConfigDir:
    """Tests for get_config_dir function."""

    def test_default_config_dir(self) -> None:
        """get_config_dir returns default path when XDG_CONFIG_HOME not set."""
        with patch.dict(os.environ, {}, clear=True):
            os.environ.pop("XDG_CONFIG_HOME", None)

            result = get_config_dir()

        assert result == Path.home() / ".config" / APP_NAME

    def test_respects_xdg_config_home(self, tmp_path: Path) -> None:
        """get_config_dir respects XDG_CONFIG_HOME environment variable."""
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path)}):
            result = get_config_dir()
            theme = get_user_theme_path()

        assert result == tmp_path / APP_NAME
        assert theme == tmp_path / APP_NAME / "theme.toml"


class TestManifestRelativePaths:
    """Tests for paths derived from the manifest location."""

    def test_lockfile_beside_manifest(self, tmp_path: Path) -> None:
        """The lockfile lives next to the manifest."""
        manifest = tmp_path / MANIFEST_FILENAME

        assert get_manifest_dir(manifest) == tmp_path
        assert get_lockfile_path(manifest) == tmp_path / LOCKFILE_FILENAME

    def test_bare_filename(self) -> None:
        """A bare manifest filename resolves against the current directory."""
        assert get_manifest_dir(Path(MANIFEST_FILENAME)) == Path(".")

    def test_backup_dir(self, tmp_path: Path) -> None:
        """Backups live in a fixed directory under the base."""
        assert get_backup_dir(tmp_path) == tmp_path / BACKUP_DIRNAME


class TestFindManifest:
    """Tests for find_manifest function."""

    def test_finds_in_start_directory(self, tmp_path: Path) -> None:
        """A manifest in the start directory is found."""
        (tmp_path / MANIFEST_FILENAME).write_text("")

        assert find_manifest(tmp_path) == (tmp_path / MANIFEST_FILENAME).resolve()

    def test_walks_up_to_parent(self, tmp_path: Path) -> None:
        """The search walks up through parent directories."""
        (tmp_path / MANIFEST_FILENAME).write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        assert find_manifest(nested) == (tmp_path / MANIFEST_FILENAME).resolve()

    def test_stops_at_repository_root(self, tmp_path: Path) -> None:
        """The search does not leave the enclosing git repository."""
        (tmp_path / MANIFEST_FILENAME).write_text("")
        repo = tmp_path / "repo"
        (repo / ".git").mkdir(parents=True)
        nested = repo / "src"
        nested.mkdir()

        assert find_manifest(nested) is None

