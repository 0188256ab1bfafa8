"""Unit tests for sync command.

Runs the real sync engine against temporary manifests with filesystem
sources.
"""

from pathlib import Path

import pytest
from aps.cli.main import app
from aps.core.lockfile import load_lockfile
from aps.core.manifest import save_manifest
from aps.core.paths import LOCKFILE_FILENAME, MANIFEST_FILENAME
from aps.models.manifest import AssetKind, Entry, FilesystemSource, Manifest
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def manifest_path(project_dir: Path, shared_dir: Path) -> Path:
    """Manifest with a symlinked AGENTS.md and copied rules."""
    manifest = Manifest(
        entries=[
            Entry(
                id="agents",
                kind=AssetKind.AGENTS_MD,
                source=FilesystemSource(root=str(shared_dir), path="AGENTS.md"),
            ),
            Entry(
                id="rules",
                kind=AssetKind.CURSOR_RULES,
                source=FilesystemSource(root=str(shared_dir), path="rules", symlink=False),
            ),
        ]
    )
    return save_manifest(manifest, project_dir / MANIFEST_FILENAME)


class TestSyncCommand:
    """Tests for aps sync command."""

    def test_sync_installs(self, manifest_path: Path, project_dir: Path) -> None:
        """Sync installs every entry and writes the lockfile."""
        result = runner.invoke(app, ["sync", "--manifest", str(manifest_path)])

        assert result.exit_code == 0, result.output
        assert "2 synced" in result.output
        assert (project_dir / "AGENTS.md").is_symlink()
        assert (project_dir / ".cursor" / "rules" / "python.mdc").is_file()
        assert sorted(load_lockfile(project_dir / LOCKFILE_FILENAME).entries) == [
            "agents",
            "rules",
        ]

    def test_second_sync_current(self, manifest_path: Path) -> None:
        """A repeated sync reports everything current."""
        runner.invoke(app, ["sync", "--manifest", str(manifest_path)])

        result = runner.invoke(app, ["sync", "--manifest", str(manifest_path)])

        assert result.exit_code == 0
        assert "2 current" in result.output

    def test_dry_run(self, manifest_path: Path, project_dir: Path) -> None:
        """--dry-run writes nothing."""
        result = runner.invoke(app, ["sync", "--manifest", str(manifest_path), "--dry-run"])

        assert result.exit_code == 0
        assert "dry-run" in result.output
        assert "would sync" in result.output
        assert not (project_dir / "AGENTS.md").exists()
        assert not (project_dir / LOCKFILE_FILENAME).exists()

    def test_only(self, manifest_path: Path, project_dir: Path) -> None:
        """--only restricts the run to one entry."""
        result = runner.invoke(
            app, ["sync", "--manifest", str(manifest_path), "--only", "rules"]
        )

        assert result.exit_code == 0
        assert not (project_dir / "AGENTS.md").exists()
        assert (project_dir / ".cursor" / "rules").is_dir()

    def test_only_unknown(self, manifest_path: Path) -> None:
        result = runner.invoke(app, ["sync", "--manifest", str(manifest_path), "--only", "x"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_conflict_without_yes(self, manifest_path: Path, project_dir: Path) -> None:
        """A conflicting file fails the run when stdin is not a terminal."""
        (project_dir / "AGENTS.md").write_text("mine\n")

        result = runner.invoke(app, ["sync", "--manifest", str(manifest_path)])

        assert result.exit_code == 1
        assert "Failed to sync" in result.output
        assert (project_dir / "AGENTS.md").read_text() == "mine\n"

    def test_failure_still_lists_finished_entries(
        self, manifest_path: Path, project_dir: Path
    ) -> None:
        """Entries synced before a failure are shown along with the error."""
        blocker = project_dir / ".cursor" / "rules"
        blocker.parent.mkdir()
        blocker.write_text("mine\n")

        result = runner.invoke(app, ["sync", "--manifest", str(manifest_path)])

        assert result.exit_code == 1
        assert "./AGENTS.md" in result.output
        assert "Failed to sync rules" in result.output
        assert list(load_lockfile(project_dir / LOCKFILE_FILENAME).entries) == ["agents"]

    def test_conflict_with_yes(self, manifest_path: Path, project_dir: Path) -> None:
        """--yes backs up and overwrites."""
        (project_dir / "AGENTS.md").write_text("mine\n")

        result = runner.invoke(app, ["sync", "--manifest", str(manifest_path), "--yes"])

        assert result.exit_code == 0
        assert (project_dir / "AGENTS.md").is_symlink()
        assert (project_dir / ".aps-backups").is_dir()

    def test_missing_manifest(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["sync", "--manifest", str(tmp_path / "none.toml")])

        assert result.exit_code == 1
        assert "Manifest not found" in result.output
