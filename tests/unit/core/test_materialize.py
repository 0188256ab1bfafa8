"""Unit tests for asset materialization."""

import os
from pathlib import Path

import pytest
from aps.core.errors import IOFailureError
from aps.core.materialize import (
    copy_file,
    create_symlink,
    filter_by_prefix,
    install_asset,
    list_relative_files,
    merge_directory,
    planned_paths,
)
from aps.models.manifest import AssetKind


class TestCreateSymlink:
    """Tests for create_symlink function."""

    def test_creates_absolute_link(self, shared_dir: Path, project_dir: Path) -> None:
        """The link points at the absolute source path."""
        dest = project_dir / "AGENTS.md"

        create_symlink(shared_dir / "AGENTS.md", dest)

        assert dest.is_symlink()
        assert Path(os.readlink(dest)) == (shared_dir / "AGENTS.md").absolute()

    def test_replaces_existing_file(self, shared_dir: Path, project_dir: Path) -> None:
        """An existing regular file is replaced by the link."""
        dest = project_dir / "AGENTS.md"
        dest.write_text("local")

        create_symlink(shared_dir / "AGENTS.md", dest)

        assert dest.read_text() == "# Shared agents\n"

    def test_parent_is_file(self, shared_dir: Path, project_dir: Path) -> None:
        """A file blocking the parent directory raises IOFailureError."""
        (project_dir / "blocker").write_text("")

        with pytest.raises(IOFailureError):
            create_symlink(shared_dir / "AGENTS.md", project_dir / "blocker" / "AGENTS.md")


class TestCopyFile:
    """Tests for copy_file function."""

    def test_replaces_symlink(self, shared_dir: Path, project_dir: Path) -> None:
        """Copying over a symlink writes a regular file and leaves the target alone."""
        dest = project_dir / "AGENTS.md"
        other = project_dir / "other.md"
        other.write_text("other")
        dest.symlink_to(other)

        copy_file(shared_dir / "AGENTS.md", dest)

        assert not dest.is_symlink()
        assert dest.read_text() == "# Shared agents\n"
        assert other.read_text() == "other"


class TestListing:
    """Tests for list_relative_files and filter_by_prefix."""

    def test_list_relative_files_sorted(self, shared_dir: Path) -> None:
        """Files are listed relative to the root in sorted order."""
        result = list_relative_files(shared_dir / "rules")

        assert result == [Path("nested/deep.mdc"), Path("python.mdc"), Path("testing.mdc")]

    def test_filter_by_prefix(self, shared_dir: Path) -> None:
        """Only top-level children matching a prefix are returned."""
        result = filter_by_prefix(shared_dir / "rules", ["py", "nest"])

        assert [p.name for p in result] == ["nested", "python.mdc"]

    def test_filter_missing_directory(self, tmp_path: Path) -> None:
        """Listing a missing directory raises IOFailureError."""
        with pytest.raises(IOFailureError):
            filter_by_prefix(tmp_path / "missing", ["x"])


class TestMergeDirectory:
    """Tests for merge_directory function."""

    def test_keeps_unrelated_content(self, tmp_path: Path, project_dir: Path) -> None:
        """Files the source does not name survive the merge."""
        source = tmp_path / "hooks-src"
        (source / "hooks").mkdir(parents=True)
        (source / "hooks" / "check.sh").write_text("#!/bin/sh\n")
        (source / "hooks.json").write_text("{}")
        dest = project_dir / ".cursor"
        dest.mkdir()
        (dest / "mcp.json").write_text("{}")

        written = merge_directory(source, dest)

        assert sorted(written) == [dest / "hooks" / "check.sh", dest / "hooks.json"]
        assert (dest / "mcp.json").exists()
        assert os.access(dest / "hooks" / "check.sh", os.X_OK)
        assert not os.access(dest / "hooks.json", os.X_OK)


class TestPlannedPaths:
    """Tests for planned_paths function."""

    def test_single_file_kind(self, shared_dir: Path, project_dir: Path) -> None:
        """Single-file kinds report the destination itself."""
        source = shared_dir / "AGENTS.md"
        dest = project_dir / "AGENTS.md"

        pairs = planned_paths(AssetKind.AGENTS_MD, source, dest, use_symlink=True, include=[])

        assert pairs == [(dest, source)]

    def test_copy_directory_reports_destination(self, shared_dir: Path, project_dir: Path) -> None:
        """A copied directory replaces the whole destination."""
        source = shared_dir / "rules"
        dest = project_dir / ".cursor" / "rules"

        pairs = planned_paths(AssetKind.CURSOR_RULES, source, dest, use_symlink=False, include=[])

        assert pairs == [(dest, source)]

    def test_symlinked_directory_reports_files(self, shared_dir: Path, project_dir: Path) -> None:
        """Per-file symlinks report only the paths they write."""
        source = shared_dir / "rules"
        dest = project_dir / ".cursor" / "rules"

        pairs = planned_paths(AssetKind.CURSOR_RULES, source, dest, use_symlink=True, include=[])

        assert [p for p, _ in pairs] == [
            dest / "nested" / "deep.mdc",
            dest / "python.mdc",
            dest / "testing.mdc",
        ]

    def test_file_in_place_of_subdirectory_reported(
        self, shared_dir: Path, project_dir: Path
    ) -> None:
        """A file where the source has a subdirectory is replaced, so it is reported."""
        source = shared_dir / "rules"
        dest = project_dir / ".cursor" / "rules"
        dest.mkdir(parents=True)
        (dest / "nested").write_text("my notes\n")

        pairs = planned_paths(AssetKind.CURSOR_RULES, source, dest, use_symlink=True, include=[])

        assert (dest / "nested", source / "nested") in pairs
        assert [p for p, _ in pairs].count(dest / "nested") == 1

    def test_include_reports_matching_items(self, shared_dir: Path, project_dir: Path) -> None:
        """With include prefixes only matching top-level items are reported."""
        source = shared_dir / "rules"
        dest = project_dir / ".cursor" / "rules"

        pairs = planned_paths(
            AssetKind.CURSOR_RULES, source, dest, use_symlink=True, include=["test"]
        )

        assert pairs == [(dest / "testing.mdc", source / "testing.mdc")]


class TestInstallAsset:
    """Tests for install_asset function."""

    def test_symlink_single_file(self, shared_dir: Path, project_dir: Path) -> None:
        """A symlinked single file records its source as a symlinked item."""
        source = shared_dir / "AGENTS.md"
        dest = project_dir / "AGENTS.md"

        items = install_asset(AssetKind.AGENTS_MD, source, dest, use_symlink=True, include=[])

        assert dest.is_symlink()
        assert items == [str(source.absolute())]

    def test_copy_single_file(self, shared_dir: Path, project_dir: Path) -> None:
        """A copied single file records no symlinked items."""
        dest = project_dir / "AGENTS.md"

        items = install_asset(
            AssetKind.AGENTS_MD, shared_dir / "AGENTS.md", dest, use_symlink=False, include=[]
        )

        assert items == []
        assert not dest.is_symlink()
        assert dest.read_text() == "# Shared agents\n"

    def test_symlink_directory_creates_real_dirs(
        self, shared_dir: Path, project_dir: Path
    ) -> None:
        """Directories are real and every file is an individual link."""
        source = shared_dir / "rules"
        dest = project_dir / ".cursor" / "rules"

        items = install_asset(
            AssetKind.CURSOR_RULES, source, dest, use_symlink=True, include=[]
        )

        assert dest.is_dir() and not dest.is_symlink()
        assert (dest / "nested").is_dir() and not (dest / "nested").is_symlink()
        assert (dest / "nested" / "deep.mdc").is_symlink()
        assert len(items) == 3

    def test_symlink_directory_keeps_other_files(
        self, shared_dir: Path, project_dir: Path
    ) -> None:
        """Per-file linking leaves unrelated destination files in place."""
        dest = project_dir / ".cursor" / "rules"
        dest.mkdir(parents=True)
        (dest / "local.mdc").write_text("mine")

        install_asset(
            AssetKind.CURSOR_RULES, shared_dir / "rules", dest, use_symlink=True, include=[]
        )

        assert (dest / "local.mdc").read_text() == "mine"

    def test_copy_directory_replaces_destination(
        self, shared_dir: Path, project_dir: Path
    ) -> None:
        """A copied directory replaces stale destination content."""
        dest = project_dir / ".cursor" / "rules"
        dest.mkdir(parents=True)
        (dest / "stale.mdc").write_text("old")

        install_asset(
            AssetKind.CURSOR_RULES, shared_dir / "rules", dest, use_symlink=False, include=[]
        )

        assert not (dest / "stale.mdc").exists()
        assert (dest / "nested" / "deep.mdc").read_text() == "# Deep rule\n"

    def test_include_copy(self, shared_dir: Path, project_dir: Path) -> None:
        """Only included items are copied."""
        dest = project_dir / ".cursor" / "rules"

        install_asset(
            AssetKind.CURSOR_RULES, shared_dir / "rules", dest, use_symlink=False, include=["py"]
        )

        assert [p.name for p in dest.iterdir()] == ["python.mdc"]

    def test_include_symlink(self, shared_dir: Path, project_dir: Path) -> None:
        """Included items are symlinked by name."""
        dest = project_dir / ".cursor" / "rules"

        items = install_asset(
            AssetKind.CURSOR_RULES, shared_dir / "rules", dest, use_symlink=True, include=["nest"]
        )

        assert (dest / "nested").is_symlink()
        assert items == [str((shared_dir / "rules" / "nested").absolute())]
