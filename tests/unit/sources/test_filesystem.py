"""Unit tests for filesystem source resolution."""

import os
from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest
from aps.core.context import RunContext
from aps.core.errors import SourceUnavailableError
from aps.models.manifest import FilesystemSource, GitSource
from aps.sources import resolve_filesystem, resolve_source


class TestResolveFilesystem:
    """Tests for resolve_filesystem function."""

    def test_relative_root(self, tmp_path: Path, shared_dir: Path, project_dir: Path) -> None:
        """Relative roots resolve against the base directory."""
        source = FilesystemSource(root="../shared", path="rules")

        resolved = resolve_filesystem(source, project_dir)

        assert resolved.source_path == project_dir / "../shared" / "rules"
        assert resolved.source_path.resolve() == (shared_dir / "rules").resolve()
        assert resolved.source_display == "filesystem:../shared"
        assert resolved.use_symlink is True
        assert resolved.git_info is None

    def test_dot_path_means_root(self, shared_dir: Path, project_dir: Path) -> None:
        """A path of '.' selects the root itself."""
        resolved = resolve_filesystem(FilesystemSource(root=str(shared_dir), path="."), project_dir)

        assert resolved.source_path == shared_dir

    def test_env_var_expansion(self, shared_dir: Path, project_dir: Path) -> None:
        """$VAR in the root is expanded."""
        source = FilesystemSource(root="$APS_TEST_ROOT", path="AGENTS.md", symlink=False)

        with patch.dict(os.environ, {"APS_TEST_ROOT": str(shared_dir)}):
            resolved = resolve_filesystem(source, project_dir)

        assert resolved.source_path == shared_dir / "AGENTS.md"
        assert resolved.use_symlink is False

    def test_missing_path(self, shared_dir: Path, project_dir: Path) -> None:
        """A missing path raises SourceUnavailableError naming it."""
        source = FilesystemSource(root=str(shared_dir), path="nope")

        with pytest.raises(SourceUnavailableError) as exc_info:
            resolve_filesystem(source, project_dir)

        assert exc_info.value.path == shared_dir / "nope"


class TestResolveSource:
    """Tests for resolve_source dispatch."""

    def test_filesystem(self, shared_dir: Path, make_ctx: Callable[..., RunContext]) -> None:
        resolved = resolve_source(FilesystemSource(root=str(shared_dir)), make_ctx())

        assert resolved.source_path == shared_dir

    def test_git(self, make_ctx: Callable[..., RunContext]) -> None:
        source = GitSource(repo="https://example.com/a.git")

        with patch("aps.sources.clone_and_resolve") as mock_clone:
            resolve_source(source, make_ctx())

        mock_clone.assert_called_once_with(source)
