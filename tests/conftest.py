"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import logging
from collections.abc import Callable
from pathlib import Path

import pytest
from aps.core.context import RunContext


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Repository root that destinations are installed into."""
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def shared_dir(tmp_path: Path) -> Path:
    """Local asset tree used as a filesystem source root."""
    root = tmp_path / "shared"
    (root / "rules").mkdir(parents=True)
    (root / "rules" / "python.mdc").write_text("# Python rules\n")
    (root / "rules" / "testing.mdc").write_text("# Testing rules\n")
    (root / "rules" / "nested").mkdir()
    (root / "rules" / "nested" / "deep.mdc").write_text("# Deep rule\n")
    (root / "AGENTS.md").write_text("# Shared agents\n")
    return root


@pytest.fixture
def make_ctx(project_dir: Path) -> Callable[..., RunContext]:
    """Factory for non-interactive run contexts rooted at project_dir."""

    def _make(**overrides: object) -> RunContext:
        options: dict[str, object] = {
            "base_dir": project_dir,
            "interactive": False,
            "logger": logging.getLogger("aps.test"),
        }
        options.update(overrides)
        return RunContext(**options)  # type: ignore[arg-type]

    return _make
