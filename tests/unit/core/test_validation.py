"""Unit tests for structural validation."""

from collections.abc import Callable
from pathlib import Path

import pytest
from aps.core.context import RunContext
from aps.core.errors import StructuralValidationError
from aps.core.validation import (
    validate_agent_skill,
    validate_entries,
    validate_skills_root,
    validate_structure,
)
from aps.models.manifest import AssetKind, Entry, FilesystemSource

CtxFactory = Callable[..., RunContext]


@pytest.fixture
def skills_root(tmp_path: Path) -> Path:
    """Skills root with one valid and one invalid skill."""
    root = tmp_path / "skills"
    (root / "good").mkdir(parents=True)
    (root / "good" / "SKILL.md").write_text("# Good\n")
    (root / "bad").mkdir()
    (root / "bad" / "skill.md").write_text("wrong case\n")
    (root / "README.md").write_text("not a skill\n")
    return root


class TestSkillsRoot:
    """Tests for validate_skills_root function."""

    def test_reports_missing_marker(self, skills_root: Path) -> None:
        """Only skills without SKILL.md are reported; files are ignored."""
        assert validate_skills_root(skills_root) == ["Skill 'bad' is missing SKILL.md"]

    def test_strict_raises(self, skills_root: Path) -> None:
        """Strict mode raises on the first violation."""
        with pytest.raises(StructuralValidationError, match="bad"):
            validate_skills_root(skills_root, strict=True)


class TestAgentSkill:
    """Tests for validate_agent_skill function."""

    def test_valid(self, skills_root: Path) -> None:
        assert validate_agent_skill(skills_root / "good") == []

    def test_case_sensitive_marker(self, skills_root: Path) -> None:
        """skill.md does not satisfy the SKILL.md requirement."""
        assert validate_agent_skill(skills_root / "bad") == ["Skill 'bad' is missing SKILL.md"]


class TestValidateStructure:
    """Tests for validate_structure dispatch."""

    def test_unconstrained_kind_passes(self, tmp_path: Path) -> None:
        """Kinds without a layout contract never warn."""
        assert validate_structure(AssetKind.CURSOR_RULES, tmp_path, strict=True) == []


class TestValidateEntries:
    """Tests for validate_entries function."""

    def test_collects_per_entry_outcomes(
        self, skills_root: Path, shared_dir: Path, make_ctx: CtxFactory
    ) -> None:
        """Failures are recorded per entry without stopping validation."""
        entries = [
            Entry(
                id="skills",
                kind=AssetKind.CURSOR_SKILLS_ROOT,
                source=FilesystemSource(root=str(skills_root)),
            ),
            Entry(
                id="missing",
                kind=AssetKind.AGENTS_MD,
                source=FilesystemSource(root=str(shared_dir), path="NOPE.md"),
            ),
            Entry(
                id="agents",
                kind=AssetKind.AGENTS_MD,
                source=FilesystemSource(root=str(shared_dir), path="AGENTS.md"),
            ),
        ]

        results = validate_entries(entries, make_ctx())

        assert [r.entry_id for r in results] == ["skills", "missing", "agents"]
        assert results[0].ok and results[0].warnings == ["Skill 'bad' is missing SKILL.md"]
        assert not results[1].ok
        assert "Source path not found" in (results[1].error or "")
        assert results[2].ok and results[2].warnings == []

    def test_strict_turns_warnings_into_errors(
        self, skills_root: Path, make_ctx: CtxFactory
    ) -> None:
        """Under strict mode a layout violation fails the entry."""
        entry = Entry(
            id="skills",
            kind=AssetKind.CURSOR_SKILLS_ROOT,
            source=FilesystemSource(root=str(skills_root)),
        )

        [result] = validate_entries([entry], make_ctx(strict=True))

        assert not result.ok

    def test_composite_sources_resolved(self, shared_dir: Path, make_ctx: CtxFactory) -> None:
        """Composite entries fail when any source is missing."""
        entry = Entry(
            id="combined",
            kind=AssetKind.COMPOSITE_AGENTS_MD,
            sources=[
                FilesystemSource(root=str(shared_dir), path="AGENTS.md"),
                FilesystemSource(root=str(shared_dir), path="missing.md"),
            ],
        )

        [result] = validate_entries([entry], make_ctx())

        assert not result.ok
