"""Structural checks on resolved assets before they are installed."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from aps.core.context import RunContext
from aps.core.errors import (
    ApsError,
    EntryRequiresSourceError,
    IOFailureError,
    StructuralValidationError,
)
from aps.models.manifest import AssetKind, Entry
from aps.sources import resolve_source

logger = logging.getLogger(__name__)

# Marker file every skill directory must contain (case-sensitive)
SKILL_MARKER = "SKILL.md"


def _check(problem: str, strict: bool, warnings: list[str]) -> None:
    if strict:
        raise StructuralValidationError(problem)
    warnings.append(problem)


def validate_skills_root(source: Path, strict: bool = False) -> list[str]:
    """Check that every child directory of a skills root holds SKILL.md.

    Args:
        source: Skills root directory.
        strict: Raise on the first violation instead of collecting warnings.

    Returns:
        Warning messages, one per skill missing its marker.

    Raises:
        StructuralValidationError: Under strict mode, for the first violation.
        IOFailureError: If the directory cannot be listed.
    """
    try:
        children = sorted(source.iterdir())
    except OSError as e:
        msg = f"Failed to read skills directory {source}"
        raise IOFailureError(msg) from e

    warnings: list[str] = []
    for skill_path in children:
        if not skill_path.is_dir():
            continue
        if (skill_path / SKILL_MARKER).is_file():
            logger.debug("Skill '%s' has valid %s", skill_path.name, SKILL_MARKER)
            continue
        _check(f"Skill '{skill_path.name}' is missing {SKILL_MARKER}", strict, warnings)
    return warnings


def validate_agent_skill(source: Path, strict: bool = False) -> list[str]:
    """Check that a single skill directory holds SKILL.md."""
    warnings: list[str] = []
    if not (source / SKILL_MARKER).is_file():
        _check(f"Skill '{source.name}' is missing {SKILL_MARKER}", strict, warnings)
    return warnings


def validate_structure(kind: AssetKind, source: Path, strict: bool = False) -> list[str]:
    """Run the kind-specific structural checks for a resolved source.

    Kinds without a layout contract always pass.
    """
    if kind is AssetKind.CURSOR_SKILLS_ROOT:
        return validate_skills_root(source, strict)
    if kind is AssetKind.AGENT_SKILL:
        return validate_agent_skill(source, strict)
    return []


@dataclass(frozen=True, slots=True)
class EntryValidation:
    """Validation outcome for one entry.

    Attributes:
        entry_id: Entry id.
        warnings: Structural warnings.
        error: Resolution or strict-mode failure, if any.
    """

    entry_id: str
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def validate_entries(entries: list[Entry], ctx: RunContext) -> list[EntryValidation]:
    """Resolve every entry's sources and run the structural checks.

    Nothing is installed. Git sources are cloned and released again.
    A failing entry is recorded and validation moves on to the next one.
    """
    results: list[EntryValidation] = []
    for entry in entries:
        try:
            if entry.is_composite:
                for source in entry.sources:
                    with resolve_source(source, ctx):
                        pass
                warnings: list[str] = []
            elif entry.source is None:
                raise EntryRequiresSourceError(entry.id)
            else:
                with resolve_source(entry.source, ctx) as resolved:
                    warnings = validate_structure(entry.kind, resolved.source_path, ctx.strict)
        except ApsError as e:
            ctx.logger.debug("Validation of %s failed: %s", entry.id, e)
            results.append(EntryValidation(entry_id=entry.id, error=str(e)))
            continue
        results.append(EntryValidation(entry_id=entry.id, warnings=warnings))
    return results
