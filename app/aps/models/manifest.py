"""Manifest models for declarative asset synchronization.

This module defines the Pydantic models representing the aps.toml
structure: an ordered list of entries, each describing one asset kind,
where it comes from, and where it is installed.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Sentinel ref that tries the default branch names in order
AUTO_REF = "auto"


def expand_path(value: str) -> str:
    """Expand ``~``, ``$VAR`` and ``${VAR}`` in a path string.

    Undefined variables are left untouched.
    """
    return os.path.expandvars(os.path.expanduser(value))


class AssetKind(str, Enum):
    """Kind of asset an entry installs.

    Attributes:
        AGENTS_MD: A single AGENTS.md file.
        CURSOR_RULES: A directory of rule files.
        CURSOR_SKILLS_ROOT: A directory whose children are skills.
        AGENT_SKILL: A single skill directory.
        CURSOR_HOOKS: Hook scripts and config merged into ``.cursor``.
        CLAUDE_HOOKS: Hook scripts and settings merged into ``.claude``.
        COMPOSITE_AGENTS_MD: One AGENTS.md generated from several sources.
    """

    AGENTS_MD = "agents_md"
    CURSOR_RULES = "cursor_rules"
    CURSOR_SKILLS_ROOT = "cursor_skills_root"
    AGENT_SKILL = "agent_skill"
    CURSOR_HOOKS = "cursor_hooks"
    CLAUDE_HOOKS = "claude_hooks"
    COMPOSITE_AGENTS_MD = "composite_agents_md"

    @property
    def default_dest(self) -> Path:
        """Destination used when an entry has no override."""
        return _DEFAULT_DESTS[self]

    @property
    def is_single_file(self) -> bool:
        return self in (AssetKind.AGENTS_MD, AssetKind.COMPOSITE_AGENTS_MD)

    @property
    def is_hooks(self) -> bool:
        """Hook kinds patch named paths inside a shared tool directory."""
        return self in (AssetKind.CURSOR_HOOKS, AssetKind.CLAUDE_HOOKS)

    @property
    def is_composite(self) -> bool:
        return self is AssetKind.COMPOSITE_AGENTS_MD


_DEFAULT_DESTS: dict[AssetKind, Path] = {
    AssetKind.AGENTS_MD: Path("AGENTS.md"),
    AssetKind.CURSOR_RULES: Path(".cursor/rules"),
    AssetKind.CURSOR_SKILLS_ROOT: Path(".cursor/skills"),
    AssetKind.AGENT_SKILL: Path(".claude/skills"),
    AssetKind.CURSOR_HOOKS: Path(".cursor"),
    AssetKind.CLAUDE_HOOKS: Path(".claude"),
    AssetKind.COMPOSITE_AGENTS_MD: Path("AGENTS.md"),
}


class GitSource(BaseModel):
    """Git repository source.

    Attributes:
        type: Discriminator, always "git".
        repo: Repository URL (SSH or HTTPS). ``url`` is accepted as an alias.
        ref: Branch or tag to clone, or "auto" to try main then master.
        shallow: Whether to clone with depth 1.
        path: Optional path within the repository.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    type: Literal["git"] = "git"
    repo: Annotated[str, Field(alias="url", description="Repository URL", min_length=1)]
    ref: Annotated[str, Field(description="Git ref or 'auto'")] = AUTO_REF
    shallow: Annotated[bool, Field(description="Use a depth-1 clone")] = True
    path: Annotated[str | None, Field(description="Path within the repository")] = None

    @property
    def display_name(self) -> str:
        return self.repo

    @property
    def display_path(self) -> str:
        """Human-readable source including the in-repo path."""
        return f"{self.repo}:{self.path}" if self.path else self.repo


class FilesystemSource(BaseModel):
    """Local filesystem source.

    Attributes:
        type: Discriminator, always "filesystem".
        root: Root directory; relative roots resolve against the manifest directory.
        symlink: Whether to symlink instead of copying.
        path: Optional path within the root.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["filesystem"] = "filesystem"
    root: Annotated[str, Field(description="Root directory", min_length=1)]
    symlink: Annotated[bool, Field(description="Symlink instead of copy")] = True
    path: Annotated[str | None, Field(description="Path within the root")] = None

    @property
    def display_name(self) -> str:
        return f"filesystem:{self.root}"

    @property
    def display_path(self) -> str:
        """Human-readable source that keeps variables like $HOME unexpanded."""
        return f"{self.root}/{self.path}" if self.path else self.root


Source = Annotated[GitSource | FilesystemSource, Field(discriminator="type")]


class Entry(BaseModel):
    """A single asset to synchronize.

    Attributes:
        id: Unique identifier for this entry.
        kind: Kind of asset.
        source: Source for single-source entries.
        sources: Sources for composite entries.
        dest: Optional destination override (supports ~ and env vars).
        include: Optional name prefixes restricting top-level items.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: Annotated[str, Field(description="Unique entry identifier", min_length=1)]
    kind: Annotated[AssetKind, Field(description="Asset kind")]
    source: Annotated[Source | None, Field(description="Single source")] = None
    sources: Annotated[
        list[Source],
        Field(default_factory=list, description="Sources to compose"),
    ]
    dest: Annotated[str | None, Field(description="Destination override")] = None
    include: Annotated[
        list[str],
        Field(default_factory=list, description="Top-level name prefixes to include"),
    ]

    @property
    def is_composite(self) -> bool:
        """Whether this entry merges several sources into one file."""
        return self.kind.is_composite and bool(self.sources)

    def destination(self) -> Path:
        """Destination path, relative to the manifest directory unless absolute.

        Without an override, an ``agent_skill`` lands in a folder named
        after the entry id inside the kind's skills root.
        """
        if self.dest:
            return Path(expand_path(self.dest))
        if self.kind is AssetKind.AGENT_SKILL:
            return self.kind.default_dest / self.id
        return self.kind.default_dest


class Manifest(BaseModel):
    """Complete manifest: the ordered list of entries to sync."""

    model_config = ConfigDict(extra="forbid")

    entries: Annotated[
        list[Entry],
        Field(default_factory=list, description="Entries in install order"),
    ]

    @model_validator(mode="after")
    def validate_entries(self) -> "Manifest":
        """Validate unique ids and the source field each kind requires."""
        seen: set[str] = set()
        for entry in self.entries:
            if entry.id in seen:
                msg = f"Duplicate entry ID: {entry.id}"
                raise ValueError(msg)
            seen.add(entry.id)

            if entry.kind.is_composite:
                if not entry.sources:
                    msg = f"Composite entry '{entry.id}' requires 'sources' array"
                    raise ValueError(msg)
            elif entry.source is None:
                msg = f"Entry '{entry.id}' requires a 'source' field"
                raise ValueError(msg)
        return self

    def get_entry(self, entry_id: str) -> Entry | None:
        """Look up an entry by id."""
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    @property
    def entry_ids(self) -> list[str]:
        return [entry.id for entry in self.entries]
