"""Lockfile models recording what was last installed per entry.

The lockfile is the basis for idempotency (checksum comparison),
symlink re-validation, git fast paths (locked commits) and orphan
detection (previous destinations).
"""

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

from aps import __version__

LOCKFILE_VERSION = 1


class CompositeSource(BaseModel):
    """Locked source of a composite entry: every merged input, in order."""

    model_config = ConfigDict(extra="forbid")

    composite: Annotated[list[str], Field(description="Merged source display paths")]

    def __str__(self) -> str:
        return f"composite: [{', '.join(self.composite)}]"


class LockedEntry(BaseModel):
    """Installation metadata for one entry.

    Attributes:
        source: Source display string, or the composite source list.
        dest: Destination path the entry was installed to.
        resolved_ref: Git ref that was cloned (git sources only).
        commit: Git commit that was installed (git sources only).
        last_updated_at: When the entry was last installed.
        checksum: Content checksum of the installed source.
        is_symlink: Whether the destination was symlinked.
        target_path: Source path the symlink(s) point to.
        symlinked_items: Individually symlinked source paths.
    """

    model_config = ConfigDict(extra="ignore")

    source: Annotated[str | CompositeSource, Field(description="Source description")]
    dest: Annotated[str, Field(description="Destination path")]
    resolved_ref: Annotated[str | None, Field(description="Resolved git ref")] = None
    commit: Annotated[str | None, Field(description="Git commit SHA")] = None
    last_updated_at: Annotated[
        datetime,
        Field(default_factory=lambda: datetime.now(UTC), description="Last install time"),
    ]
    checksum: Annotated[str, Field(description="Algorithm-prefixed content checksum")]
    is_symlink: Annotated[bool, Field(description="Destination is a symlink")] = False
    target_path: Annotated[str | None, Field(description="Symlink target")] = None
    symlinked_items: Annotated[
        list[str],
        Field(default_factory=list, description="Individually symlinked items"),
    ]

    @classmethod
    def for_filesystem(
        cls,
        source: str,
        dest: str,
        checksum: str,
        *,
        is_symlink: bool,
        target_path: str | None = None,
        symlinked_items: list[str] | None = None,
    ) -> "LockedEntry":
        return cls(
            source=source,
            dest=dest,
            checksum=checksum,
            is_symlink=is_symlink,
            target_path=target_path,
            symlinked_items=symlinked_items or [],
        )

    @classmethod
    def for_git(
        cls, source: str, dest: str, resolved_ref: str, commit: str, checksum: str
    ) -> "LockedEntry":
        return cls(
            source=source,
            dest=dest,
            resolved_ref=resolved_ref,
            commit=commit,
            checksum=checksum,
        )

    @classmethod
    def for_composite(cls, sources: list[str], dest: str, checksum: str) -> "LockedEntry":
        return cls(source=CompositeSource(composite=sources), dest=dest, checksum=checksum)

    @property
    def is_composite(self) -> bool:
        return isinstance(self.source, CompositeSource)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for TOML storage, omitting empty optional fields.

        Returns:
            Dictionary with ``is_symlink`` omitted when false and
            ``symlinked_items`` omitted when empty.
        """
        result: dict[str, Any] = {
            "source": self.source.model_dump()
            if isinstance(self.source, CompositeSource)
            else self.source,
            "dest": self.dest,
        }
        if self.resolved_ref is not None:
            result["resolved_ref"] = self.resolved_ref
        if self.commit is not None:
            result["commit"] = self.commit
        result["last_updated_at"] = self.last_updated_at
        result["checksum"] = self.checksum
        if self.is_symlink:
            result["is_symlink"] = True
        if self.target_path is not None:
            result["target_path"] = self.target_path
        if self.symlinked_items:
            result["symlinked_items"] = list(self.symlinked_items)
        return result


class Lockfile(BaseModel):
    """The persisted installation ledger.

    Attributes:
        version: Lockfile format version.
        aps_version: Version of aps that last wrote the file.
        entries: Locked entries by entry id.
    """

    model_config = ConfigDict(extra="ignore")

    version: Annotated[int, Field(description="Lockfile format version")] = LOCKFILE_VERSION
    aps_version: Annotated[str, Field(description="Writer version")] = __version__
    entries: Annotated[
        dict[str, LockedEntry],
        Field(default_factory=dict, description="Locked entries by id"),
    ]

    def get(self, entry_id: str) -> LockedEntry | None:
        return self.entries.get(entry_id)

    def upsert(self, entry_id: str, entry: LockedEntry) -> None:
        """Insert or replace the locked entry for an id."""
        self.entries[entry_id] = entry

    def checksum_matches(self, entry_id: str, checksum: str) -> bool:
        """Check whether the locked checksum for an id equals checksum."""
        locked = self.entries.get(entry_id)
        return locked is not None and locked.checksum == checksum

    def retain_entries(self, ids_to_keep: list[str]) -> list[str]:
        """Drop entries whose id is not in ids_to_keep.

        Args:
            ids_to_keep: Ids that are still declared.

        Returns:
            The ids that were removed.
        """
        keep = set(ids_to_keep)
        removed = [entry_id for entry_id in self.entries if entry_id not in keep]
        for entry_id in removed:
            del self.entries[entry_id]
        return removed

    def to_dict(self) -> dict[str, Any]:
        """Serialize for TOML storage with entries sorted by id."""
        return {
            "version": self.version,
            "aps_version": self.aps_version,
            "entries": {
                entry_id: self.entries[entry_id].to_dict() for entry_id in sorted(self.entries)
            },
        }
