"""Resolved source value shared by both source kinds.

A ResolvedSource bundles the usable path with the temporary clone that
backs it (git only). It is a context manager: leaving the ``with`` block
removes the clone on every exit path.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from aps.models.lockfile import LockedEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GitInfo:
    """Provenance of a git checkout.

    Attributes:
        resolved_ref: Branch or tag that was cloned.
        commit_sha: Commit checked out in the clone.
    """

    resolved_ref: str
    commit_sha: str


class ResolvedSource:
    """A materialized source path plus its provenance.

    Attributes:
        source_path: Existing path holding the asset content.
        source_display: Human-readable provenance string.
        use_symlink: Whether the asset may be symlinked (never for git).
        git_info: Git provenance, None for filesystem sources.
    """

    def __init__(
        self,
        source_path: Path,
        source_display: str,
        *,
        use_symlink: bool = False,
        git_info: GitInfo | None = None,
        clone_dir: Path | None = None,
    ) -> None:
        self.source_path = source_path
        self.source_display = source_display
        self.use_symlink = use_symlink and clone_dir is None
        self.git_info = git_info
        self._clone_dir = clone_dir

    @property
    def is_git(self) -> bool:
        return self.git_info is not None

    @property
    def clone_dir(self) -> Path | None:
        """Temporary directory owned by this value, if any."""
        return self._clone_dir

    def release(self) -> None:
        """Delete the owned clone directory. Safe to call more than once."""
        clone_dir = self._clone_dir
        if clone_dir is None:
            return
        self._clone_dir = None
        if clone_dir.exists():
            shutil.rmtree(clone_dir)
            logger.debug("Removed temporary clone %s", clone_dir)

    def __enter__(self) -> "ResolvedSource":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def to_locked_entry(
        self,
        dest: str,
        checksum: str,
        symlinked_items: list[str] | None = None,
        *,
        as_symlink: bool | None = None,
    ) -> LockedEntry:
        """Build the lockfile record for an install from this source.

        Args:
            dest: Destination path as it should appear in the lockfile.
            checksum: Checksum of the installed content.
            symlinked_items: Source paths symlinked one by one, if any.
            as_symlink: Whether the install symlinked. Defaults to use_symlink.

        Returns:
            A git or filesystem LockedEntry.
        """
        use_symlink = self.use_symlink if as_symlink is None else as_symlink
        if self.git_info is not None:
            return LockedEntry.for_git(
                self.source_display,
                dest,
                self.git_info.resolved_ref,
                self.git_info.commit_sha,
                checksum,
            )
        return LockedEntry.for_filesystem(
            self.source_display,
            dest,
            checksum,
            is_symlink=use_symlink,
            target_path=str(self.source_path.absolute()) if use_symlink else None,
            symlinked_items=symlinked_items,
        )

    def __repr__(self) -> str:
        return (
            f"ResolvedSource(source_path={self.source_path!r}, "
            f"source_display={self.source_display!r}, use_symlink={self.use_symlink})"
        )
