"""Exception hierarchy for the sync engine.

Every failure raised while resolving, installing or cleaning up an entry
derives from ApsError so callers can report it with entry context and
move on to the summary.
"""

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from aps.core.install import InstallResult


class ApsError(Exception):
    """Base exception for aps errors."""


class SourceUnavailableError(ApsError):
    """Raised when a declared source path is missing after resolution."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"Source path not found: {path}")


class GitOperationError(ApsError):
    """Raised when a clone, checkout or commit query fails.

    Attributes:
        attempts: Mapping of attempted ref to the git error output for it.
    """

    def __init__(self, message: str, attempts: dict[str, str] | None = None) -> None:
        self.attempts = attempts or {}
        super().__init__(message)


class ConflictBlockedError(ApsError):
    """Raised when an overwrite needs confirmation that is not available."""

    def __init__(self, path: Path | str, message: str | None = None) -> None:
        self.path = Path(path)
        super().__init__(
            message
            or f"Conflict at {path}: non-interactive mode requires --yes to allow overwrites"
        )


class UserCancelledError(ApsError):
    """Raised when the user declines an overwrite."""

    def __init__(self, message: str = "Operation cancelled by user") -> None:
        super().__init__(message)


class StructuralValidationError(ApsError):
    """Raised under strict mode when an asset violates its kind's layout."""


class EntryRequiresSourceError(ApsError):
    """Raised when a non-composite entry has no source descriptor."""

    def __init__(self, entry_id: str) -> None:
        self.entry_id = entry_id
        super().__init__(f"Entry '{entry_id}' requires a 'source' field")


class IOFailureError(ApsError):
    """Raised when a filesystem operation fails.

    The underlying OSError is chained as ``__cause__``.
    """


class LockfileError(ApsError):
    """Raised when the lockfile cannot be read or written."""


class EntryNotFoundError(ApsError):
    """Raised when an entry id requested with --only is not declared."""

    def __init__(self, entry_id: str) -> None:
        self.entry_id = entry_id
        super().__init__(f"Entry '{entry_id}' not found in manifest")


class EntrySyncError(ApsError):
    """Raised when one entry fails during a sync run.

    Carries the entry context for reporting, plus the results of the
    entries that finished before it. The original failure is chained as
    ``__cause__``.
    """

    def __init__(
        self,
        entry_id: str,
        dest: Path,
        cause: Exception,
        completed: "list[InstallResult] | None" = None,
    ) -> None:
        self.entry_id = entry_id
        self.dest = dest
        self.completed = completed or []
        super().__init__(f"{entry_id} ({dest}): {cause}")
