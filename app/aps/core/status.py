"""Read-only comparison of declared entries against the lockfile."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from aps.models.lockfile import LockedEntry, Lockfile
from aps.models.manifest import AssetKind, Manifest


class EntryState(str, Enum):
    """Install state of a declared entry."""

    INSTALLED = "installed"
    MISSING = "missing"
    MOVED = "moved"
    NOT_INSTALLED = "not installed"


@dataclass(frozen=True, slots=True)
class EntryStatus:
    """Status of one declared entry.

    Attributes:
        entry_id: Entry id.
        kind: Asset kind.
        dest_path: Declared destination (absolute).
        locked: Lockfile record, if the entry was ever installed.
        state: Derived install state.
    """

    entry_id: str
    kind: AssetKind
    dest_path: Path
    locked: LockedEntry | None
    state: EntryState


def collect_status(manifest: Manifest, lockfile: Lockfile, base_dir: Path) -> list[EntryStatus]:
    """Describe every declared entry in manifest order.

    Args:
        manifest: Loaded manifest.
        lockfile: Loaded lockfile.
        base_dir: Directory destinations resolve against.

    Returns:
        One EntryStatus per entry.
    """
    statuses: list[EntryStatus] = []
    for entry in manifest.entries:
        dest_rel = entry.destination()
        dest_path = base_dir / dest_rel
        locked = lockfile.get(entry.id)

        if locked is None:
            state = EntryState.NOT_INSTALLED
        elif Path(locked.dest) != dest_rel:
            state = EntryState.MOVED
        elif dest_path.exists():
            state = EntryState.INSTALLED
        else:
            state = EntryState.MISSING

        statuses.append(
            EntryStatus(
                entry_id=entry.id,
                kind=entry.kind,
                dest_path=dest_path,
                locked=locked,
                state=state,
            )
        )
    return statuses
