"""Filesystem source resolution."""

import logging
from pathlib import Path

from aps.core.errors import SourceUnavailableError
from aps.models.manifest import FilesystemSource, expand_path
from aps.sources.base import ResolvedSource

logger = logging.getLogger(__name__)


def resolve_filesystem(source: FilesystemSource, base_dir: Path) -> ResolvedSource:
    """Resolve a filesystem source to an existing path.

    ``~``, ``$VAR`` and ``${VAR}`` are expanded in both root and path.
    A relative root resolves against base_dir. A path of ``.`` (or none)
    means the root itself.

    Args:
        source: Filesystem source descriptor.
        base_dir: Directory relative roots resolve against.

    Returns:
        ResolvedSource whose symlink flag mirrors the manifest flag.

    Raises:
        SourceUnavailableError: If the resolved path does not exist.
    """
    root = Path(expand_path(source.root))
    if not root.is_absolute():
        root = base_dir / root

    if source.path and source.path != ".":
        source_path = root / expand_path(source.path)
    else:
        source_path = root

    if not source_path.exists():
        raise SourceUnavailableError(source_path)

    logger.debug("Resolved %s to %s", source.display_path, source_path)
    return ResolvedSource(
        source_path,
        source.display_name,
        use_symlink=source.symlink,
    )
