"""Source resolution for git repositories and local filesystem trees."""

from aps.core.context import RunContext
from aps.models.manifest import FilesystemSource, GitSource
from aps.sources.base import GitInfo, ResolvedSource
from aps.sources.filesystem import resolve_filesystem
from aps.sources.git import clone_and_resolve, clone_at_commit, get_remote_commit


def resolve_source(source: GitSource | FilesystemSource, ctx: RunContext) -> ResolvedSource:
    """Resolve a source descriptor to a usable path.

    Raises:
        SourceUnavailableError: If the declared path does not exist.
        GitOperationError: If cloning fails.
    """
    if isinstance(source, GitSource):
        return clone_and_resolve(source)
    return resolve_filesystem(source, ctx.base_dir)


__all__ = [
    "GitInfo",
    "ResolvedSource",
    "clone_and_resolve",
    "clone_at_commit",
    "get_remote_commit",
    "resolve_filesystem",
    "resolve_source",
]
