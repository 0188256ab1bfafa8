"""Filesystem materialization of resolved assets.

Single-file kinds are symlinked or copied. Directory kinds are either
symlinked file by file (real subdirectories, so several sources can fill
one destination), copied wholesale, or, for hook kinds, merged into a
shared tool directory.
"""

import logging
import os
import shutil
import stat
from pathlib import Path

from aps.core.errors import IOFailureError
from aps.models.manifest import AssetKind

logger = logging.getLogger(__name__)

# Hook scripts that must be runnable after a merge
EXECUTABLE_SUFFIXES = (".sh",)


def _remove_path(path: Path) -> None:
    """Remove a file, symlink or directory tree at path."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def _ensure_parent(path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        msg = f"Failed to create directory {path.parent}"
        raise IOFailureError(msg) from e


def create_symlink(source: Path, dest: Path) -> None:
    """Point dest at source, replacing whatever dest currently is.

    Raises:
        IOFailureError: If the old destination cannot be removed or the
            link cannot be created.
    """
    _ensure_parent(dest)
    try:
        _remove_path(dest)
        os.symlink(source.absolute(), dest)
    except OSError as e:
        msg = f"Failed to create symlink {dest} -> {source}"
        raise IOFailureError(msg) from e
    logger.debug("Symlinked %s to %s", source, dest)


def copy_file(source: Path, dest: Path) -> None:
    """Copy one file, replacing a symlink or directory at dest."""
    _ensure_parent(dest)
    try:
        if dest.is_symlink() or dest.is_dir():
            _remove_path(dest)
        shutil.copy2(source, dest)
    except OSError as e:
        msg = f"Failed to copy {source} to {dest}"
        raise IOFailureError(msg) from e
    logger.debug("Copied file %s to %s", source, dest)


def copy_directory(source: Path, dest: Path) -> None:
    """Copy a directory tree, fully replacing the destination."""
    _ensure_parent(dest)
    try:
        _remove_path(dest)
        shutil.copytree(source, dest)
    except OSError as e:
        msg = f"Failed to copy directory {source} to {dest}"
        raise IOFailureError(msg) from e
    logger.debug("Copied directory %s to %s", source, dest)


def symlink_directory_files(source: Path, dest: Path, symlinked_items: list[str]) -> None:
    """Symlink every file below source into dest, creating real directories.

    Args:
        source: Directory whose files are linked.
        dest: Directory receiving the links.
        symlinked_items: Collects the source path of every created link.
    """
    try:
        if dest.is_symlink() or dest.is_file():
            dest.unlink()
        dest.mkdir(parents=True, exist_ok=True)
        children = sorted(source.iterdir())
    except OSError as e:
        msg = f"Failed to prepare directory {dest}"
        raise IOFailureError(msg) from e

    for child in children:
        target = dest / child.name
        if child.is_dir():
            symlink_directory_files(child, target, symlinked_items)
        else:
            create_symlink(child, target)
            symlinked_items.append(str(child.absolute()))


def merge_directory(source: Path, dest: Path) -> list[Path]:
    """Copy source into dest, keeping destination content source does not name.

    Files ending in EXECUTABLE_SUFFIXES are made executable.

    Returns:
        Destination paths of the files written.
    """
    written: list[Path] = []
    for relative in list_relative_files(source):
        target = dest / relative
        copy_file(source / relative, target)
        if target.suffix in EXECUTABLE_SUFFIXES:
            _make_executable(target)
        written.append(target)
    logger.debug("Merged %d file(s) from %s into %s", len(written), source, dest)
    return written


def _make_executable(path: Path) -> None:
    try:
        mode = path.stat().st_mode
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except OSError as e:
        msg = f"Failed to mark {path} executable"
        raise IOFailureError(msg) from e


def list_relative_files(root: Path) -> list[Path]:
    """List files below root as sorted paths relative to root."""
    files: list[Path] = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            files.append((Path(dirpath) / name).relative_to(root))
    return sorted(files)


def filter_by_prefix(source_dir: Path, prefixes: list[str]) -> list[Path]:
    """Return the top-level children of source_dir whose name matches a prefix.

    Raises:
        IOFailureError: If the directory cannot be listed.
    """
    try:
        children = list(source_dir.iterdir())
    except OSError as e:
        msg = f"Failed to read directory {source_dir}"
        raise IOFailureError(msg) from e
    return sorted(
        child for child in children if any(child.name.startswith(p) for p in prefixes)
    )


def planned_paths(
    kind: AssetKind,
    source: Path,
    dest: Path,
    *,
    use_symlink: bool,
    include: list[str],
) -> list[tuple[Path, Path]]:
    """Paths an install would write, for conflict checks.

    Whole-destination installs report the destination itself. Per-file
    symlink installs and hook merges report only the individual paths
    they touch, so unrelated content sharing the directory is ignored.

    Returns:
        (destination path, source path replacing it) pairs.
    """
    if kind.is_single_file or source.is_file():
        return [(dest, source)]
    if kind.is_hooks:
        return [(dest / rel, source / rel) for rel in list_relative_files(source)]
    if not use_symlink:
        return [(dest, source)]

    pairs: list[tuple[Path, Path]] = []
    if dest.exists() and not dest.is_dir():
        pairs.append((dest, source))
    if include:
        pairs.extend((dest / item.name, item) for item in filter_by_prefix(source, include))
        return pairs

    # A file standing where the source has a subdirectory is replaced too
    blocking: set[Path] = set()
    for rel in list_relative_files(source):
        for parent in rel.parents:
            if parent != Path(".") and parent not in blocking and (dest / parent).is_file():
                blocking.add(parent)
                pairs.append((dest / parent, source / parent))
        pairs.append((dest / rel, source / rel))
    return pairs


def install_asset(
    kind: AssetKind,
    source: Path,
    dest: Path,
    *,
    use_symlink: bool,
    include: list[str],
) -> list[str]:
    """Materialize a resolved source at its destination.

    Args:
        kind: Asset kind being installed.
        source: Resolved source path.
        dest: Absolute destination path.
        use_symlink: Symlink instead of copying.
        include: Top-level name prefixes; empty means everything.

    Returns:
        Source paths that were symlinked individually.

    Raises:
        IOFailureError: If any filesystem operation fails.
    """
    symlinked_items: list[str] = []

    if kind.is_single_file or source.is_file():
        if use_symlink:
            create_symlink(source, dest)
            symlinked_items.append(str(source.absolute()))
        else:
            copy_file(source, dest)
        return symlinked_items

    if kind.is_hooks:
        merge_directory(source, dest)
        return symlinked_items

    if not include:
        if use_symlink:
            symlink_directory_files(source, dest, symlinked_items)
        else:
            copy_directory(source, dest)
        return symlinked_items

    items = filter_by_prefix(source, include)
    if use_symlink:
        try:
            dest.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Failed to create directory {dest}"
            raise IOFailureError(msg) from e
        for item in items:
            create_symlink(item, dest / item.name)
            symlinked_items.append(str(item.absolute()))
    else:
        try:
            _remove_path(dest)
            dest.mkdir(parents=True)
        except OSError as e:
            msg = f"Failed to recreate directory {dest}"
            raise IOFailureError(msg) from e
        for item in items:
            if item.is_dir():
                copy_directory(item, dest / item.name)
            else:
                copy_file(item, dest / item.name)
    return symlinked_items
