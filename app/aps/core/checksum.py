"""Deterministic content checksums.

A checksum depends only on file bytes and paths relative to the hashed
root. Absolute locations, timestamps and directory read order never
influence the result, so the same tree hashes identically on every host.
"""

import hashlib
import os
from pathlib import Path

from aps.core.errors import IOFailureError, SourceUnavailableError

ALGORITHM = "sha256"


def _collect_files(root: Path) -> list[tuple[bytes, Path]]:
    """Collect every file below root keyed by its POSIX relative path bytes."""
    files: list[tuple[bytes, Path]] = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            file_path = Path(dirpath) / name
            if not file_path.is_file():
                # Dangling symlinks and special files carry no content
                continue
            relative = file_path.relative_to(root).as_posix()
            files.append((os.fsencode(relative), file_path))
    files.sort(key=lambda item: item[0])
    return files


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        msg = f"Failed to read file for checksum: {path}"
        raise IOFailureError(msg) from e


def compute_checksum(path: Path) -> str:
    """Compute the checksum of a file or directory tree.

    Files hash their raw bytes. Directories hash, in byte order of the
    relative path, each file's relative path, a NUL separator, and its
    content into one running digest.

    Args:
        path: File or directory to fingerprint.

    Returns:
        Checksum string in ``sha256:<hex>`` form.

    Raises:
        SourceUnavailableError: If the path does not exist.
        IOFailureError: If a file cannot be read.
    """
    hasher = hashlib.sha256()

    if path.is_file():
        hasher.update(_read_bytes(path))
    elif path.is_dir():
        for relative, file_path in _collect_files(path):
            hasher.update(relative)
            hasher.update(b"\0")
            hasher.update(_read_bytes(file_path))
    else:
        raise SourceUnavailableError(path)

    return f"{ALGORITHM}:{hasher.hexdigest()}"


def compute_string_checksum(content: str) -> str:
    """Compute the checksum of generated text content.

    Args:
        content: Text to fingerprint (encoded as UTF-8).

    Returns:
        Checksum string in ``sha256:<hex>`` form.
    """
    digest = hashlib.sha256(content.encode("utf-8")).hexdigest()
    return f"{ALGORITHM}:{digest}"
