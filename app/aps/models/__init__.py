"""Data models for aps.

This module exports the manifest and lockfile structures used
throughout the application.
"""

from aps.models.lockfile import LOCKFILE_VERSION, CompositeSource, LockedEntry, Lockfile
from aps.models.manifest import (
    AUTO_REF,
    AssetKind,
    Entry,
    FilesystemSource,
    GitSource,
    Manifest,
    Source,
)

__all__ = [
    "AUTO_REF",
    "LOCKFILE_VERSION",
    "AssetKind",
    "CompositeSource",
    "Entry",
    "FilesystemSource",
    "GitSource",
    "LockedEntry",
    "Lockfile",
    "Manifest",
    "Source",
]
