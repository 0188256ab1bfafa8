"""Core engine for aps: checksums, backups, lockfile, install and orphan cleanup."""
