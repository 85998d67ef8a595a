"""Retain-vs-purge decision for one package group."""
from __future__ import annotations

from .models import CachedFileRecord, PackageGroup


def select_stale_files(group: PackageGroup, keep: int, cutoff: float) -> list[CachedFileRecord]:
    """Return the files of `group` that should be purged.

    The group is sorted oldest-first by modification time. The newest `keep`
    files are never returned. Every older file is returned only if it was
    last accessed strictly before `cutoff`; recently read older versions
    survive until a later pass.
    """
    group.sort_by_mtime()
    unprotected = max(0, group.count - keep)
    return [f for f in group.files[:unprotected] if f.atime < cutoff]
