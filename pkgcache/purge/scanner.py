"""Recursive walk of one repository's cache subtree."""
from __future__ import annotations
import os
import stat
import logging
from collections.abc import Iterator
from typing import Optional

from .models import CachedFileRecord, ItemOutcome, PurgeReport, KIND_STAT, KIND_WALK

logger = logging.getLogger("pkgcache.purge.scanner")


def scan_files(root: str, report: Optional[PurgeReport] = None) -> Iterator[CachedFileRecord]:
    """Yield a record for every regular file under `root`.

    Symlinks, directories and special files are skipped. A missing root is
    normal for a repository that has not cached anything yet and yields
    nothing. Errors reading a directory or stat-ing a file skip that entry
    only; they are logged and, when a report is given, recorded on it.
    """
    if not os.path.isdir(root):
        logger.info("Cache directory %s does not exist yet, nothing to scan", root)
        return

    def _on_walk_error(err: OSError):
        path = err.filename or root
        logger.warning("Skipping %s: %s", path, err)
        if report is not None:
            report.record(ItemOutcome.failed(KIND_WALK, str(path), err))

    for dirpath, _dirnames, filenames in os.walk(root, onerror=_on_walk_error):
        for filename in filenames:
            path = os.path.join(dirpath, filename)
            try:
                st = os.lstat(path)
            except OSError as e:
                # Concurrently removed by the serving path, or unreadable
                logger.warning("Cannot stat %s: %s", path, e)
                if report is not None:
                    report.record(ItemOutcome.failed(KIND_STAT, path, e))
                continue
            if not stat.S_ISREG(st.st_mode):
                continue
            yield CachedFileRecord(
                path=path,
                mtime=st.st_mtime,
                atime=st.st_atime,
                size=st.st_size,
            )
