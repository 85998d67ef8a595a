"""One purge pass over a single repository's cache directory."""
from __future__ import annotations
import os
import time
import logging
from datetime import datetime
from typing import Callable, Optional

from .aggregator import group_by_package
from .models import PurgeReport
from .remover import is_gone, remove_cached_file
from .retention import select_stale_files
from .scanner import scan_files
from ..metrics import publish_repo_stats

logger = logging.getLogger("pkgcache.purge.engine")

StatsReporter = Callable[[str, int, int], None]


class PurgeConfigError(ValueError):
    """Retention parameters that would wipe the cache; never recovered from."""


def validate_purge_settings(purge_files_after: int, keep: int):
    if purge_files_after <= 0:
        logger.critical(
            "Stopping because purge_files_after=%s and that would purge the whole cache",
            purge_files_after,
        )
        raise PurgeConfigError(f"purge_files_after must be positive, got {purge_files_after}")
    if keep < 0:
        logger.critical("Stopping because keep_files=%s is negative", keep)
        raise PurgeConfigError(f"keep_files must be >= 0, got {keep}")


def purge_stale_files(
    cache_dir: str,
    purge_files_after: int,
    keep: int,
    repo_name: str,
    now: Optional[float] = None,
    reporter: StatsReporter = publish_repo_stats,
) -> PurgeReport:
    """Purge artifacts under `<cache_dir>/pkgs/<repo_name>` not accessed for `purge_files_after` seconds.

    The `keep` most recently modified files of every package are always
    retained. Gauges are set to what is left on disk once the pass ends.
    """
    validate_purge_settings(purge_files_after, keep)

    if now is None:
        now = time.time()
    cutoff = now - purge_files_after
    pkg_dir = os.path.join(cache_dir, "pkgs", repo_name)
    report = PurgeReport(repo=repo_name, started_at=now)

    groups = group_by_package(scan_files(pkg_dir, report), repo_name)

    package_num = 0
    package_size = 0
    for group in groups.values():
        report.scanned += group.count
        package_num += group.count
        package_size += sum(f.size for f in group.files)

        for stale in select_stale_files(group, keep, cutoff):
            logger.info(
                "Remove stale file %s as its access time (%s) is too old",
                stale.path, datetime.fromtimestamp(stale.atime).isoformat(),
            )
            primary, signature = remove_cached_file(stale.path)
            report.record(primary)
            report.record(signature)
            if is_gone(primary):
                report.deleted.append(stale.path)
                package_num -= 1
                package_size -= stale.size

    report.package_count = package_num
    report.package_size = package_size
    reporter(repo_name, package_num, package_size)

    logger.info(
        "Purge of %s done: %d scanned, %d removed, %d errors, %d packages (%d bytes) cached",
        repo_name, report.scanned, len(report.deleted), len(report.errors),
        package_num, package_size,
    )
    return report
