"""Prometheus gauges for the cache contents, one series per repository."""
from __future__ import annotations

import threading
from fastapi import APIRouter, Response
from prometheus_client import Gauge, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter()

CACHE_PACKAGES = Gauge("pkgcache_cached_packages", "Number of cached package files", ["repo"])
CACHE_SIZE = Gauge("pkgcache_cache_size_bytes", "Total size of cached package files in bytes", ["repo"])

# Readers never see a count from one pass paired with a size from another.
_lock = threading.Lock()


def publish_repo_stats(repo: str, package_count: int, package_size: int):
    """Overwrite both gauges for `repo` with the totals of the pass that just finished."""
    with _lock:
        CACHE_PACKAGES.labels(repo=repo).set(package_count)
        CACHE_SIZE.labels(repo=repo).set(package_size)


@router.get("/metrics")
def metrics():
    with _lock:
        payload = generate_latest()
    return Response(payload, media_type=CONTENT_TYPE_LATEST)
