"""Deletion of a cached artifact and its detached signature."""
from __future__ import annotations
import os
import logging

from .models import ItemOutcome, KIND_DELETE, KIND_SIGNATURE

logger = logging.getLogger("pkgcache.purge.remover")

SIGNATURE_SUFFIX = ".sig"


def remove_cached_file(path: str) -> tuple[ItemOutcome, ItemOutcome]:
    """Delete `path` and `path + .sig`, each attempted independently.

    Returns (primary, signature) outcomes. Nothing is raised: every failure is
    logged and left for the next pass.
    """
    try:
        os.remove(path)
        primary = ItemOutcome(KIND_DELETE, path)
    except FileNotFoundError as e:
        logger.warning("Stale file %s already gone: %s", path, e)
        primary = ItemOutcome.failed(KIND_DELETE, path, e)
    except OSError as e:
        logger.warning("Failed to remove %s: %s", path, e)
        primary = ItemOutcome.failed(KIND_DELETE, path, e)

    sig_path = path + SIGNATURE_SUFFIX
    try:
        os.remove(sig_path)
        signature = ItemOutcome(KIND_SIGNATURE, sig_path)
    except FileNotFoundError as e:
        logger.debug("No signature to remove for %s: %s", path, e)
        signature = ItemOutcome.failed(KIND_SIGNATURE, sig_path, e)
    except OSError as e:
        logger.warning("Failed to remove signature %s: %s", sig_path, e)
        signature = ItemOutcome.failed(KIND_SIGNATURE, sig_path, e)

    return primary, signature


def is_gone(outcome: ItemOutcome) -> bool:
    """True when the primary file is no longer on disk after the attempt."""
    return outcome.ok or not os.path.lexists(outcome.path)
