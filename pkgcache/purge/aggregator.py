"""Group scanned artifacts by logical package name."""
from __future__ import annotations
import os
from collections.abc import Iterable

from .classifier import package_name
from .models import CachedFileRecord, PackageGroup


def group_by_package(records: Iterable[CachedFileRecord], repo: str) -> dict[str, PackageGroup]:
    groups: dict[str, PackageGroup] = {}
    for record in records:
        name = package_name(os.path.basename(record.path))
        # repository databases, signatures, partial downloads
        if name is None:
            continue
        group = groups.get(name)
        if group is None:
            group = groups[name] = PackageGroup(name=name, repo=repo)
        group.files.append(record)
    return groups
