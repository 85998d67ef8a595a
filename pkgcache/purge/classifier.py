"""Package artifact filename parsing: <name>-<version>-<release>-<arch>.pkg.tar.<zst|xz>."""
from __future__ import annotations

import re
from typing import NamedTuple, Optional

# Name is greedy, so for ambiguous names version/release/arch are taken from the right.
_ARTIFACT_RE = re.compile(
    r"(?P<pkgname>[a-zA-Z0-9\-_+]+)"
    r"-(?P<pkgver>[0-9.:a-zA-Z+]+)"
    r"-(?P<pkgrel>[0-9]+)"
    r"-(?P<arch>[a-zA-Z0-9_]+)"
    r"\.pkg\.tar\.(?:zst|xz)"
)


class PackageFilename(NamedTuple):
    name: str
    version: str
    release: str
    arch: str


def parse_package_filename(filename: str) -> Optional[PackageFilename]:
    """Return the parsed artifact name, or None for anything that is not a package (e.g. `core.db`)."""
    m = _ARTIFACT_RE.fullmatch(filename)
    if not m:
        return None
    return PackageFilename(m.group("pkgname"), m.group("pkgver"), m.group("pkgrel"), m.group("arch"))


def package_name(filename: str) -> Optional[str]:
    parsed = parse_package_filename(filename)
    return parsed.name if parsed else None
