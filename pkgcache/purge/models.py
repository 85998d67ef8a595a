"""Records produced and consumed during a single purge pass."""
from __future__ import annotations
from dataclasses import dataclass, field
import time

# Outcome kinds
KIND_WALK = "walk"
KIND_STAT = "stat"
KIND_DELETE = "delete"
KIND_SIGNATURE = "signature"


@dataclass(frozen=True)
class CachedFileRecord:
    path: str
    mtime: float
    atime: float
    size: int


@dataclass
class PackageGroup:
    name: str
    repo: str
    files: list[CachedFileRecord] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.files)

    def sort_by_mtime(self):
        self.files.sort(key=lambda f: f.mtime)


@dataclass(frozen=True)
class ItemOutcome:
    """Result of one filesystem operation; failures are recoverable by definition."""
    kind: str
    path: str
    ok: bool = True
    reason: str = ""

    @classmethod
    def failed(cls, kind: str, path: str, exc: BaseException | str) -> "ItemOutcome":
        return cls(kind=kind, path=path, ok=False, reason=str(exc))


@dataclass
class PurgeReport:
    repo: str
    started_at: float = field(default_factory=time.time)
    scanned: int = 0
    deleted: list[str] = field(default_factory=list)
    outcomes: list[ItemOutcome] = field(default_factory=list)
    package_count: int = 0
    package_size: int = 0

    @property
    def errors(self) -> list[ItemOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def record(self, outcome: ItemOutcome):
        self.outcomes.append(outcome)

    def summary(self) -> dict[str, object]:
        return {
            "repo": self.repo,
            "started_at": self.started_at,
            "scanned": self.scanned,
            "deleted": len(self.deleted),
            "errors": len(self.errors),
            "package_count": self.package_count,
            "package_size": self.package_size,
        }
