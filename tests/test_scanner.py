import os
from pathlib import Path

from pkgcache.purge.aggregator import group_by_package
from pkgcache.purge.engine import purge_stale_files
from pkgcache.purge.models import CachedFileRecord, PurgeReport
from pkgcache.purge.remover import is_gone, remove_cached_file
from pkgcache.purge.scanner import scan_files


def test_scan_yields_regular_files_recursively(tmp_path):
    (tmp_path / "a").write_bytes(b"12345")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "b").write_bytes(b"1")
    os.utime(tmp_path / "a", (1000, 2000))

    records = {r.path: r for r in scan_files(str(tmp_path))}

    assert set(records) == {str(tmp_path / "a"), str(tmp_path / "sub" / "b")}
    a = records[str(tmp_path / "a")]
    assert (a.atime, a.mtime, a.size) == (1000, 2000, 5)


def test_scan_skips_symlinks(tmp_path):
    target = tmp_path / "real-1.0-1-any.pkg.tar.zst"
    target.write_bytes(b"x")
    (tmp_path / "link-1.0-1-any.pkg.tar.zst").symlink_to(target)
    (tmp_path / "dirlink").symlink_to(tmp_path, target_is_directory=True)

    paths = [r.path for r in scan_files(str(tmp_path))]

    assert paths == [str(target)]


def test_scan_missing_root_is_empty(tmp_path):
    report = PurgeReport(repo="r")
    assert list(scan_files(str(tmp_path / "missing"), report)) == []
    assert report.outcomes == []


def test_scan_is_lazy(tmp_path):
    (tmp_path / "a").write_bytes(b"x")
    it = scan_files(str(tmp_path))
    (tmp_path / "b").write_bytes(b"x")
    assert len(list(it)) == 2


def test_group_by_package():
    records = [
        CachedFileRecord("/c/pkgs/r/foo-1.0-1-any.pkg.tar.zst", 1, 1, 1),
        CachedFileRecord("/c/pkgs/r/foo-1.1-1-any.pkg.tar.zst", 2, 2, 1),
        CachedFileRecord("/c/pkgs/r/foo-bar-1.0-1-any.pkg.tar.zst", 3, 3, 1),
        CachedFileRecord("/c/pkgs/r/r.db", 4, 4, 1),
        CachedFileRecord("/c/pkgs/r/foo-1.0-1-any.pkg.tar.zst.sig", 5, 5, 1),
    ]

    groups = group_by_package(records, "r")

    assert sorted(groups) == ["foo", "foo-bar"]
    assert groups["foo"].count == 2
    assert groups["foo"].repo == "r"
    assert groups["foo-bar"].files == [records[2]]


def test_remove_cached_file_with_signature(tmp_path):
    pkg = tmp_path / "foo-1.0-1-any.pkg.tar.zst"
    sig = Path(str(pkg) + ".sig")
    pkg.write_bytes(b"p")
    sig.write_bytes(b"s")

    primary, signature = remove_cached_file(str(pkg))

    assert primary.ok and signature.ok
    assert not pkg.exists() and not sig.exists()


def test_remove_signature_failure_does_not_block_primary(tmp_path):
    pkg = tmp_path / "foo-1.0-1-any.pkg.tar.zst"
    pkg.write_bytes(b"p")
    # a directory in the signature's place cannot be removed with os.remove
    Path(str(pkg) + ".sig").mkdir()

    primary, signature = remove_cached_file(str(pkg))

    assert primary.ok
    assert not signature.ok
    assert signature.kind == "signature"
    assert is_gone(primary)


def test_remove_primary_failure_keeps_file_counted(tmp_path):
    pkg = tmp_path / "foo-1.0-1-any.pkg.tar.zst"
    pkg.mkdir()

    primary, _ = remove_cached_file(str(pkg))

    assert not primary.ok
    assert primary.reason
    assert not is_gone(primary)


def test_remove_vanished_file_counts_as_gone(tmp_path):
    primary, signature = remove_cached_file(str(tmp_path / "gone-1.0-1-any.pkg.tar.zst"))

    assert not primary.ok
    assert not signature.ok
    assert is_gone(primary)


def test_unreadable_subdirectory_is_recorded_and_skipped(tmp_path, monkeypatch):
    (tmp_path / "a").write_bytes(b"x")
    blocked = tmp_path / "blocked"
    blocked.mkdir()
    (blocked / "hidden").write_bytes(b"x")
    real_scandir = os.scandir

    def fake_scandir(path="."):
        if os.fspath(path) == str(blocked):
            raise PermissionError(13, "Permission denied", str(blocked))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", fake_scandir)
    report = PurgeReport(repo="r")

    paths = [r.path for r in scan_files(str(tmp_path), report)]

    assert paths == [str(tmp_path / "a")]
    assert [(o.kind, o.path, o.ok) for o in report.outcomes] == [("walk", str(blocked), False)]


def test_file_vanishing_during_scan_is_recorded(tmp_path, monkeypatch):
    repo_dir = tmp_path / "pkgs" / "scanrepo"
    repo_dir.mkdir(parents=True)
    vanished = repo_dir / "foo-1.0-1-any.pkg.tar.zst"
    vanished.write_bytes(b"gone soon")
    kept = repo_dir / "foo-1.1-1-any.pkg.tar.zst"
    kept.write_bytes(b"kept")
    real_lstat = os.lstat

    def fake_lstat(path, *args, **kwargs):
        if os.fspath(path) == str(vanished):
            raise FileNotFoundError(2, "No such file or directory", str(vanished))
        return real_lstat(path, *args, **kwargs)

    monkeypatch.setattr(os, "lstat", fake_lstat)
    calls = []

    report = purge_stale_files(str(tmp_path), 3600, 0, "scanrepo",
                               reporter=lambda repo, n, size: calls.append((repo, n, size)))

    assert [(o.kind, o.path) for o in report.errors] == [("stat", str(vanished))]
    assert report.scanned == 1
    assert calls == [("scanrepo", 1, len(b"kept"))]
