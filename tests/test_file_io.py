"""Tests for atomic write and best-effort copy helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

import ralph.file_io as file_io

pytestmark = pytest.mark.unit


def test_atomic_write_text_creates_parents_and_replaces(tmp_path: Path) -> None:
    target = tmp_path / ".ralph" / ".last-branch"

    file_io.atomic_write_text(target, "one\n")
    file_io.atomic_write_text(target, "two\n")

    assert target.read_text(encoding="utf-8") == "two\n"
    assert [p.name for p in target.parent.iterdir()] == [".last-branch"]


def test_replace_file_with_retry_retries_permission_denied_then_succeeds(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    src = tmp_path / "src.txt"
    dst = tmp_path / "dst.txt"
    src.write_text("new-content", encoding="utf-8")
    dst.write_text("old-content", encoding="utf-8")

    attempts = {"count": 0}
    original_replace = Path.replace

    def flaky_replace(self: Path, target: Path) -> Path:
        if self == src and Path(target) == dst and attempts["count"] < 2:
            attempts["count"] += 1
            raise PermissionError("file locked")
        return original_replace(self, target)

    monkeypatch.setattr(Path, "replace", flaky_replace)
    monkeypatch.setattr(file_io, "_ATOMIC_REPLACE_RETRY_SECONDS", 0)

    file_io._replace_file_with_retry(src, dst)

    assert attempts["count"] == 2
    assert dst.read_text(encoding="utf-8") == "new-content"


def test_replace_file_with_retry_raises_non_permission_oserror(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    src = tmp_path / "src.txt"
    dst = tmp_path / "dst.txt"
    src.write_text("x", encoding="utf-8")

    def fail_replace(_self: Path, _target: Path) -> Path:
        raise OSError(5, "io error")

    monkeypatch.setattr(Path, "replace", fail_replace)

    with pytest.raises(OSError) as exc_info:
        file_io._replace_file_with_retry(src, dst)
    assert exc_info.value.errno == 5


def test_read_text_or_none(tmp_path: Path) -> None:
    path = tmp_path / "progress.txt"
    assert file_io.read_text_or_none(path) is None
    path.write_text("hello", encoding="utf-8")
    assert file_io.read_text_or_none(path) == "hello"


def test_copy_if_exists_copies_and_overwrites(tmp_path: Path) -> None:
    src = tmp_path / "prd.json"
    dest = tmp_path / "archive"
    dest.mkdir()
    (dest / "prd.json").write_text("stale", encoding="utf-8")
    src.write_text("fresh", encoding="utf-8")

    assert file_io.copy_if_exists(src, dest) is True
    assert (dest / "prd.json").read_text(encoding="utf-8") == "fresh"


def test_copy_if_exists_skips_missing_source(tmp_path: Path) -> None:
    assert file_io.copy_if_exists(tmp_path / "progress.txt", tmp_path) is False
