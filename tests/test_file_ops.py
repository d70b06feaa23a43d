"""Tests for the file primitives."""

from __future__ import annotations

from pathlib import Path

import pytest

from pocketprefs.core.file_ops import (
    BACKUP_SUFFIX,
    copy,
    create_directory,
    describe_size,
    expand_path,
    exists,
    protective_rename,
    size_of,
)
from pocketprefs.errors import CopyError, DirectoryCreateError


class TestExpandPath:
    def test_expands_tilde(self) -> None:
        assert expand_path("~/.gitconfig") == Path.home() / ".gitconfig"

    def test_absolute_path_unchanged(self, tmp_path: Path) -> None:
        assert expand_path(tmp_path / "a.txt") == tmp_path / "a.txt"

    def test_result_is_absolute(self) -> None:
        assert expand_path("relative/file").is_absolute()


class TestCreateDirectory:
    def test_creates_intermediate_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "c"
        create_directory(target)
        assert target.is_dir()

    def test_existing_directory_is_fine(self, tmp_path: Path) -> None:
        create_directory(tmp_path)
        assert tmp_path.is_dir()

    def test_collision_with_file(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a dir")
        with pytest.raises(DirectoryCreateError):
            create_directory(blocker)

    def test_parent_is_file(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a dir")
        with pytest.raises(DirectoryCreateError):
            create_directory(blocker / "child")


class TestCopy:
    def test_copies_file(self, tmp_path: Path) -> None:
        src = tmp_path / "src.txt"
        src.write_text("hello")
        dst = tmp_path / "out" / "dst.txt"
        copy(src, dst)
        assert dst.read_text() == "hello"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        src = tmp_path / "src.txt"
        src.write_text("new")
        dst = tmp_path / "dst.txt"
        dst.write_text("old")
        copy(src, dst)
        assert dst.read_text() == "new"

    def test_copies_directory_tree(self, tmp_path: Path) -> None:
        src = tmp_path / "conf"
        (src / "nested").mkdir(parents=True)
        (src / "nested" / "a.cfg").write_text("a")
        dst = tmp_path / "copy"
        copy(src, dst)
        assert (dst / "nested" / "a.cfg").read_text() == "a"

    def test_replaces_existing_directory(self, tmp_path: Path) -> None:
        src = tmp_path / "conf"
        src.mkdir()
        (src / "fresh.cfg").write_text("fresh")
        dst = tmp_path / "live"
        dst.mkdir()
        (dst / "stale.cfg").write_text("stale")

        copy(src, dst)

        assert (dst / "fresh.cfg").exists()
        assert not (dst / "stale.cfg").exists()

    def test_file_replaces_directory(self, tmp_path: Path) -> None:
        src = tmp_path / "src.txt"
        src.write_text("file")
        dst = tmp_path / "dst"
        dst.mkdir()
        copy(src, dst)
        assert dst.is_file()

    def test_no_temporary_files_left(self, tmp_path: Path) -> None:
        src = tmp_path / "src.txt"
        src.write_text("x")
        out = tmp_path / "out"
        copy(src, out / "dst.txt")
        assert [p.name for p in out.iterdir()] == ["dst.txt"]

    def test_missing_source(self, tmp_path: Path) -> None:
        with pytest.raises(CopyError):
            copy(tmp_path / "nope", tmp_path / "dst")

    def test_unwritable_parent(self, tmp_path: Path) -> None:
        src = tmp_path / "src.txt"
        src.write_text("x")
        blocker = tmp_path / "blocker"
        blocker.write_text("file")
        with pytest.raises(CopyError):
            copy(src, blocker / "dst.txt")


class TestProtectiveRename:
    def test_noop_when_missing(self, tmp_path: Path) -> None:
        assert protective_rename(tmp_path / "absent") is None
        assert list(tmp_path.iterdir()) == []

    def test_moves_existing_file_aside(self, tmp_path: Path) -> None:
        live = tmp_path / "settings.json"
        live.write_text("original")

        backup = protective_rename(live)

        assert backup == tmp_path / f"settings.json{BACKUP_SUFFIX}"
        assert not live.exists()
        assert backup.read_text() == "original"

    def test_replaces_previous_backup(self, tmp_path: Path) -> None:
        live = tmp_path / "settings.json"
        previous = tmp_path / f"settings.json{BACKUP_SUFFIX}"
        previous.write_text("older")
        live.write_text("current")

        protective_rename(live)

        assert previous.read_text() == "current"
        assert len(list(tmp_path.glob(f"*{BACKUP_SUFFIX}"))) == 1

    def test_directory_replaces_previous_directory_backup(self, tmp_path: Path) -> None:
        live = tmp_path / "conf"
        live.mkdir()
        (live / "new.cfg").write_text("new")
        previous = tmp_path / f"conf{BACKUP_SUFFIX}"
        previous.mkdir()
        (previous / "old.cfg").write_text("old")

        protective_rename(live)

        assert (previous / "new.cfg").exists()
        assert not (previous / "old.cfg").exists()


class TestSize:
    def test_file_size(self, tmp_path: Path) -> None:
        f = tmp_path / "f.bin"
        f.write_bytes(b"x" * 10)
        assert size_of(f) == 10

    def test_directory_skips_hidden_and_packages(self, tmp_path: Path) -> None:
        (tmp_path / "visible.txt").write_bytes(b"x" * 5)
        (tmp_path / ".hidden").write_bytes(b"x" * 100)
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "objects").write_bytes(b"x" * 100)
        (tmp_path / "Tool.app").mkdir()
        (tmp_path / "Tool.app" / "binary").write_bytes(b"x" * 100)
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "inner.txt").write_bytes(b"x" * 7)

        assert size_of(tmp_path) == 12

    def test_missing_path(self, tmp_path: Path) -> None:
        assert size_of(tmp_path / "missing") is None
        assert describe_size(tmp_path / "missing") == "Not Found"

    def test_describe_size(self, tmp_path: Path) -> None:
        f = tmp_path / "f.bin"
        f.write_bytes(b"x" * 2048)
        assert describe_size(f) == "2.0 KB"


class TestExists:
    def test_dangling_symlink_counts(self, tmp_path: Path) -> None:
        link = tmp_path / "link"
        link.symlink_to(tmp_path / "gone")
        assert exists(link)
