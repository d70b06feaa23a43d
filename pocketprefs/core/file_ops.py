"""File primitives — path expansion, copying and the protective rename used by restore.

All functions are synchronous; the engines run them through ``asyncio.to_thread``.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from uuid import uuid4

from loguru import logger

from pocketprefs.errors import CopyError, DirectoryCreateError, ProtectiveRenameError
from pocketprefs.utils import NOT_FOUND, format_size

BACKUP_SUFFIX = ".pocketprefs_backup"

# Directory suffixes treated as opaque bundles when sizing a tree
_PACKAGE_SUFFIXES = (".app", ".bundle", ".framework", ".plugin", ".kext", ".pkg", ".photoslibrary")


def expand_path(path: str | Path) -> Path:
    """Expand ``~`` and return an absolute path (symlinks are left unresolved)."""
    return Path(os.path.abspath(os.path.expanduser(str(path))))


def exists(path: str | Path) -> bool:
    """True if something (including a dangling symlink) occupies ``path``."""
    p = Path(path)
    return p.exists() or p.is_symlink()


def create_directory(path: str | Path) -> Path:
    """Create ``path`` and any missing parents."""
    target = expand_path(path)
    try:
        target.mkdir(parents=True, exist_ok=True)
    except (FileExistsError, NotADirectoryError) as e:
        raise DirectoryCreateError(target, f"a non-directory is in the way ({e})") from e
    except OSError as e:
        raise DirectoryCreateError(target, e.strerror or str(e)) from e
    return target


def remove(path: Path) -> None:
    """Remove a file, symlink or directory tree."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def copy(src: str | Path, dst: str | Path) -> None:
    """
    Copy a file or directory tree to ``dst``, replacing whatever is there.

    The data is first written to a hidden sibling of ``dst`` and then moved
    into place with ``os.replace``, so an interrupted copy never leaves a
    truncated destination behind.
    """
    source = expand_path(src)
    dest = expand_path(dst)

    if not exists(source):
        raise CopyError(source, "source does not exist")

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise CopyError(dest, f"cannot create parent directory: {e}") from e

    tmp = dest.with_name(f".{dest.name}.{uuid4().hex[:8]}.tmp")
    try:
        if source.is_dir() and not source.is_symlink():
            shutil.copytree(source, tmp, symlinks=True)
        else:
            shutil.copy2(source, tmp, follow_symlinks=False)

        # os.replace swaps files atomically but cannot overwrite a directory
        if exists(dest) and (tmp.is_dir() or (dest.is_dir() and not dest.is_symlink())):
            remove(dest)
        os.replace(tmp, dest)
    except OSError as e:
        if exists(tmp):
            try:
                remove(tmp)
            except OSError:
                logger.warning(f"Could not clean up temporary copy: {tmp}")
        raise CopyError(source, str(e)) from e

    logger.debug(f"Copied {source} -> {dest}")


def protective_rename(live_path: str | Path) -> Path | None:
    """
    Move whatever occupies ``live_path`` aside to ``<live_path>.pocketprefs_backup``.

    A previous protective backup at that name is replaced. Returns the backup
    path, or ``None`` when there was nothing to preserve.
    """
    live = expand_path(live_path)
    if not exists(live):
        return None

    backup = live.with_name(live.name + BACKUP_SUFFIX)
    try:
        if exists(backup):
            remove(backup)
        os.replace(live, backup)
    except OSError as e:
        raise ProtectiveRenameError(live, str(e)) from e

    logger.info(f"Preserved existing {live} as {backup.name}")
    return backup


def _is_package(path: Path) -> bool:
    return path.suffix.lower() in _PACKAGE_SUFFIXES


def size_of(path: str | Path) -> int | None:
    """
    Total size in bytes of a file or directory tree.

    Hidden descendants are ignored and package directories (``*.app`` …)
    are not descended into. Returns ``None`` if ``path`` cannot be read.
    """
    target = expand_path(path)
    try:
        st = target.stat()
    except OSError:
        return None

    if not target.is_dir():
        return st.st_size

    total = 0
    for dirpath, dirnames, filenames in os.walk(target):
        current = Path(dirpath)
        dirnames[:] = [
            d for d in dirnames if not d.startswith(".") and not _is_package(current / d)
        ]
        for name in filenames:
            if name.startswith("."):
                continue
            try:
                total += (current / name).lstat().st_size
            except OSError:
                continue
    return total


def describe_size(path: str | Path) -> str:
    """Human-readable size of ``path`` or ``"Not Found"``."""
    size = size_of(path)
    return format_size(size) if size is not None else NOT_FOUND
