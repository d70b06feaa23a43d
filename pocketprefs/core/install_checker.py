"""Installed-application detection."""

from __future__ import annotations

import plistlib
import shutil
from pathlib import Path
from typing import Protocol

from loguru import logger


class InstallChecker(Protocol):
    """Answers whether the app behind a bundle identifier is present."""

    def is_installed(self, bundle_id: str) -> bool: ...


def _home_markers() -> dict[str, list[Path]]:
    home = Path.home()
    return {
        "oh-my-zsh": [home / ".oh-my-zsh"],
        "git": [home / ".gitconfig"],
        "ssh": [home / ".ssh"],
        "homebrew": [Path("/usr/local/bin/brew"), Path("/opt/homebrew/bin/brew")],
    }


class FilesystemInstallChecker:
    """
    Filesystem-based install detection.

    A few command-line tools have no application bundle and are detected by
    a marker file. Everything else is looked up as an ``.app`` bundle in the
    application folders, then as an executable on ``PATH``.
    """

    def __init__(self, app_dirs: list[Path] | None = None) -> None:
        self._app_dirs = app_dirs if app_dirs is not None else [
            Path("/Applications"),
            Path.home() / "Applications",
        ]
        self._markers = _home_markers()
        self._cache: dict[str, bool] = {}
        self._bundle_index: dict[str, Path] | None = None

    def refresh(self) -> None:
        """Forget cached answers so the next query hits the filesystem."""
        self._cache.clear()
        self._bundle_index = None

    def is_installed(self, bundle_id: str) -> bool:
        if bundle_id not in self._cache:
            self._cache[bundle_id] = self._check(bundle_id)
        return self._cache[bundle_id]

    def _check(self, bundle_id: str) -> bool:
        markers = self._markers.get(bundle_id)
        if markers is not None:
            return any(m.exists() for m in markers)
        if bundle_id in self._index_bundles():
            return True
        return shutil.which(bundle_id) is not None

    def _index_bundles(self) -> dict[str, Path]:
        """Map CFBundleIdentifier → bundle path for every top-level ``.app``."""
        if self._bundle_index is not None:
            return self._bundle_index

        index: dict[str, Path] = {}
        for app_dir in self._app_dirs:
            if not app_dir.is_dir():
                continue
            for bundle in app_dir.glob("*.app"):
                info = bundle / "Contents" / "Info.plist"
                if not info.is_file():
                    continue
                try:
                    with open(info, "rb") as f:
                        identifier = plistlib.load(f).get("CFBundleIdentifier")
                except (plistlib.InvalidFileException, OSError, ValueError) as e:
                    logger.debug(f"Unreadable Info.plist in {bundle.name}: {e}")
                    continue
                if isinstance(identifier, str):
                    index.setdefault(identifier, bundle)

        logger.debug(f"Indexed {len(index)} application bundle(s)")
        self._bundle_index = index
        return index
