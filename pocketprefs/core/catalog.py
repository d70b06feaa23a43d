"""Snapshot catalog — discover snapshots on disk and rebuild their app records."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from pathlib import Path
from uuid import NAMESPACE_URL, UUID, uuid5

from loguru import logger

from pocketprefs.core.file_ops import create_directory
from pocketprefs.core.install_checker import InstallChecker
from pocketprefs.errors import FileOperationError
from pocketprefs.models.app_config import AppConfigEntry, entry_from_dict
from pocketprefs.models.snapshot import SnapshotAppRecord, SnapshotRecord

SNAPSHOT_PREFIX = "Backup_"
SNAPSHOT_DATE_FORMAT = "%Y-%m-%d_%H-%M-%S"
# Older releases wrote e.g. "Backup_2024-1-5, 3-30 PM"
LEGACY_DATE_FORMATS = ("%Y-%m-%d, %I-%M %p",)
DESCRIPTOR_FILENAME = "app_config.json"


def snapshot_name(when: datetime) -> str:
    """Directory name for a snapshot taken at local time ``when``."""
    return f"{SNAPSHOT_PREFIX}{when.strftime(SNAPSHOT_DATE_FORMAT)}"


def parse_snapshot_date(name: str) -> datetime | None:
    """Parse the timestamp encoded in a snapshot directory name."""
    if not name.startswith(SNAPSHOT_PREFIX):
        return None
    stamp = name[len(SNAPSHOT_PREFIX):]
    for fmt in (SNAPSHOT_DATE_FORMAT, *LEGACY_DATE_FORMATS):
        try:
            return datetime.strptime(stamp, fmt)
        except ValueError:
            continue
    return None


def read_descriptor(path: Path) -> AppConfigEntry:
    """Load an app descriptor file."""
    with open(path, encoding="utf-8") as f:
        return entry_from_dict(json.load(f))


def _stable_id(path: Path) -> UUID:
    return uuid5(NAMESPACE_URL, str(path.absolute()))


class SnapshotCatalog:
    """
    Read-only view over the snapshot root.

    Layout::

      {snapshot_root}/Backup_{timestamp}/{app_dir}/
        ├── <copied config files ...>
        └── app_config.json
    """

    def __init__(self, snapshot_root: str | Path, install_checker: InstallChecker) -> None:
        self._root = Path(snapshot_root).expanduser()
        self._checker = install_checker

    @property
    def snapshot_root(self) -> Path:
        return self._root

    # ── Sync API ──

    def list_snapshots(self) -> list[SnapshotRecord]:
        """All snapshots with at least one app, newest first."""
        if not self._root.exists():
            try:
                create_directory(self._root)
            except FileOperationError as e:
                logger.error(f"Snapshot root unavailable: {e}")
            return []

        try:
            names = sorted(
                (
                    child.name
                    for child in self._root.iterdir()
                    if child.name.startswith(SNAPSHOT_PREFIX) and child.is_dir()
                ),
                reverse=True,
            )
        except OSError as e:
            logger.error(f"Failed to scan snapshots: {e}")
            return []

        snapshots: list[SnapshotRecord] = []
        for name in names:
            path = self._root / name
            created_at = parse_snapshot_date(name)
            if created_at is None:
                # Catalog order still follows the name, so this entry may sort oddly
                logger.warning(f"Unparseable snapshot date in '{name}', using current time")
                created_at = datetime.now()

            apps = self.list_apps(path)
            if not apps:
                continue
            snapshots.append(
                SnapshotRecord(
                    id=_stable_id(path),
                    path=str(path),
                    name=name,
                    created_at=created_at,
                    apps=apps,
                )
            )

        logger.info(f"Found {len(snapshots)} snapshot(s) in {self._root}")
        return snapshots

    def list_apps(self, snapshot_path: str | Path) -> list[SnapshotAppRecord]:
        """Rebuild the app records of one snapshot from its descriptors."""
        base = Path(snapshot_path)
        try:
            children = sorted(c for c in base.iterdir() if not c.name.startswith("."))
        except OSError as e:
            logger.error(f"Failed to scan apps in {base}: {e}")
            return []

        apps: list[SnapshotAppRecord] = []
        for app_dir in children:
            record = self._load_app(app_dir)
            if record is not None:
                apps.append(record)
        return apps

    def _load_app(self, app_dir: Path) -> SnapshotAppRecord | None:
        descriptor = app_dir / DESCRIPTOR_FILENAME
        if not descriptor.is_file():
            return None

        try:
            entry = read_descriptor(descriptor)
        except (json.JSONDecodeError, OSError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed descriptor {descriptor}: {e}")
            return None

        return SnapshotAppRecord(
            id=_stable_id(app_dir),
            name=entry.name,
            path=str(app_dir),
            bundle_id=entry.bundle_id,
            config_paths=list(entry.config_paths),
            is_currently_installed=self._checker.is_installed(entry.bundle_id),
            is_selected=False,
            category=entry.category,
        )

    # ── Async API ──

    async def scan_snapshots(self) -> list[SnapshotRecord]:
        return await asyncio.to_thread(self.list_snapshots)

    async def scan_apps(self, snapshot_path: str | Path) -> list[SnapshotAppRecord]:
        return await asyncio.to_thread(self.list_apps, snapshot_path)

    def find(self, name: str) -> SnapshotRecord | None:
        """Look up a snapshot by directory name."""
        for snapshot in self.list_snapshots():
            if snapshot.name == name:
                return snapshot
        return None
