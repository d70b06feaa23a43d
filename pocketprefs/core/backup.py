"""Backup engine — copy selected apps' configuration files into a new snapshot."""

from __future__ import annotations

import asyncio
import json
import os
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable

from loguru import logger

from pocketprefs.core.catalog import DESCRIPTOR_FILENAME, SnapshotCatalog, snapshot_name
from pocketprefs.core.concurrency import gather_bounded
from pocketprefs.core.file_ops import copy, create_directory, exists, expand_path
from pocketprefs.core.progress import ProgressHandler, ProgressTracker
from pocketprefs.errors import DescriptorError, FileOperationError
from pocketprefs.models.app_config import AppConfigEntry, entry_to_dict
from pocketprefs.models.results import OperationResult
from pocketprefs.models.snapshot import SnapshotAppRecord, SnapshotRecord
from pocketprefs.utils import sanitize_name


class DirectoryAllocator:
    """
    Hands out per-app directory names inside one snapshot.

    The first claimant of a sanitized name gets it as-is; a later,
    different app whose name sanitizes the same way gets its bundle id
    appended (and a counter if even that is taken). Comparison is
    case-insensitive to stay safe on case-insensitive filesystems.
    """

    def __init__(self) -> None:
        self._taken: set[str] = set()

    def claim(self, name: str, bundle_id: str) -> str:
        base = sanitize_name(name)
        candidate = base
        if candidate.casefold() in self._taken:
            candidate = f"{base}_{sanitize_name(bundle_id)}"
            counter = 2
            while candidate.casefold() in self._taken:
                candidate = f"{base}_{sanitize_name(bundle_id)}_{counter}"
                counter += 1
        self._taken.add(candidate.casefold())
        return candidate


def write_descriptor(entry: AppConfigEntry, app_dir: Path) -> Path:
    """Write ``app_config.json`` (sorted keys, indented) into ``app_dir``."""
    path = app_dir / DESCRIPTOR_FILENAME
    tmp = path.with_suffix(".tmp")
    try:
        payload = json.dumps(entry_to_dict(entry), ensure_ascii=False, indent=2, sort_keys=True)
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(tmp, path)
    except (OSError, TypeError, ValueError) as e:
        tmp.unlink(missing_ok=True)
        raise DescriptorError(entry.name, str(e)) from e
    return path


class BackupEngine:
    """
    Snapshot writer.

    Each eligible app is backed up as an independent unit of work (at most
    ``max_concurrency`` at a time); within an app, its configured paths are
    copied concurrently.
    """

    def __init__(
        self,
        catalog: SnapshotCatalog,
        max_concurrency: int = 4,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._catalog = catalog
        self._max_concurrency = max(1, max_concurrency)
        self._clock = clock

    @property
    def snapshot_root(self) -> Path:
        return self._catalog.snapshot_root

    async def perform_backup(
        self,
        entries: Iterable[AppConfigEntry],
        progress: ProgressHandler | None = None,
        incremental_base: SnapshotRecord | None = None,
    ) -> OperationResult:
        """
        Back up every entry that is both selected and installed.

        With ``incremental_base``, apps present in that snapshot but not in
        the current selection are carried forward into the new snapshot.
        Never raises: all failures are reported in the result.
        """
        selected = [e for e in entries if e.is_selected and e.is_installed]
        if not selected:
            logger.warning("No apps selected for backup")
            return OperationResult()

        snapshot_dir = self.snapshot_root / snapshot_name(self._clock())
        try:
            await asyncio.to_thread(create_directory, snapshot_dir)
        except FileOperationError as e:
            logger.error(f"Failed to create snapshot directory: {e}")
            return OperationResult(
                success_count=0,
                failed_entries=[(entry.name, str(e)) for entry in selected],
                total_processed=len(selected),
            )
        logger.info(f"Created snapshot directory: {snapshot_dir}")

        allocator = DirectoryAllocator()
        targets = [
            (entry, snapshot_dir / allocator.claim(entry.name, entry.bundle_id))
            for entry in selected
        ]

        result = OperationResult()
        if incremental_base is not None:
            result = await self._carry_forward(
                incremental_base,
                {entry.bundle_id for entry in selected},
                snapshot_dir,
                allocator,
            )

        tracker = ProgressTracker(len(targets), progress)

        async def _unit(target: tuple[AppConfigEntry, Path]) -> tuple[str, str | None]:
            entry, app_dir = target
            error = await self._backup_entry(entry, app_dir)
            if error is None:
                logger.info(f"Successfully backed up: {entry.name}")
                tracker.advance(f"Backed up {entry.name}")
            else:
                logger.error(f"Failed to back up {entry.name}: {error}")
                tracker.advance(f"Failed to back up {entry.name}")
            return entry.name, error

        outcomes = await gather_bounded(targets, _unit, self._max_concurrency)
        result = result.merge(OperationResult.from_outcomes(outcomes))

        logger.info(
            f"Backup finished: {result.success_count}/{result.total_processed} succeeded "
            f"in {snapshot_dir.name}"
        )
        return result

    async def _backup_entry(self, entry: AppConfigEntry, app_dir: Path) -> str | None:
        """Back up one app; returns an error description or ``None``."""
        try:
            await asyncio.to_thread(create_directory, app_dir)

            outcomes = await asyncio.gather(
                *(self._backup_path(path, app_dir) for path in entry.config_paths)
            )
            failures = [reason for reason in outcomes if reason]
            if failures:
                return "; ".join(failures)

            await asyncio.to_thread(write_descriptor, entry, app_dir)
        except Exception as e:
            return str(e)
        return None

    async def _backup_path(self, config_path: str, app_dir: Path) -> str | None:
        source = expand_path(config_path)
        if not exists(source):
            logger.debug(f"Skipping missing path: {config_path}")
            return None
        try:
            await asyncio.to_thread(copy, source, app_dir / source.name)
        except FileOperationError as e:
            logger.warning(f"Failed to back up file {config_path}: {e}")
            return str(e)
        return None

    # ── Incremental ──

    async def _carry_forward(
        self,
        base: SnapshotRecord,
        selected_bundle_ids: set[str],
        snapshot_dir: Path,
        allocator: DirectoryAllocator,
    ) -> OperationResult:
        """Copy apps from ``base`` that the current run does not back up itself."""
        if not exists(base.path):
            logger.warning(f"Incremental base not found, doing a full backup: {base.path}")
            return OperationResult()

        base_apps = await self._catalog.scan_apps(base.path)
        carried = [app for app in base_apps if app.bundle_id not in selected_bundle_ids]
        if not carried:
            return OperationResult()

        targets = [
            (app, snapshot_dir / allocator.claim(Path(app.path).name, app.bundle_id))
            for app in carried
        ]

        async def _unit(target: tuple[SnapshotAppRecord, Path]) -> tuple[str, str | None]:
            app, dest = target
            try:
                await asyncio.to_thread(copy, app.path, dest)
            except FileOperationError as e:
                logger.error(f"Failed to copy from base {app.name}: {e}")
                return app.name, str(e)
            logger.info(f"Copied from base: {app.name}")
            return app.name, None

        outcomes = await gather_bounded(targets, _unit, self._max_concurrency)
        return OperationResult.from_outcomes(outcomes)
