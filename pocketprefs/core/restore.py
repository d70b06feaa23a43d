"""Restore engine — put snapshot files back at their live locations."""

from __future__ import annotations

import asyncio
from pathlib import Path

from loguru import logger

from pocketprefs.core.concurrency import gather_bounded
from pocketprefs.core.file_ops import copy, exists, expand_path, protective_rename
from pocketprefs.core.progress import ProgressHandler, ProgressTracker
from pocketprefs.errors import FileOperationError, RestoreError
from pocketprefs.models.results import OperationResult
from pocketprefs.models.snapshot import SnapshotAppRecord, SnapshotRecord


def _restore_path(app_dir: Path, config_path: str) -> bool:
    """
    Restore one configured path from ``app_dir``.

    Whatever currently lives at the destination is first moved aside with
    :func:`protective_rename`. Returns ``False`` if the snapshot holds no
    copy of this path.
    """
    live = expand_path(config_path)
    source = app_dir / live.name
    if not exists(source):
        logger.debug(f"Nothing to restore for {config_path}")
        return False

    protective_rename(live)
    copy(source, live)
    return True


class RestoreEngine:
    """
    Snapshot reader.

    Selected apps are restored as independent units, at most
    ``max_concurrency`` at a time. All configured paths of an app are
    attempted even when one of them fails; the app is then reported failed.
    """

    def __init__(self, max_concurrency: int = 4) -> None:
        self._max_concurrency = max(1, max_concurrency)

    async def perform_restore(
        self,
        snapshot: SnapshotRecord,
        progress: ProgressHandler | None = None,
    ) -> OperationResult:
        """Restore every selected app of ``snapshot``. Never raises."""
        selected = snapshot.selected_apps
        if not selected:
            logger.warning("No apps selected for restore")
            return OperationResult()

        tracker = ProgressTracker(len(selected), progress)

        async def _unit(app: SnapshotAppRecord) -> tuple[str, str | None]:
            try:
                await self._restore_app(app)
            except Exception as e:
                logger.error(f"Failed to restore {app.name}: {e}")
                tracker.advance(f"Failed to restore {app.name}")
                return app.name, str(e)
            logger.info(f"Successfully restored: {app.name}")
            tracker.advance(f"Restored {app.name}")
            return app.name, None

        outcomes = await gather_bounded(selected, _unit, self._max_concurrency)
        result = OperationResult.from_outcomes(outcomes)

        logger.info(
            f"Restore from {snapshot.name} finished: "
            f"{result.success_count}/{result.total_processed} succeeded"
        )
        return result

    async def _restore_app(self, app: SnapshotAppRecord) -> int:
        """Restore all configured paths of ``app``; returns how many were restored."""
        app_dir = Path(app.path)
        outcomes = await asyncio.gather(
            *(asyncio.to_thread(_restore_path, app_dir, p) for p in app.config_paths),
            return_exceptions=True,
        )

        reasons: list[str] = []
        for outcome in outcomes:
            if isinstance(outcome, Exception):
                if not isinstance(outcome, FileOperationError):
                    logger.error(f"Unexpected error restoring {app.name}: {outcome!r}")
                reasons.append(str(outcome))
            elif isinstance(outcome, BaseException):
                raise outcome

        if reasons:
            raise RestoreError(app.name, "; ".join(reasons))
        return sum(1 for outcome in outcomes if outcome is True)
