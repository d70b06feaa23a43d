"""Application context — service container for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pocketprefs.config import Config
    from pocketprefs.core.backup import BackupEngine
    from pocketprefs.core.catalog import SnapshotCatalog
    from pocketprefs.core.install_checker import InstallChecker
    from pocketprefs.core.restore import RestoreEngine
    from pocketprefs.core.transfer import TransferManager
    from pocketprefs.data.registry import CustomAppRegistry


@dataclass
class AppContext:
    """
    Central service container.

    Front ends receive this at construction time; no service reaches for a
    global instance on its own.
    """

    config: Config
    install_checker: InstallChecker
    registry: CustomAppRegistry

    catalog: SnapshotCatalog
    backup_engine: BackupEngine
    restore_engine: RestoreEngine
    transfer: TransferManager
