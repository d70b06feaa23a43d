"""Snapshot catalog models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from pocketprefs.models.app_config import AppCategory


@dataclass
class SnapshotAppRecord:
    """Point-in-time view of one app inside a snapshot."""

    id: UUID
    name: str
    path: str  # The app's subdirectory inside the snapshot
    bundle_id: str
    config_paths: list[str] = field(default_factory=list)
    is_currently_installed: bool = False
    is_selected: bool = False
    category: AppCategory = AppCategory.DEVELOPMENT


@dataclass
class SnapshotRecord:
    """One timestamped backup directory discovered on disk."""

    id: UUID
    path: str
    name: str  # Directory name, encodes created_at
    created_at: datetime
    apps: list[SnapshotAppRecord] = field(default_factory=list)

    @property
    def selected_apps(self) -> list[SnapshotAppRecord]:
        return [app for app in self.apps if app.is_selected]
