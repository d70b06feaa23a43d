"""Custom app registry — persistent store for user-defined app entries."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Callable, Iterable
from uuid import UUID

from loguru import logger

from pocketprefs.models.app_config import (
    AppCategory,
    AppConfigEntry,
    entry_from_dict,
    entry_to_dict,
)


class RegistryEventKind(StrEnum):
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"
    BATCH_UPDATED = "batch_updated"


@dataclass(frozen=True)
class RegistryEvent:
    kind: RegistryEventKind
    apps: list[AppConfigEntry] = field(default_factory=list)
    ids: frozenset[UUID] = frozenset()


RegistryListener = Callable[[RegistryEvent], None]


def _as_custom(entry: AppConfigEntry) -> AppConfigEntry:
    return replace(
        entry,
        is_user_added=True,
        category=AppCategory.CUSTOM,
        created_at=entry.created_at or datetime.now(),
    )


class CustomAppRegistry:
    """
    User-added app definitions, persisted to ``custom_apps.json``.

    Every mutating operation writes the whole list once and then notifies
    subscribers. ``bundle_id`` is unique within the registry.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._apps: list[AppConfigEntry] = []
        self._listeners: list[RegistryListener] = []

    # ── Persistence ──

    def load(self) -> None:
        """Load entries from disk; a missing file means an empty registry."""
        self._apps = []
        if not self._path.exists():
            logger.info("No custom apps file found")
            return
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Failed to load custom apps: {e}")
            return

        if not isinstance(data, list):
            logger.error(f"Unexpected custom apps format in {self._path}")
            return
        for item in data:
            try:
                self._apps.append(_as_custom(entry_from_dict(item)))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed custom app: {e}")
        logger.info(f"Loaded {len(self._apps)} custom apps")

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(
                    [entry_to_dict(app) for app in self._apps],
                    f,
                    ensure_ascii=False,
                    indent=2,
                    sort_keys=True,
                )
            tmp.replace(self._path)
            logger.debug(f"Saved {len(self._apps)} custom apps")
        except OSError as e:
            logger.error(f"Failed to save custom apps: {e}")
            tmp.unlink(missing_ok=True)

    # ── Observers ──

    def subscribe(self, listener: RegistryListener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, event: RegistryEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Registry listener failed on {event.kind}: {e}")

    # ── Queries ──

    @property
    def custom_apps(self) -> list[AppConfigEntry]:
        """A copy of the current entries."""
        return list(self._apps)

    def get(self, app_id: UUID) -> AppConfigEntry | None:
        return next((app for app in self._apps if app.id == app_id), None)

    def bundle_id_exists(self, bundle_id: str) -> bool:
        return any(app.bundle_id == bundle_id for app in self._apps)

    # ── Mutations ──

    def add(self, entry: AppConfigEntry) -> AppConfigEntry:
        new_app = replace(
            entry,
            is_user_added=True,
            category=AppCategory.CUSTOM,
            created_at=datetime.now(),
        )
        self._apps.append(new_app)
        self._save()
        self._notify(RegistryEvent(RegistryEventKind.ADDED, apps=[new_app]))
        logger.info(f"Added app: {new_app.name}")
        return new_app

    def update(self, entry: AppConfigEntry) -> bool:
        """Replace the entry with the same id; unknown ids are ignored."""
        for index, app in enumerate(self._apps):
            if app.id == entry.id:
                self._apps[index] = entry
                break
        else:
            logger.warning(f"App not found for update: {entry.id}")
            return False

        self._save()
        self._notify(RegistryEvent(RegistryEventKind.UPDATED, apps=[entry]))
        logger.info(f"Updated app: {entry.name}")
        return True

    def remove_by_ids(self, ids: Iterable[UUID]) -> int:
        id_set = frozenset(ids)
        if not id_set:
            return 0

        before = len(self._apps)
        self._apps = [app for app in self._apps if app.id not in id_set]
        removed = before - len(self._apps)

        self._save()
        self._notify(RegistryEvent(RegistryEventKind.REMOVED, ids=id_set))
        logger.info(f"Removed {removed} apps")
        return removed

    def batch_replace(self, entries: Iterable[AppConfigEntry]) -> None:
        """Swap in a complete new list in one write."""
        self._apps = [_as_custom(entry) for entry in entries]
        self._save()
        self._notify(RegistryEvent(RegistryEventKind.BATCH_UPDATED, apps=list(self._apps)))
        logger.info(f"Batch updated {len(self._apps)} apps")
