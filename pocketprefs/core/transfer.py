"""Import / export of custom app definitions.

File format::

    {
      "version": 1,
      "exportDate": "2025-01-05T15:30:00",
      "customApps": [ {...AppConfigEntry...}, ... ]
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable
from uuid import UUID, uuid4

from loguru import logger

from pocketprefs.data.registry import CustomAppRegistry
from pocketprefs.errors import (
    EmptyExportError,
    IncompatibleVersionError,
    InvalidFormatError,
    TransferError,
)
from pocketprefs.models.app_config import (
    AppCategory,
    AppConfigEntry,
    entry_from_dict,
    entry_to_dict,
    parse_timestamp,
)
from pocketprefs.models.results import MergeResult

SUPPORTED_VERSION = 1


@dataclass
class ExportEnvelope:
    version: int
    export_date: datetime | None
    custom_apps: list[AppConfigEntry] = field(default_factory=list)


def default_export_filename(today: date | None = None) -> str:
    day = today or date.today()
    return f"PocketPrefs_CustomApps_{day.isoformat()}.json"


def encode_envelope(envelope: ExportEnvelope) -> str:
    data = {
        "version": envelope.version,
        "exportDate": envelope.export_date.isoformat() if envelope.export_date else None,
        "customApps": [entry_to_dict(app) for app in envelope.custom_apps],
    }
    return json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True)


def decode_envelope(text: str) -> ExportEnvelope:
    """
    Parse an export file.

    The version is checked before anything else is decoded, so a file from
    a newer release is rejected as incompatible even if the rest of it
    would not parse.
    """
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidFormatError(f"not valid JSON ({e})") from e
    if not isinstance(data, dict):
        raise InvalidFormatError("top level must be an object")

    version = data.get("version")
    if not isinstance(version, int) or isinstance(version, bool):
        raise InvalidFormatError("missing or non-integer version")
    if version > SUPPORTED_VERSION:
        raise IncompatibleVersionError(version, SUPPORTED_VERSION)

    raw_apps = data.get("customApps")
    if not isinstance(raw_apps, list):
        raise InvalidFormatError("customApps must be a list")

    export_date = parse_timestamp(data.get("exportDate"))
    try:
        apps = [entry_from_dict(item) for item in raw_apps]
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidFormatError(str(e)) from e

    return ExportEnvelope(version=version, export_date=export_date, custom_apps=apps)


def plan_merge(
    existing: list[AppConfigEntry],
    imported: list[AppConfigEntry],
) -> tuple[list[AppConfigEntry], MergeResult]:
    """
    Merge ``imported`` into ``existing`` by bundle id.

    - unknown bundle id → added with a fresh id
    - same bundle id, different name or path set → updated, keeps the existing id
    - same bundle id, same name and path set → skipped, existing entry kept
    - existing entries absent from the import are carried over unchanged

    Pure function: returns the final list and the counts.
    """
    existing_by_bundle: dict[str, AppConfigEntry] = {}
    for app in existing:
        existing_by_bundle.setdefault(app.bundle_id, app)

    imported_ids: set[str] = set()
    final: list[AppConfigEntry] = []
    result = MergeResult()

    for app in imported:
        if app.bundle_id in imported_ids:
            logger.warning(f"Duplicate bundle id in import, ignoring: {app.bundle_id}")
            result.skipped += 1
            continue
        imported_ids.add(app.bundle_id)

        current = existing_by_bundle.get(app.bundle_id)
        if current is None:
            final.append(
                replace(
                    app,
                    id=uuid4(),
                    is_user_added=True,
                    category=AppCategory.CUSTOM,
                    created_at=datetime.now(),
                )
            )
            result.added += 1
            logger.debug(f"Added new app: {app.name} with {len(app.config_paths)} paths")
        elif current.name != app.name or set(current.config_paths) != set(app.config_paths):
            final.append(
                replace(
                    current,
                    name=app.name,
                    config_paths=list(app.config_paths),
                    is_user_added=True,
                    category=AppCategory.CUSTOM,
                )
            )
            result.updated += 1
            logger.debug(f"Updated app: {app.name} with {len(app.config_paths)} paths")
        else:
            final.append(current)
            result.skipped += 1
            logger.debug(f"Skipped unchanged app: {current.name}")

    final.extend(app for app in existing if app.bundle_id not in imported_ids)
    return final, result


class TransferManager:
    """Reads and writes export files against a :class:`CustomAppRegistry`."""

    def __init__(self, registry: CustomAppRegistry) -> None:
        self._registry = registry

    # ── Export ──

    def export_custom_apps(self, path: Path, selected_ids: Iterable[UUID] | None = None) -> int:
        """
        Write custom apps to ``path``; returns how many were exported.

        ``selected_ids`` limits the export; ``None`` or empty exports all.
        """
        ids = set(selected_ids or ())
        apps = [app for app in self._registry.custom_apps if not ids or app.id in ids]
        if not apps:
            logger.warning("No apps to export")
            raise EmptyExportError()

        payload = encode_envelope(
            ExportEnvelope(version=SUPPORTED_VERSION, export_date=datetime.now(), custom_apps=apps)
        )
        tmp = path.with_suffix(".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(payload)
            tmp.replace(path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            logger.error(f"Export failed: {e}")
            raise TransferError(f"Failed to write {path}: {e}") from e

        logger.info(f"Successfully exported {len(apps)} custom apps to {path}")
        return len(apps)

    # ── Import ──

    def _read(self, path: Path) -> ExportEnvelope:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise InvalidFormatError(f"cannot read {path}: {e}") from e
        return decode_envelope(text)

    def preview_import(self, path: Path) -> MergeResult:
        """Counts the import would produce, without touching the registry."""
        envelope = self._read(path)
        _, result = plan_merge(self._registry.custom_apps, envelope.custom_apps)
        return result

    def import_custom_apps(self, path: Path) -> MergeResult:
        """Merge an export file into the registry with a single batch write."""
        envelope = self._read(path)
        final, result = plan_merge(self._registry.custom_apps, envelope.custom_apps)
        self._registry.batch_replace(final)
        logger.info(
            f"Import finished: {result.added} added, {result.updated} updated, "
            f"{result.skipped} skipped"
        )
        return result
