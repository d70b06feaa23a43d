"""Application configuration entry model and its JSON form."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import Any
from uuid import UUID, uuid4

from loguru import logger

# Reference date for numeric timestamps written by the macOS app
APPLE_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)


class AppCategory(StrEnum):
    """Grouping used by the preset catalog."""

    DEVELOPMENT = "Development"
    MEDIA = "Media"
    PRODUCTIVITY = "Productivity"
    READING = "Reading"
    SYSTEM = "System"
    TERMINAL = "Terminal"
    UTILITY = "Utility"
    GRAPHICS_DESIGN = "Graphics & Design"
    PHOTOGRAPHY = "Photography"
    REFERENCE = "Reference"
    CUSTOM = "Custom"
    # Written by older releases
    DESIGN = "Design"

    @classmethod
    def parse(cls, raw: Any, default: AppCategory | None = None) -> AppCategory:
        """Decode a stored category; unknown values fall back to ``default``."""
        fallback = default or cls.DEVELOPMENT
        if raw is None:
            return fallback
        try:
            return cls(raw)
        except ValueError:
            logger.debug(f"Unknown category {raw!r}, using {fallback}")
            return fallback


def parse_timestamp(raw: Any) -> datetime | None:
    """
    Decode a stored date.

    Accepts ISO 8601 strings and numbers of seconds since 2001-01-01 UTC.
    Returns a naive local time, or ``None`` if the value cannot be read.
    """
    if raw is None or isinstance(raw, bool):
        return None
    try:
        if isinstance(raw, (int, float)):
            value = APPLE_EPOCH + timedelta(seconds=raw)
        elif isinstance(raw, str):
            value = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        else:
            return None
    except (ValueError, OverflowError):
        logger.debug(f"Unreadable timestamp {raw!r}")
        return None
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


@dataclass
class AppConfigEntry:
    """One application's configuration unit, keyed by ``bundle_id``."""

    name: str
    bundle_id: str
    config_paths: list[str] = field(default_factory=list)
    id: UUID = field(default_factory=uuid4)
    is_selected: bool = False
    is_installed: bool = True
    category: AppCategory = AppCategory.DEVELOPMENT
    is_user_added: bool = False
    created_at: datetime | None = None


def entry_to_dict(entry: AppConfigEntry) -> dict[str, Any]:
    """Serialize an entry using the on-disk (camelCase) key names."""
    return {
        "id": str(entry.id),
        "name": entry.name,
        "bundleId": entry.bundle_id,
        "configPaths": list(entry.config_paths),
        "isSelected": entry.is_selected,
        "isInstalled": entry.is_installed,
        "category": str(entry.category),
        "isUserAdded": entry.is_user_added,
        "createdAt": entry.created_at.isoformat() if entry.created_at else None,
    }


def entry_from_dict(data: dict[str, Any]) -> AppConfigEntry:
    """
    Reconstruct an entry from its JSON form.

    ``name``, ``bundleId`` and ``configPaths`` are required; older
    descriptors that only carry those still load. Optional fields that
    cannot be read fall back to their defaults. Raises ``KeyError`` or
    ``TypeError`` when a required field is missing or mistyped.
    """
    if not isinstance(data, dict):
        raise TypeError(f"expected an object, got {type(data).__name__}")

    name = data["name"]
    bundle_id = data["bundleId"]
    paths = data["configPaths"]
    if not isinstance(name, str) or not isinstance(bundle_id, str):
        raise TypeError("name and bundleId must be strings")
    if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
        raise TypeError("configPaths must be a list of strings")

    return AppConfigEntry(
        name=name,
        bundle_id=bundle_id,
        config_paths=list(paths),
        id=_parse_id(data.get("id")),
        is_selected=bool(data.get("isSelected", False)),
        is_installed=bool(data.get("isInstalled", True)),
        category=AppCategory.parse(data.get("category")),
        is_user_added=bool(data.get("isUserAdded", False)),
        created_at=parse_timestamp(data.get("createdAt")),
    )


def _parse_id(raw: Any) -> UUID:
    if isinstance(raw, str):
        try:
            return UUID(raw)
        except ValueError:
            logger.debug(f"Invalid entry id {raw!r}, assigning a new one")
    return uuid4()

