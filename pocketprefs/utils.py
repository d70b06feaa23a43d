"""Shared utility functions."""

from __future__ import annotations

NOT_FOUND = "Not Found"

_UNSAFE_DIR_CHARS = ' /\\'


def format_size(size_bytes: int) -> str:
    """Format byte count to human-readable string."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.2f} GB"


def sanitize_name(name: str) -> str:
    """Turn a display name into a single directory name ("Visual Studio Code" → "Visual_Studio_Code")."""
    for ch in _UNSAFE_DIR_CHARS:
        name = name.replace(ch, "_")
    if name in ("", ".", ".."):
        name = name.replace(".", "_") or "_"
    return name
