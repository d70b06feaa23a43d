"""Exception hierarchy shared by the engines and the import/export layer."""

from __future__ import annotations

from pathlib import Path


class PocketPrefsError(Exception):
    """Base class for all PocketPrefs errors."""


# ── File operations ──


class FileOperationError(PocketPrefsError):
    """A filesystem primitive failed."""

    action = "File operation failed at"

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.action} {self.path}: {reason}")


class DirectoryCreateError(FileOperationError):
    action = "Failed to create directory"


class CopyError(FileOperationError):
    action = "Failed to copy"


class ProtectiveRenameError(FileOperationError):
    action = "Failed to preserve existing"


# ── Engine errors ──


class DescriptorError(PocketPrefsError):
    """An app descriptor could not be encoded or decoded."""

    def __init__(self, app: str, reason: str) -> None:
        self.app = app
        self.reason = reason
        super().__init__(f"Invalid descriptor for {app}: {reason}")


class RestoreError(PocketPrefsError):
    def __init__(self, app: str, reason: str) -> None:
        self.app = app
        self.reason = reason
        super().__init__(f"Failed to restore {app}: {reason}")


# ── Import / export ──


class TransferError(PocketPrefsError):
    """Whole-operation failure while importing or exporting custom apps."""


class IncompatibleVersionError(TransferError):
    def __init__(self, version: int, supported: int) -> None:
        self.version = version
        self.supported = supported
        super().__init__(
            f"Import file version {version} is newer than supported version {supported}"
        )


class InvalidFormatError(TransferError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid import file: {reason}")


class EmptyExportError(TransferError):
    def __init__(self) -> None:
        super().__init__("No custom apps to export")
