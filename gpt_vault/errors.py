"""Exceptions raised while importing and syncing conversations."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional


class GptVaultError(Exception):
    """Base class for all gpt-vault errors."""


class ArchiveError(GptVaultError):
    """The conversations archive could not be used."""


class ArchiveNotFoundError(ArchiveError):
    def __init__(self, path: Path):
        super().__init__(f"Input file not found: {path}")
        self.path = path


class ArchiveFormatError(ArchiveError):
    """The archive parsed, but is not a list of conversations."""


class SyncError(GptVaultError):
    """A single note could not be synced."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class HeaderParseError(SyncError):
    """A front-matter header is missing or is not a YAML mapping."""


class SyncConflictError(SyncError):
    """The disk and incoming versions cannot be reconciled automatically."""


class TypeConflictError(SyncConflictError):
    def __init__(self, path: Path, disk_type: Any, incoming_type: Any):
        super().__init__(
            f'Conflict for file {path}: type mismatch '
            f'(disk: "{disk_type}" vs online: "{incoming_type}")',
            path,
        )
        self.disk_type = disk_type
        self.incoming_type = incoming_type


class VersionConflictError(SyncConflictError):
    def __init__(self, path: Path, disk_updated_at: Any, incoming_updated_at: Any):
        super().__init__(
            f"Conflict for file {path}: updated_at mismatch "
            f"(disk: {disk_updated_at} vs online: {incoming_updated_at}) "
            "and disk has modified_at",
            path,
        )
        self.disk_updated_at = disk_updated_at
        self.incoming_updated_at = incoming_updated_at


class RelocationError(SyncError):
    """Moving a previously synced note to its new path failed."""

    def __init__(self, source: Path, destination: Path):
        super().__init__(f"Could not move {source} to {destination}", destination)
        self.source = source
        self.destination = destination
