"""
Conflict-aware sync of rendered notes into the vault.

Notes on disk may have been edited by hand. An editor that changes a note
is expected to add a `modified_at` field to its front matter; this package
never writes that field. Comparing headers of the disk and incoming
versions gives this decision table:

| disk note | `type` | `updated_at` | disk `modified_at` | action |
| --- | --- | --- | --- | --- |
| missing | | | | write |
| present | differs | | | conflict |
| present | same | same | absent | nothing (unchanged) |
| present | same | same | present | nothing (local edits kept) |
| present | same | differs | absent | overwrite |
| present | same | differs | present | conflict |

Before that, a note whose title or category changed is moved from the path
recorded in the index to its new path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional

from gpt_vault.errors import (
    HeaderParseError,
    RelocationError,
    TypeConflictError,
    VersionConflictError,
)
from gpt_vault.frontmatter import parse_header
from gpt_vault.index import DocumentIndex

SyncStatus = Literal["written", "updated", "unchanged", "unchanged_local_edits"]

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    status: SyncStatus
    path: Path
    relocated_from: Optional[Path] = None


def decide(disk_content: str, new_content: str, path: Path) -> SyncStatus:
    """Apply the decision table to an existing note.

    Returns "updated", "unchanged" or "unchanged_local_edits". Raises
    HeaderParseError if either header is unusable, TypeConflictError or
    VersionConflictError when the versions cannot be reconciled.
    """
    disk_header = parse_header(disk_content, path)
    new_header = parse_header(new_content, path)

    if disk_header.get("type") != new_header.get("type"):
        raise TypeConflictError(path, disk_header.get("type"), new_header.get("type"))

    locally_modified = bool(disk_header.get("modified_at"))
    if disk_header.get("updated_at") == new_header.get("updated_at"):
        return "unchanged_local_edits" if locally_modified else "unchanged"
    if locally_modified:
        raise VersionConflictError(path, disk_header.get("updated_at"), new_header.get("updated_at"))
    return "updated"


def write_note(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def write_if_absent(path: Path, content: str, *, dry_run: bool = False) -> bool:
    """Write a note only if nothing exists at path yet. Returns True if written."""
    if path.exists():
        return False
    if not dry_run:
        write_note(path, content)
    logger.info("Saved new file: %s", path)
    return True


class SyncEngine:
    """Sync rendered notes against the vault, consulting a read-only index.

    With dry_run set, decisions are computed and logged but nothing on disk
    is moved or written.
    """

    def __init__(self, index: DocumentIndex, *, dry_run: bool = False):
        self.index = index
        self.dry_run = dry_run

    def relocate(self, identifier: str, path: Path) -> Optional[Path]:
        """Move the indexed note for identifier to path. Returns the old path if moved."""
        indexed = self.index.get(identifier)
        if indexed is None or indexed.resolve() == path.resolve():
            return None
        if not indexed.exists():
            logger.debug("Indexed note %s for %s no longer exists", indexed, identifier)
            return None

        if not self.dry_run:
            path.parent.mkdir(parents=True, exist_ok=True)
            try:
                indexed.rename(path)
            except OSError as e:
                raise RelocationError(indexed, path) from e
        logger.info("Moved %s -> %s", indexed, path)
        return indexed

    def sync(self, identifier: str, path: Path, content: str) -> SyncResult:
        """Bring the note at path in line with content, or raise on conflict."""
        relocated_from = self.relocate(identifier, path)

        # A dry run leaves the note where the index found it.
        current = relocated_from if (self.dry_run and relocated_from) else path

        if not current.exists():
            if not self.dry_run:
                write_note(path, content)
            logger.info("Saved new file: %s", path)
            return SyncResult("written", path, relocated_from)

        try:
            disk_content = current.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise HeaderParseError(f"Could not read existing note: {e}", path) from e
        status = decide(disk_content, content, path)
        if status == "updated":
            if not self.dry_run:
                write_note(path, content)
            logger.info("Updated file %s as online version is newer", path)
        elif status == "unchanged":
            logger.debug("No changes for file %s (updated_at unchanged, no modified_at)", path)
        else:
            logger.debug("No changes for file %s (updated_at unchanged, disk has modified_at)", path)
        return SyncResult(status, path, relocated_from)
