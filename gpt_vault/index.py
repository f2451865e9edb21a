"""
Index of notes already in the vault, keyed by a front-matter field.

The index is built once at startup and handed to the sync engine as a
read-only snapshot. It lets a note whose title or category changed be moved
to its new path instead of being written twice.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Union

from gpt_vault.frontmatter import read_header

DEFAULT_KEY = "URL"

logger = logging.getLogger(__name__)


class DocumentIndex(Mapping[str, Path]):
    """Immutable identifier -> note path mapping."""

    def __init__(self, entries: Optional[Mapping[str, Path]] = None):
        self._entries = MappingProxyType(dict(entries or {}))

    def __getitem__(self, identifier: str) -> Path:
        return self._entries[identifier]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"DocumentIndex({len(self)} entries)"


def scan_directory(root: Path, key: str = DEFAULT_KEY) -> Dict[str, Path]:
    """Map `key` values from the front matter of every `.md` file under root.

    Uses an explicit stack so deep trees do not hit the recursion limit.
    Files without a header or without the key are skipped; on duplicate keys
    the file visited last wins.
    """
    found: Dict[str, Path] = {}
    if not root.is_dir():
        return found

    stack = [root]
    while stack:
        current = stack.pop()
        try:
            entries = list(current.iterdir())
        except OSError as e:
            logger.warning("Skipping unreadable folder %s: %s", current, e)
            continue
        for entry in entries:
            if entry.is_dir():
                if not entry.is_symlink():
                    stack.append(entry)
            elif entry.is_file() and entry.suffix == ".md":
                header = read_header(entry)
                if not header:
                    continue
                identifier = header.get(key)
                if identifier:
                    found[str(identifier)] = entry.resolve()
    return found


def build_document_index(*roots: Union[str, Path], key: str = DEFAULT_KEY) -> DocumentIndex:
    """Scan each root in order; entries from later roots override earlier ones."""
    entries: Dict[str, Path] = {}
    for root in roots:
        found = scan_directory(Path(root), key)
        logger.debug("Indexed %d notes under %s", len(found), root)
        entries.update(found)
    return DocumentIndex(entries)
