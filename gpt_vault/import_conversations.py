"""
Import a ChatGPT conversations.json export into a Markdown vault.

Each categorized conversation (title `"<category> - <title>"`) and each
YouTube summary conversation becomes a note under `<root>/output/`. Existing
notes are only replaced when the online conversation changed and the note
was not edited on disk; everything else is reported for manual review.

Usage:
    gpt-vault-import ~/Downloads/conversations.json
    gpt-vault-import ~/Downloads/conversations.json ~/vault -v
    gpt-vault-import ~/Downloads/conversations.json ~/vault --dry-run
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from json_repair import repair_json

from gpt_vault.config_types import VaultLayout, default_output_root
from gpt_vault.errors import (
    ArchiveError,
    ArchiveFormatError,
    ArchiveNotFoundError,
    HeaderParseError,
    RelocationError,
    SyncConflictError,
)
from gpt_vault.index import build_document_index
from gpt_vault.render import render_conversation
from gpt_vault.sync import SyncEngine, write_if_absent
from gpt_vault.transcript import linearize_conversation

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


@dataclass
class ImportStats:
    """Statistics from an import run."""

    written: int = 0  # New notes created
    updated: int = 0  # Notes overwritten with a newer online version
    unchanged: int = 0  # Notes left alone (same updated_at)
    conflicts: int = 0  # Notes needing manual verification
    ignored: int = 0  # Conversations without category or transcript
    relocated: int = 0  # Notes moved after a title/category change
    transcripts: int = 0  # New transcript notes

    @property
    def total(self) -> int:
        return self.written + self.updated + self.unchanged + self.conflicts + self.ignored


# ---------------------------------------------------------------------------
# Archive loading
# ---------------------------------------------------------------------------


def load_archive(json_path: Path) -> List[Dict[str, Any]]:
    """Load the list of conversations, repairing malformed JSON if needed."""
    if not json_path.exists():
        raise ArchiveNotFoundError(json_path)

    try:
        raw = json_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ArchiveError(f"Could not read {json_path}: {e}") from e
    try:
        conversations = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Archive %s is not valid JSON (%s); attempting repair", json_path, e)
        try:
            conversations = json.loads(repair_json(raw))
        except json.JSONDecodeError as repair_error:
            raise ArchiveFormatError(
                f"Failed to parse JSON: {repair_error}"
            ) from repair_error

    if not isinstance(conversations, list):
        raise ArchiveFormatError("Unexpected JSON format: expected a list of conversations")
    return conversations


# ---------------------------------------------------------------------------
# Import pipeline
# ---------------------------------------------------------------------------


def process_conversation(
    conv: Any,
    layout: VaultLayout,
    engine: SyncEngine,
    stats: ImportStats,
) -> None:
    """Linearize, render and sync one conversation, updating stats in place."""
    if not isinstance(conv, dict) or not conv.get("id"):
        logger.warning("Skipping conversation record without an id")
        stats.ignored += 1
        return

    transcript = linearize_conversation(conv)
    note = render_conversation(conv, transcript)
    if note is None:
        logger.debug("Skipping conversation %s (no category, no transcript)", conv["id"])
        stats.ignored += 1
        return

    if note.transcript_note is not None:
        transcript_path = layout.transcript_path(note.transcript_note.video_title)
        if write_if_absent(transcript_path, note.transcript_note.content, dry_run=engine.dry_run):
            stats.transcripts += 1

    path = layout.conversation_path(
        note.category, note.title, note.conversation_id, summary=note.is_summary
    )
    try:
        result = engine.sync(note.url, path, note.content)
    except HeaderParseError as e:
        logger.error("Could not parse YAML header for file %s: %s. Manual verification needed.", path, e)
        stats.conflicts += 1
        return
    except SyncConflictError as e:
        logger.error("%s. Manual verification needed.", e)
        stats.conflicts += 1
        return

    if result.relocated_from is not None:
        stats.relocated += 1
    if result.status == "written":
        stats.written += 1
    elif result.status == "updated":
        stats.updated += 1
    else:
        stats.unchanged += 1


def import_conversations(
    json_path: Path,
    layout: VaultLayout,
    *,
    dry_run: bool = False,
) -> ImportStats:
    """
    Import conversations.json into the vault described by layout.

    Args:
        json_path: Path to conversations.json file
        layout: Vault folders to index and write into
        dry_run: Decide and log every action without touching the vault

    Returns:
        ImportStats with counts per outcome

    Raises:
        ArchiveError: the archive is missing, unreadable or not a list of conversations
        RelocationError: a note could not be moved; the run stops there
    """
    conversations = load_archive(json_path)

    # Index before creating folders so a fresh vault indexes as empty.
    index = build_document_index(*layout.indexed_dirs)
    logger.info("Indexed %d existing notes", len(index))

    if not dry_run:
        layout.ensure_dirs()

    engine = SyncEngine(index, dry_run=dry_run)
    stats = ImportStats()
    for conv in conversations:
        process_conversation(conv, layout, engine, stats)
    return stats


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint for gpt-vault-import."""
    parser = argparse.ArgumentParser(
        description="Import a ChatGPT conversations.json export into a Markdown vault.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gpt-vault-import ~/Downloads/conversations.json
  gpt-vault-import ~/Downloads/conversations.json ~/vault
  gpt-vault-import ~/Downloads/conversations.json ~/vault --dry-run -v
        """,
    )
    parser.add_argument(
        "json_path",
        type=Path,
        help="Path to conversations.json file",
    )
    parser.add_argument(
        "output_root",
        type=Path,
        nargs="?",
        default=None,
        help="Vault root; notes go under <output_root>/output (default: output_root from config, else cwd)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be written or moved without touching the vault",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every note decision",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    json_path = args.json_path.expanduser().resolve()
    if args.output_root:
        output_root = args.output_root.expanduser().resolve()
    else:
        output_root = default_output_root()
    layout = VaultLayout(output_root)

    if args.verbose:
        print(f"Input: {json_path}")
        print(f"Output: {layout.base_dir}")

    try:
        stats = import_conversations(json_path, layout, dry_run=args.dry_run)
    except ArchiveError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except RelocationError as e:
        print(f"Error: {e}: {e.__cause__}", file=sys.stderr)
        return 1

    prefix = "Dry run. Would process" if args.dry_run else "Done. Processed"
    print(
        f"{prefix} {stats.total} conversations: "
        f"{stats.written} new, {stats.updated} updated, {stats.unchanged} unchanged, "
        f"{stats.relocated} moved, {stats.transcripts} transcripts, "
        f"{stats.conflicts} need manual verification, {stats.ignored} skipped."
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
