"""Vault layout and optional configuration file loading."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

CONFIG_ENV_VAR = "GPT_VAULT_CONFIG"
CONFIG_FILENAME = "gpt_vault_config.json"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VaultLayout:
    """Folders notes are written to, all under `<output_root>/output`."""

    output_root: Path

    @property
    def base_dir(self) -> Path:
        return self.output_root / "output"

    @property
    def conversations_dir(self) -> Path:
        return self.base_dir / "conv"

    @property
    def summaries_dir(self) -> Path:
        return self.base_dir / "yt-summaries"

    @property
    def transcripts_dir(self) -> Path:
        return self.base_dir / "yt-transcript"

    @property
    def indexed_dirs(self) -> Tuple[Path, Path]:
        """Folders whose notes carry a conversation URL, in index order."""
        return (self.conversations_dir, self.summaries_dir)

    def ensure_dirs(self) -> None:
        for folder in (self.conversations_dir, self.summaries_dir, self.transcripts_dir):
            folder.mkdir(parents=True, exist_ok=True)

    def conversation_path(
        self, category: str, title: str, conversation_id: str, *, summary: bool = False
    ) -> Path:
        """Path of a conversation note: `<folder>/<category>/<title> - <id[-6:]>.md`."""
        folder = self.summaries_dir if summary else self.conversations_dir
        return folder / category / f"{title} - {conversation_id[-6:]}.md"

    def transcript_path(self, video_title: str) -> Path:
        return self.transcripts_dir / f"{video_title}.md"


def load_config() -> Tuple[Dict[str, Any], Optional[Path]]:
    """
    Load optional configuration for default paths.

    Search order:
    1. Path from GPT_VAULT_CONFIG (if set)
    2. ./gpt_vault_config.json in current working directory
    3. ~/.gpt_vault_config.json in the user home directory

    Returns (config_dict, config_path) or ({}, None) if not found.
    """
    candidates: List[Path] = []
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).expanduser())
    candidates.append(Path.cwd() / CONFIG_FILENAME)
    candidates.append(Path.home() / f".{CONFIG_FILENAME}")

    for path in candidates:
        if not path.is_file():
            continue
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Ignoring invalid config file (JSON parse error): %s", path)
            break
        if not isinstance(data, dict):
            logger.warning("Ignoring config file without a JSON object: %s", path)
            break
        return data, path

    return {}, None


def resolve_path(path_str: str, config_dir: Optional[Path]) -> Path:
    """Resolve a path, expanding ~ and relative paths."""
    p = Path(path_str).expanduser()
    if not p.is_absolute() and config_dir:
        p = config_dir / p
    return p.resolve()


def default_output_root() -> Path:
    """Output root from the config file, falling back to the working directory."""
    config, config_path = load_config()
    output_root = config.get("output_root")
    if output_root:
        config_dir = config_path.parent if config_path else None
        return resolve_path(output_root, config_dir)
    return Path.cwd()
