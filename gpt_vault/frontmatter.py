"""
YAML front-matter helpers.

A note starts with a `---` line, followed by a YAML mapping, closed by a
second `---` line. Everything after the closing line is the body.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from gpt_vault.errors import HeaderParseError

DELIMITER = "---"

logger = logging.getLogger(__name__)


def split_front_matter(content: str) -> Tuple[Optional[str], str]:
    """Return (header_text, body). header_text is None when there is no header block."""
    lines = content.splitlines()
    if not lines or lines[0].strip() != DELIMITER:
        return None, content
    for idx in range(1, len(lines)):
        if lines[idx].strip() == DELIMITER:
            return "\n".join(lines[1:idx]), "\n".join(lines[idx + 1:])
    return None, content


def parse_header(content: str, path: Optional[Path] = None) -> Dict[str, Any]:
    """Parse the front-matter mapping of a note.

    Raises HeaderParseError when the header block is missing, is not valid
    YAML, or does not hold a mapping.
    """
    header_text, _ = split_front_matter(content)
    if header_text is None:
        raise HeaderParseError("No front-matter header found", path)
    try:
        data = yaml.safe_load(header_text)
    except yaml.YAMLError as e:
        raise HeaderParseError(f"YAML parsing error: {e}", path) from e
    if not isinstance(data, dict):
        raise HeaderParseError("Front-matter header is not a mapping", path)
    return data


def read_header(path: Path) -> Optional[Dict[str, Any]]:
    """Best-effort header read; None when the file has no usable header."""
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Skipping unreadable note %s: %s", path, e)
        return None
    try:
        return parse_header(content, path)
    except HeaderParseError:
        return None


def _round_trips(value: str) -> bool:
    try:
        return yaml.safe_load(f"value: {value}") == {"value": value}
    except yaml.YAMLError:
        return False


def yaml_scalar(value: Any, *, quote: bool = False) -> str:
    """Render a header value, double-quoting strings YAML would misread."""
    if not isinstance(value, str):
        return str(value)
    if quote or not _round_trips(value):
        return json.dumps(value, ensure_ascii=False)
    return value


def format_front_matter(
    fields: Mapping[str, Any], quoted: Tuple[str, ...] = ()
) -> List[str]:
    """Render a header block as lines, delimiters included.

    None values render as an empty field, lists as an indented block sequence.
    """
    lines = [DELIMITER]
    for key, value in fields.items():
        if value is None:
            lines.append(f"{key}:")
        elif isinstance(value, list):
            lines.append(f"{key}:")
            for item in value:
                lines.append(f"   - {yaml_scalar(item)}")
        else:
            lines.append(f"{key}: {yaml_scalar(value, quote=key in quoted)}")
    lines.append(DELIMITER)
    return lines
