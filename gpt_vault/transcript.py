"""
Linearize a ChatGPT conversation graph into a chronological transcript.

An export stores each conversation as a `mapping` of nodes linked to their
parent. Edits and regenerations create branches; the branch the user last
saw ends at `current_node`. Walking parent links from there to the root and
reversing the result gives the visible conversation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

ROLE_LABELS = {
    "assistant": "ChatGPT",
    "tool": "ChatGPT",
}
USER_SYSTEM_LABEL = "Custom user info"

TEXT_CONTENT_TYPES = {"text", "multimodal_text"}
ASSET_POINTER_TYPES = {
    "audio_asset_pointer",
    "image_asset_pointer",
    "video_container_asset_pointer",
}
REAL_TIME_AV_TYPE = "real_time_user_audio_video_asset_pointer"
AUDIO_TRANSCRIPTION_TYPE = "audio_transcription"
SOURCES_FOOTNOTE_TYPE = "sources_footnote"

logger = logging.getLogger(__name__)


@dataclass
class MessagePart:
    kind: str                                # "text", "transcript" or "asset"
    text: Optional[str] = None
    asset: Optional[Dict[str, Any]] = None


@dataclass
class Message:
    author: str                              # Display label, e.g. "ChatGPT"
    parts: List[MessagePart]

    @property
    def first_text(self) -> Optional[str]:
        """Text of the first part, if the first part is text."""
        if self.parts and self.parts[0].kind == "text":
            return self.parts[0].text
        return None


@dataclass
class Citation:
    url: str
    title: str


@dataclass
class Transcript:
    """Visible messages (oldest first) plus signals gathered on the walk."""

    messages: List[Message] = field(default_factory=list)
    citations: List[List[Citation]] = field(default_factory=list)
    model_slug: Optional[str] = None


def author_label(message: Dict[str, Any]) -> str:
    role = (message.get("author") or {}).get("role") or ""
    if role == "system" and is_user_system_message(message):
        return USER_SYSTEM_LABEL
    return ROLE_LABELS.get(role, role)


def is_user_system_message(message: Dict[str, Any]) -> bool:
    return bool((message.get("metadata") or {}).get("is_user_system_message"))


def is_visible(message: Optional[Dict[str, Any]]) -> bool:
    """Whether a node's message can contribute to the transcript at all."""
    if not message:
        return False
    content = message.get("content") or {}
    if not content.get("parts"):
        return False
    role = (message.get("author") or {}).get("role")
    return role != "system" or is_user_system_message(message)


def extract_parts(content: Dict[str, Any]) -> List[MessagePart]:
    """Convert the parts of a text or multimodal message into MessageParts.

    Other content types (code, execution output, browsing results...) yield
    nothing, including any asset pointers they carry.
    """
    if content.get("content_type") not in TEXT_CONTENT_TYPES:
        return []

    parts: List[MessagePart] = []
    for part in content.get("parts") or []:
        if isinstance(part, str):
            if part:
                parts.append(MessagePart(kind="text", text=part))
            continue
        if not isinstance(part, dict):
            continue
        ctype = part.get("content_type")
        if ctype == AUDIO_TRANSCRIPTION_TYPE:
            parts.append(MessagePart(kind="transcript", text=part.get("text")))
        elif ctype in ASSET_POINTER_TYPES:
            parts.append(MessagePart(kind="asset", asset=part))
        elif ctype == REAL_TIME_AV_TYPE:
            parts.extend(_expand_real_time_av(part))
    return parts


def _expand_real_time_av(part: Dict[str, Any]) -> Iterable[MessagePart]:
    # Audio, then video, then each captured frame.
    if part.get("audio_asset_pointer"):
        yield MessagePart(kind="asset", asset=part["audio_asset_pointer"])
    if part.get("video_container_asset_pointer"):
        yield MessagePart(kind="asset", asset=part["video_container_asset_pointer"])
    for frame in part.get("frames_asset_pointers") or []:
        yield MessagePart(kind="asset", asset=frame)


def extract_citations(metadata: Dict[str, Any]) -> List[List[Citation]]:
    """Citation lists from the `sources_footnote` content references of a message."""
    found: List[List[Citation]] = []
    references = metadata.get("content_references")
    if not isinstance(references, list):
        return found
    for reference in references:
        if not isinstance(reference, dict):
            continue
        if reference.get("type") != SOURCES_FOOTNOTE_TYPE or not reference.get("sources"):
            continue
        found.append(
            [
                Citation(url=source.get("url") or "", title=source.get("title") or "")
                for source in reference["sources"]
                if isinstance(source, dict) and source.get("url")
            ]
        )
    return found


def linearize_conversation(conversation: Dict[str, Any]) -> Transcript:
    """Walk from `current_node` to the root and return the visible transcript.

    Nodes off the current branch are never visited. The walk ends at a node
    without a parent, at a node id missing from the mapping, or when a node
    repeats (malformed exports can contain cycles).

    The model slug is overwritten by every node that declares one, so the
    value reported is the one closest to the root.
    """
    mapping = conversation.get("mapping") or {}
    transcript = Transcript()
    seen = set()

    node_id = conversation.get("current_node")
    while node_id is not None:
        if node_id in seen:
            logger.warning(
                "Cycle detected at node %s in conversation %s; stopping walk",
                node_id,
                conversation.get("id"),
            )
            break
        seen.add(node_id)

        node = mapping.get(node_id)
        if node is None:
            break

        message = node.get("message")
        if is_visible(message):
            parts = extract_parts(message.get("content") or {})
            if parts:
                transcript.messages.append(Message(author=author_label(message), parts=parts))

        metadata = (message or {}).get("metadata") or {}
        transcript.citations.extend(extract_citations(metadata))
        if metadata.get("model_slug"):
            transcript.model_slug = metadata["model_slug"]

        node_id = node.get("parent")

    transcript.messages.reverse()
    return transcript
