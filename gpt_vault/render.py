"""
Classify conversations and render them as Obsidian notes.

Two kinds of conversation are exported:

- categorized conversations, whose title looks like `<category> - <title>`;
- YouTube summaries, whose first prompt pastes a video transcript in the
  form `Title: "<video>" ... Transcript: "<text>"`. These also produce a
  separate transcript note the summary links to.

Everything else is skipped.
"""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from gpt_vault.frontmatter import format_front_matter
from gpt_vault.transcript import Citation, Message, Transcript

BASE_URL = "https://chatgpt.com"
CATEGORY_SEPARATOR = " - "
DEFAULT_CATEGORY = "none"
IMPORTED_STATUS = "imported"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"
UNTITLED_FORMAT = "no-title-%Y-%m-%d-%H-%M"

TYPE_CONVERSATION = "chatgpt-conversation"
TYPE_YOUTUBE_SUMMARY = "chatgpt-youtube-summary"
TYPE_YOUTUBE_TRANSCRIPT = "youtube-transcript"

TITLE_MARKER = 'Title: "'
TRANSCRIPT_MARKER = 'Transcript: "'
# Closing quote plus the character after it.
MARKER_TAIL_LENGTH = 2

TRACKING_SUFFIX = "?utm_source=chatgpt.com"

PRIVATE_USE_RE = re.compile("[\ue000-\uf8ff]")
TITLE_UNSAFE_RE = re.compile(r"[/:]")
VIDEO_TITLE_UNSAFE_RE = re.compile(r"[#\[\]|^/:]")


@dataclass
class YoutubeTranscript:
    video_title: str
    text: str


@dataclass
class TranscriptNote:
    video_title: str
    content: str


@dataclass
class ConversationNote:
    """A rendered conversation plus what is needed to place it in the vault."""

    conversation_id: str
    url: str
    category: str
    title: str
    is_summary: bool
    content: str
    transcript_note: Optional[TranscriptNote] = None


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def format_timestamp(ts: Optional[float], fmt: str = TIMESTAMP_FORMAT) -> str:
    """Format a Unix timestamp in local time; empty string when missing."""
    if ts is None:
        return ""
    return dt.datetime.fromtimestamp(ts).strftime(fmt)


def strip_private_use(text: str) -> str:
    """Remove Unicode private-use characters (ChatGPT citation markers)."""
    return PRIVATE_USE_RE.sub("", text)


def strip_tracking_suffix(url: str) -> str:
    if url.endswith(TRACKING_SUFFIX):
        return url[: -len(TRACKING_SUFFIX)]
    return url


def sanitize_title(title: str) -> str:
    return TITLE_UNSAFE_RE.sub("-", title)


def sanitize_video_title(title: str) -> str:
    return VIDEO_TITLE_UNSAFE_RE.sub("-", title)


def conversation_url(conversation_id: str, base_url: str = BASE_URL) -> str:
    return f"{base_url.rstrip('/')}/c/{conversation_id}"


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def split_category(
    title: Optional[str], create_time: Optional[float] = None
) -> Tuple[Optional[str], str]:
    """Split `"<category> - <title>"` into (category, title).

    The category is lowercased with spaces turned into hyphens. Titles without
    a separator have no category; a missing title gets a dated placeholder.
    """
    if not title:
        return None, format_timestamp(create_time or 0, UNTITLED_FORMAT)
    idx = title.find(CATEGORY_SEPARATOR)
    if idx > 0:
        category = title[:idx].replace(" ", "-").lower()
        return category, title[idx + len(CATEGORY_SEPARATOR):]
    return None, title


def detect_youtube_transcript(transcript: Transcript) -> Optional[YoutubeTranscript]:
    """Find a pasted video transcript in the first part of the first message."""
    if not transcript.messages:
        return None
    text = transcript.messages[0].first_text
    if not text:
        return None

    title_idx = text.find(TITLE_MARKER)
    transcript_idx = text.find(TRANSCRIPT_MARKER)
    if title_idx == -1 or transcript_idx == -1:
        return None
    # The video title sits between the two markers.
    if transcript_idx < title_idx + len(TITLE_MARKER):
        return None

    video_title = text[title_idx + len(TITLE_MARKER): transcript_idx - MARKER_TAIL_LENGTH]
    if not video_title:
        return None
    body = text[transcript_idx + len(TRANSCRIPT_MARKER): len(text) - MARKER_TAIL_LENGTH]
    return YoutubeTranscript(video_title=sanitize_video_title(video_title), text=body)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def dedupe_citations(citation_lists: Iterable[List[Citation]]) -> Dict[str, str]:
    """Merge citation lists into url -> title, keyed on the URL without tracking suffix.

    Keeps first-seen order; a later title for the same URL replaces the earlier one.
    """
    merged: Dict[str, str] = {}
    for citations in citation_lists:
        for citation in citations:
            merged[strip_tracking_suffix(citation.url)] = citation.title
    return merged


def render_message(message: Message) -> List[str]:
    lines = [
        "> [!NOTE] Author",
        ">",
        f"> # Author: {message.author}",
        "",
    ]
    for part in message.parts:
        if part.kind == "text" and part.text:
            lines.append(strip_private_use(part.text))
        elif part.kind == "transcript" and part.text:
            lines.append(f"[Transcript]: {part.text}")
        elif part.kind == "asset" and part.asset:
            lines.append(f"[File]: {part.asset.get('asset_pointer', '-unknown-')}")
    return lines


def render_citations(citation_lists: Iterable[List[Citation]]) -> List[str]:
    sources = dedupe_citations(citation_lists)
    if not sources:
        return []
    lines = ["> [!info]", ">", "> # Sources", ""]
    for url, title in sources.items():
        lines.append(f"- [{title}]({url})")
    return lines


def render_transcript_document(video_title: str, category: str, text: str) -> str:
    """Render the companion note holding a pasted video transcript."""
    header = format_front_matter(
        {
            "title": video_title,
            "tags": [category],
            "URL": None,
            "type": TYPE_YOUTUBE_TRANSCRIPT,
        },
        quoted=("title",),
    )
    return "\n".join(header + ["", text]) + "\n"


def render_conversation_document(
    conversation: Dict[str, Any],
    transcript: Transcript,
    *,
    title: str,
    category: str,
    video_title: Optional[str] = None,
) -> str:
    """Render a conversation note.

    With `video_title` set the note is a YouTube summary: it links to the
    transcript note and leaves out the first message, which held the
    transcript itself.
    """
    fields: Dict[str, Any] = {
        "title": title,
        "tags": [category],
        "URL": conversation_url(conversation["id"]),
    }
    if video_title is not None:
        fields["transcript"] = f"[[{video_title}]]"
        fields["type"] = TYPE_YOUTUBE_SUMMARY
    else:
        fields["type"] = TYPE_CONVERSATION
    fields["model_slug"] = transcript.model_slug
    fields["created_at"] = format_timestamp(conversation.get("create_time"))
    fields["updated_at"] = format_timestamp(conversation.get("update_time"))
    fields["status"] = IMPORTED_STATUS

    lines = format_front_matter(fields, quoted=("transcript",))
    lines.append("")

    messages = transcript.messages[1:] if video_title is not None else transcript.messages
    for idx, message in enumerate(messages):
        if idx:
            lines.extend(["", ""])
        lines.extend(render_message(message))

    citation_lines = render_citations(transcript.citations)
    if citation_lines:
        lines.extend(["", ""])
        lines.extend(citation_lines)

    return "\n".join(lines) + "\n"


def render_conversation(
    conversation: Dict[str, Any], transcript: Transcript
) -> Optional[ConversationNote]:
    """Classify and render a linearized conversation.

    Returns None for conversations that are neither categorized nor a
    YouTube summary, and for conversations without visible messages.
    """
    if not transcript.messages:
        return None

    category, title = split_category(conversation.get("title"), conversation.get("create_time"))
    youtube = detect_youtube_transcript(transcript)
    if category is None and youtube is None:
        return None
    category = category or DEFAULT_CATEGORY
    title = sanitize_title(title)

    content = render_conversation_document(
        conversation,
        transcript,
        title=title,
        category=category,
        video_title=youtube.video_title if youtube else None,
    )
    transcript_note = None
    if youtube is not None:
        transcript_note = TranscriptNote(
            video_title=youtube.video_title,
            content=render_transcript_document(youtube.video_title, category, youtube.text),
        )

    return ConversationNote(
        conversation_id=conversation["id"],
        url=conversation_url(conversation["id"]),
        category=category,
        title=title,
        is_summary=youtube is not None,
        content=content,
        transcript_note=transcript_note,
    )
