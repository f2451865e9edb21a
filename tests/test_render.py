"""Tests for gpt_vault.render (classification and note rendering)."""

import pytest

from gpt_vault.frontmatter import parse_header, split_front_matter
from gpt_vault.render import (
    dedupe_citations,
    detect_youtube_transcript,
    format_timestamp,
    render_conversation,
    render_message,
    render_transcript_document,
    sanitize_video_title,
    split_category,
    strip_private_use,
    strip_tracking_suffix,
)
from gpt_vault.transcript import Citation, Message, MessagePart, Transcript, linearize_conversation


def _transcript_from_text(text):
    return Transcript(messages=[Message("user", [MessagePart(kind="text", text=text)])])


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class TestSplitCategory:
    def test_category_prefix(self):
        assert split_category("research - Quantum Basics") == ("research", "Quantum Basics")

    def test_category_is_lowercased_and_hyphenated(self):
        assert split_category("Deep Work - Notes - Day 1") == ("deep-work", "Notes - Day 1")

    def test_no_separator(self):
        assert split_category("Just a chat") == (None, "Just a chat")

    def test_separator_at_start_is_not_a_category(self):
        assert split_category(" - leading") == (None, " - leading")

    def test_missing_title_gets_dated_placeholder(self):
        ts = 1705315800.0
        category, title = split_category(None, ts)
        assert category is None
        assert title == f"no-title-{format_timestamp(ts, '%Y-%m-%d-%H-%M')}"


class TestDetectYoutubeTranscript:
    def test_detects_markers(self):
        found = detect_youtube_transcript(_transcript_from_text('Title: "Foo"\nTranscript: "bar baz"\n'))
        assert found is not None
        assert found.video_title == "Foo"
        assert found.text == "bar baz"

    def test_prompt_text_around_markers(self):
        text = 'Summarize this.\nTitle: "Talk: part 1"\nTranscript: "hello world".'
        found = detect_youtube_transcript(_transcript_from_text(text))
        assert found.video_title == "Talk- part 1"
        assert found.text == "hello world"

    def test_requires_both_markers(self):
        assert detect_youtube_transcript(_transcript_from_text('Title: "Foo"')) is None
        assert detect_youtube_transcript(_transcript_from_text('Transcript: "bar"')) is None

    def test_transcript_marker_before_title_marker(self):
        text = 'Transcript: "abc" then Title: "Foo"'
        assert detect_youtube_transcript(_transcript_from_text(text)) is None

    def test_first_part_must_be_text(self):
        transcript = Transcript(
            messages=[
                Message(
                    "user",
                    [
                        MessagePart(kind="asset", asset={"asset_pointer": "x"}),
                        MessagePart(kind="text", text='Title: "Foo"\nTranscript: "bar"\n'),
                    ],
                )
            ]
        )
        assert detect_youtube_transcript(transcript) is None

    def test_empty_transcript(self):
        assert detect_youtube_transcript(Transcript()) is None


def test_sanitize_video_title():
    assert sanitize_video_title("a#b[c]d|e^f/g:h") == "a-b-c-d-e-f-g-h"


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def test_strip_private_use():
    text = "Hello \ue200cite\ue202turn0search1\ue201 world\uf8ff"
    assert strip_private_use(text) == "Hello citeturn0search1 world"


def test_strip_tracking_suffix():
    assert strip_tracking_suffix("https://a.example/x?utm_source=chatgpt.com") == "https://a.example/x"
    assert strip_tracking_suffix("https://a.example/x?utm_source=other") == "https://a.example/x?utm_source=other"


def test_dedupe_citations_by_url():
    """Entries differing only by the tracking suffix collapse into one."""
    merged = dedupe_citations(
        [
            [Citation("https://a.example", "A"), Citation("https://b.example", "B")],
            [Citation("https://a.example?utm_source=chatgpt.com", "A again")],
        ]
    )
    assert merged == {"https://a.example": "A again", "https://b.example": "B"}
    assert list(merged) == ["https://a.example", "https://b.example"]


def test_render_message_parts():
    lines = render_message(
        Message(
            "ChatGPT",
            [
                MessagePart(kind="text", text="Answer\ue203"),
                MessagePart(kind="transcript", text="spoken"),
                MessagePart(kind="asset", asset={"asset_pointer": "file-service://img"}),
            ],
        )
    )
    assert lines == [
        "> [!NOTE] Author",
        ">",
        "> # Author: ChatGPT",
        "",
        "Answer",
        "[Transcript]: spoken",
        "[File]: file-service://img",
    ]


# ---------------------------------------------------------------------------
# Full conversation rendering
# ---------------------------------------------------------------------------


def test_categorized_conversation(build_conversation, make_message):
    conv = build_conversation([make_message("assistant", ["Hello"])])
    note = render_conversation(conv, linearize_conversation(conv))

    assert note.category == "research"
    assert note.title == "Quantum Basics"
    assert note.is_summary is False
    assert note.transcript_note is None

    header = parse_header(note.content)
    assert header["type"] == "chatgpt-conversation"
    assert header["title"] == "Quantum Basics"
    assert header["tags"] == ["research"]
    assert header["URL"] == "https://chatgpt.com/c/conv-0000-abc123"
    assert header["status"] == "imported"
    assert header["created_at"] == format_timestamp(conv["create_time"])
    assert header["updated_at"] == format_timestamp(conv["update_time"])
    assert "modified_at" not in header

    _, body = split_front_matter(note.content)
    assert body.count("> [!NOTE] Author") == 1
    assert "> # Author: ChatGPT\n\nHello" in body


def test_header_fields_in_order(sample_conversation):
    note = render_conversation(sample_conversation, linearize_conversation(sample_conversation))
    header_text, _ = split_front_matter(note.content)
    keys = [line.split(":", 1)[0] for line in header_text.splitlines() if not line.startswith(" ")]
    assert keys == [
        "title", "tags", "URL", "type", "model_slug", "created_at", "updated_at", "status",
    ]
    assert "model_slug: gpt-4o" in header_text


def test_messages_separated_by_blank_lines(sample_conversation):
    note = render_conversation(sample_conversation, linearize_conversation(sample_conversation))
    assert "What is a qubit?\n\n\n> [!NOTE] Author" in note.content


def test_uncategorized_conversation_is_skipped(build_conversation, make_message):
    conv = build_conversation([make_message("user", ["hi"])], title="Plain chat")
    assert render_conversation(conv, linearize_conversation(conv)) is None


def test_conversation_without_messages_is_skipped(build_conversation):
    conv = build_conversation([])
    assert render_conversation(conv, linearize_conversation(conv)) is None


def test_title_path_separators_replaced(build_conversation, make_message):
    conv = build_conversation([make_message("user", ["hi"])], title="dev - CI/CD: setup")
    note = render_conversation(conv, linearize_conversation(conv))
    assert note.title == "CI-CD- setup"


def test_youtube_summary(youtube_conversation):
    note = render_conversation(youtube_conversation, linearize_conversation(youtube_conversation))

    assert note.is_summary is True
    assert note.category == "none"
    assert 'transcript: "[[Foo]]"' in note.content
    header = parse_header(note.content)
    assert header["type"] == "chatgpt-youtube-summary"
    assert header["transcript"] == "[[Foo]]"

    # The prompt carrying the transcript is not repeated in the summary.
    _, body = split_front_matter(note.content)
    assert "Transcript:" not in body
    assert "A short summary." in body

    transcript_note = note.transcript_note
    assert transcript_note.video_title == "Foo"
    transcript_header = parse_header(transcript_note.content)
    assert transcript_header == {
        "title": "Foo",
        "tags": ["none"],
        "URL": None,
        "type": "youtube-transcript",
    }
    _, transcript_body = split_front_matter(transcript_note.content)
    assert transcript_body.strip() == "bar baz"


def test_citations_render_once(build_conversation, make_message):
    sources = [
        {"url": "https://a.example", "title": "A"},
        {"url": "https://a.example?utm_source=chatgpt.com", "title": "A"},
    ]
    conv = build_conversation(
        [
            make_message("user", ["q"]),
            make_message(
                "assistant",
                ["a"],
                metadata={"content_references": [{"type": "sources_footnote", "sources": sources}]},
            ),
        ]
    )
    note = render_conversation(conv, linearize_conversation(conv))
    assert "> [!info]\n>\n> # Sources\n\n- [A](https://a.example)" in note.content
    assert note.content.count("https://a.example") == 1


def test_no_citation_block_without_sources(sample_conversation):
    note = render_conversation(sample_conversation, linearize_conversation(sample_conversation))
    assert "# Sources" not in note.content


@pytest.mark.parametrize("title", ["C# tips", "[draft] plan", "yes", "Rust: ownership"])
def test_awkward_titles_survive_yaml(build_conversation, make_message, title):
    """Titles YAML would misread are quoted in the header."""
    conv = build_conversation([make_message("user", ["hi"])], title=f"dev - {title}")
    note = render_conversation(conv, linearize_conversation(conv))
    assert parse_header(note.content)["title"] == note.title


def test_render_transcript_document_quotes_title():
    content = render_transcript_document("Foo", "none", "bar baz")
    assert content.startswith('---\ntitle: "Foo"\ntags:\n   - none\nURL:\ntype: youtube-transcript\n---\n')
