"""Shared pytest fixtures for gpt-vault tests."""

import pytest

from gpt_vault.config_types import VaultLayout


def _make_message(role, parts, content_type="text", metadata=None):
    return {
        "author": {"role": role},
        "content": {"content_type": content_type, "parts": parts},
        "metadata": metadata or {},
    }


def _build_conversation(
    messages,
    *,
    title="research - Quantum Basics",
    conv_id="conv-0000-abc123",
    create_time=1705315800.0,
    update_time=1705316000.0,
):
    """Chain messages root -> leaf under an empty root node."""
    mapping = {"root": {"id": "root", "message": None, "parent": None, "children": []}}
    parent = "root"
    for idx, message in enumerate(messages):
        node_id = f"node{idx}"
        mapping[node_id] = {"id": node_id, "message": message, "parent": parent, "children": []}
        mapping[parent]["children"].append(node_id)
        parent = node_id
    return {
        "id": conv_id,
        "title": title,
        "create_time": create_time,
        "update_time": update_time,
        "current_node": parent,
        "mapping": mapping,
    }


@pytest.fixture
def make_message():
    """Factory for raw export messages: make_message(role, parts, content_type, metadata)."""
    return _make_message


@pytest.fixture
def build_conversation():
    """Factory for a linear conversation from a list of raw messages."""
    return _build_conversation


@pytest.fixture
def sample_conversation():
    """Categorized conversation: a user question and an assistant answer."""
    return _build_conversation(
        [
            _make_message("user", ["What is a qubit?"]),
            _make_message("assistant", ["Hello"], metadata={"model_slug": "gpt-4o"}),
        ]
    )


@pytest.fixture
def youtube_conversation():
    """Uncategorized conversation whose first prompt pastes a video transcript."""
    return _build_conversation(
        [
            _make_message("user", ['Title: "Foo"\nTranscript: "bar baz"\n']),
            _make_message("assistant", ["A short summary."]),
        ],
        title="Video summary",
        conv_id="conv-1111-yt0001",
    )


@pytest.fixture
def layout(tmp_path):
    """Vault layout rooted in a fresh temporary directory."""
    return VaultLayout(tmp_path / "vault")
