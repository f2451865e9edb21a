"""
Core package for gpt-vault.

Turns a ChatGPT `conversations.json` export into Markdown notes with YAML
front matter and keeps them in sync with a vault on disk:

- `transcript`: walk a conversation graph into an ordered transcript
- `render`: classify conversations and render notes
- `index`: map note URLs to files already in the vault
- `sync`: decide whether to write, skip, move or refuse a note
- `import_conversations`: the `gpt-vault-import` command
"""

__all__ = [
    "config_types",
    "errors",
    "frontmatter",
    "import_conversations",
    "index",
    "render",
    "sync",
    "transcript",
]
