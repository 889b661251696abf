"""Tag and field-value indexes, recomputed from the vault on every call."""

from __future__ import annotations

import re
from collections import Counter

from vaultgraph.config import Vault
from vaultgraph.vault import Document, load_vault

_WORD_RE = re.compile(r"\S+")


def _values(doc: Document, field_name: str) -> list[str]:
    value = doc.header.get(field_name)
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _ranked(counts: Counter) -> dict[str, int]:
    return dict(sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])))


def list_all_tags(vault: Vault) -> list[str]:
    """Sorted, deduplicated tags across all notes."""
    tags: set[str] = set()
    for doc in load_vault(vault):
        tags.update(doc.tags)
    return sorted(tags)


def tag_counts(vault: Vault) -> dict[str, int]:
    """Number of notes carrying each tag, most used first."""
    counts: Counter = Counter()
    for doc in load_vault(vault):
        counts.update(set(doc.tags))
    return _ranked(counts)


def get_values(vault: Vault, field_name: str) -> dict[str, int]:
    """Histogram of the values of one header field, most common first.

    List values contribute each element. Ties are ordered by value.
    """
    counts: Counter = Counter()
    for doc in load_vault(vault):
        counts.update(_values(doc, field_name))
    return _ranked(counts)


def vault_stats(vault: Vault) -> dict:
    """Word, link, tag and note-type totals for the vault."""
    docs = load_vault(vault)
    total_words = sum(len(_WORD_RE.findall(doc.text)) for doc in docs)
    types: Counter = Counter()
    tags: set[str] = set()
    for doc in docs:
        tags.update(doc.tags)
        note_type = doc.header.get("type")
        if isinstance(note_type, str) and note_type:
            types[note_type] += 1

    return {
        "total_notes": len(docs),
        "total_words": total_words,
        "avg_words_per_note": round(total_words / len(docs)) if docs else 0,
        "total_links": sum(len(doc.internal_links) for doc in docs),
        "external_links": sum(len(doc.external_links) for doc in docs),
        "total_tags": len(tags),
        "note_types": _ranked(types),
        "vault_path": str(vault.root),
    }
