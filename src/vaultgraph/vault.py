"""Scan a vault directory and parse notes: header, body and links."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from vaultgraph.config import Vault
from vaultgraph.errors import NotFoundError, VaultIOError
from vaultgraph.frontmatter import Header, parse
from vaultgraph.links import EXTERNAL, INTERNAL, Link, extract_links
from vaultgraph.storage import read_text

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 200


@dataclass
class Document:
    """A single note in the vault."""

    name: str  # filename, extension included
    path: Path
    text: str  # full file content
    header: Header = field(default_factory=Header)
    body: str = ""  # text with the header block stripped
    links: list[Link] = field(default_factory=list)

    @property
    def stem(self) -> str:
        return self.path.stem

    @property
    def title(self) -> str:
        title = self.header.get("title")
        return title if isinstance(title, str) and title else self.stem

    @property
    def tags(self) -> list[str]:
        tags = self.header.get("tags", [])
        if isinstance(tags, str):
            return [tags] if tags else []
        return tags

    @property
    def internal_links(self) -> list[Link]:
        return [link for link in self.links if link.kind == INTERNAL]

    @property
    def external_links(self) -> list[Link]:
        return [link for link in self.links if link.kind == EXTERNAL]


def parse_document(path: Path, name: str | None = None) -> Document:
    """Read and parse a single note file."""
    name = name or path.name
    try:
        text = read_text(path)
    except FileNotFoundError as exc:
        raise NotFoundError(name) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise VaultIOError(name, exc) from exc

    header, body = parse(text)
    return Document(
        name=name,
        path=path,
        text=text,
        header=header,
        body=body,
        links=extract_links(body),
    )


def document_path(vault: Vault, name: str) -> Path:
    """Map a note name to its file, refusing anything outside the vault."""
    filename = vault.filename(name)
    path = vault.root / filename
    if Path(filename).name != filename or filename.startswith("."):
        raise NotFoundError(filename)
    if not path.is_file():
        raise NotFoundError(filename)
    return path


def load_document(vault: Vault, name: str) -> Document:
    path = document_path(vault, name)
    return parse_document(path, path.name)


def scan(vault: Vault) -> list[str]:
    """Filenames of all notes in the vault, in listing (sorted) order.

    Only the top level is scanned; hidden files are skipped.
    """
    root = vault.root
    if not root.is_dir():
        raise NotFoundError(str(root), what="vault")
    try:
        entries = sorted(root.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        raise VaultIOError(str(root), exc) from exc
    return [
        p.name
        for p in entries
        if p.name.endswith(vault.extension)
        and not p.name.startswith(".")
        and p.is_file()
    ]


def load_vault(vault: Vault) -> list[Document]:
    """Load every note in the vault. Stops on the first I/O error."""
    docs = [parse_document(vault.root / name, name) for name in scan(vault)]
    logger.debug("Loaded %d documents from %s", len(docs), vault.root)
    return docs


def list_notes(vault: Vault, tag: str | None = None) -> list[dict]:
    """Summaries of every note, optionally only those carrying *tag*."""
    return [
        {"filename": doc.name, "title": doc.title, "tags": doc.tags}
        for doc in load_vault(vault)
        if tag is None or tag in doc.tags
    ]


def search_notes(
    vault: Vault,
    query: str | None = None,
    tags: list[str] | None = None,
) -> list[dict]:
    """Find notes whose content contains *query* or that carry any of *tags*.

    The text query is case-insensitive; tags match exactly. With neither,
    every note is returned.
    """
    needle = query.lower() if query else None
    results = []
    for doc in load_vault(vault):
        matches = not needle and not tags
        if tags and any(t in doc.tags for t in tags):
            matches = True
        if needle and needle in doc.text.lower():
            matches = True
        if not matches:
            continue

        preview = doc.body.strip()[:PREVIEW_CHARS]
        if len(preview) >= PREVIEW_CHARS:
            preview += "..."
        results.append({"filename": doc.name, "title": doc.title, "preview": preview})
    return results
