"""Field-level edits to note headers.

Each edit reads the whole file, changes only the header, and writes the
result back atomically. A note that is already in the requested state is
not rewritten. Notes without a header get a fresh one; the body is never
touched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from vaultgraph.config import Vault
from vaultgraph.errors import PartialBatchFailure, VaultError, VaultIOError
from vaultgraph.frontmatter import FieldValue, Header, render
from vaultgraph.storage import atomic_write
from vaultgraph.vault import load_document, scan

logger = logging.getLogger(__name__)

TAGS_FIELD = "tags"


@dataclass
class BatchResult:
    """Per-document outcome of a batch edit."""

    succeeded: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)  # (name, reason)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.unchanged) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed

    def raise_for_failures(self) -> None:
        if self.failed:
            raise PartialBatchFailure(self)

    def as_payload(self) -> dict:
        return {
            "succeeded": self.succeeded,
            "unchanged": self.unchanged,
            "failed": [{"document": n, "error": e} for n, e in self.failed],
            "total": self.total,
        }


def _edit_header(vault: Vault, name: str, edit: Callable[[Header], None]) -> bool:
    """Apply *edit* to a note's header; return True if the file changed."""
    doc = load_document(vault, name)
    header = doc.header.copy()
    edit(header)
    new_text = render(header, doc.body)
    if new_text == doc.text:
        return False
    try:
        atomic_write(doc.path, new_text)
    except OSError as exc:
        raise VaultIOError(doc.name, exc) from exc
    logger.info("Updated header of %s", doc.name)
    return True


def update_field(vault: Vault, name: str, field_name: str, value: FieldValue) -> bool:
    """Set one header field, adding a header if the note has none."""

    def edit(header: Header) -> None:
        header[field_name] = value

    return _edit_header(vault, name, edit)


def remove_field(vault: Vault, name: str, field_name: str) -> bool:
    """Delete one header field; a no-op when it is absent."""

    def edit(header: Header) -> None:
        header.pop(field_name, None)

    return _edit_header(vault, name, edit)


def _current_tags(header: Header) -> list[str]:
    tags = header.get(TAGS_FIELD, [])
    if isinstance(tags, str):
        return [tags] if tags else []
    return tags


def add_tags(vault: Vault, name: str, tags: Iterable[str]) -> list[str]:
    """Add *tags* to a note; the stored list is deduplicated in order."""
    result: list[str] = []

    def edit(header: Header) -> None:
        merged: list[str] = []
        for tag in [*_current_tags(header), *tags]:
            if tag not in merged:
                merged.append(tag)
        result[:] = merged
        header[TAGS_FIELD] = merged

    _edit_header(vault, name, edit)
    return result


def remove_tags(vault: Vault, name: str, tags: Iterable[str]) -> list[str]:
    """Remove *tags* from a note. Absent tags are ignored.

    A tags field left empty is deleted, and so is a header left with nothing in it.
    """
    drop = set(tags)
    result: list[str] = []

    def edit(header: Header) -> None:
        if TAGS_FIELD not in header:
            return
        current = _current_tags(header)
        result[:] = current
        if not drop.intersection(current):
            return
        result[:] = [t for t in current if t not in drop]
        if result:
            header[TAGS_FIELD] = list(result)
        else:
            del header[TAGS_FIELD]
            header.drop_if_empty()

    _edit_header(vault, name, edit)
    return result


def batch_update(
    vault: Vault,
    field_name: str,
    value: FieldValue,
    names: Iterable[str],
) -> BatchResult:
    """Set a field on many notes. A failing note does not stop the rest."""
    result = BatchResult()
    for name in names:
        try:
            changed = update_field(vault, name, field_name, value)
        except (VaultError, ValueError) as exc:
            logger.warning("Batch update skipped %s: %s", name, exc)
            result.failed.append((name, str(exc)))
            continue
        (result.succeeded if changed else result.unchanged).append(name)
    return result


def rename_property_globally(vault: Vault, old: str, new: str) -> BatchResult:
    """Rename header field *old* to *new* in every note that has it.

    The value and its position are kept. Notes that already carry *new*
    are reported as failures and left alone.
    """
    result = BatchResult()
    for name in scan(vault):

        def edit(header: Header) -> None:
            if old in header:
                header.rename(old, new)

        try:
            changed = _edit_header(vault, name, edit)
        except (VaultError, ValueError) as exc:
            logger.warning("Rename of %r skipped %s: %s", old, name, exc)
            result.failed.append((name, str(exc)))
            continue
        (result.succeeded if changed else result.unchanged).append(name)
    return result
