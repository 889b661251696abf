"""Parse and rewrite the ``---`` delimited header block of a note.

The header is tokenized line by line rather than handed to a YAML loader so
that every field the engine does not touch comes back out byte-for-byte:

    ---
    title: Epistemology
    tags: ["philosophy", "knowledge"]
    reviewed: 2024-01-02   # kept exactly, comment included
    ---

Fields are ``key: value`` lines. Values are strings or lists of strings;
lists come from ``[a, "b"]`` inline syntax or from indented ``- item``
lines. Nothing is type-coerced.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Union

from vaultgraph.errors import MalformedHeaderError

logger = logging.getLogger(__name__)

FieldValue = Union[str, list[str]]

DELIMITER = "---"

# One physical line including its terminator; the last line may lack one.
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")


@dataclass
class _Entry:
    """One header line group: a field with its continuation lines, or a
    free-standing comment/blank line (``key is None``)."""

    key: str | None
    value: FieldValue | None = None
    raw: str | None = None  # exact source text; None means "regenerate"
    continuation: list[str] = field(default_factory=list)


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only, keeping terminators, so ``"".join`` inverts it."""
    return _LINE_RE.findall(text)


def _strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


def _is_field_start(content: str) -> bool:
    if not content or content[0].isspace() or content[0] in "#-":
        return False
    key, sep, _ = content.partition(":")
    return bool(sep) and bool(key.strip())


def _is_continuation(content: str) -> bool:
    return bool(content) and (content[0].isspace() or content.startswith("-"))


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        inner = value[1:-1]
        if value[0] == '"':
            return _unescape(inner)
        return inner
    return value


def _unescape(text: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text) and text[i + 1] in "\"\\":
            out.append(text[i + 1])
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def _split_list(inner: str) -> list[str]:
    """Split the body of an inline ``[...]`` list on commas, honouring quotes."""
    items: list[str] = []
    buf: list[str] = []
    quote: str | None = None
    quoted = False

    def flush() -> None:
        item = "".join(buf) if quoted else "".join(buf).strip()
        if quoted or item:
            items.append(item)

    i = 0
    while i < len(inner):
        ch = inner[i]
        if quote:
            if ch == "\\" and quote == '"' and i + 1 < len(inner) and inner[i + 1] in "\"\\":
                buf.append(inner[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = None
            else:
                buf.append(ch)
        elif ch in "\"'" and not quoted and not "".join(buf).strip():
            quote = ch
            quoted = True
            buf = []
        elif ch == ",":
            flush()
            buf = []
            quoted = False
        elif not (quoted and ch.isspace()):
            buf.append(ch)
        i += 1

    if quote:
        raise MalformedHeaderError(f"unterminated quote in list: [{inner}]")
    flush()
    return items


def _parse_value(inline: str, continuation: list[str]) -> FieldValue:
    if inline and inline[0] not in "[\"'":
        comment = inline.find(" #")
        if comment != -1:
            inline = inline[:comment].rstrip()
    if inline:
        if inline.startswith("[") and inline.endswith("]"):
            return _split_list(inline[1:-1])
        return _unquote(inline)

    stripped = [c.strip() for c in continuation]
    if any(s.startswith("-") for s in stripped):
        return [_unquote(s[1:].strip()) for s in stripped if s.startswith("-")]
    if stripped:
        return " ".join(s for s in stripped if s)
    return ""


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def format_value(value: FieldValue) -> str:
    """Canonical text for a value written by the engine."""
    if isinstance(value, list):
        return "[" + ", ".join(_quote(v) for v in value) + "]"
    if (
        not value
        or value != value.strip()
        or value[0] in "[\"'"
        or " #" in value
    ):
        return _quote(value)
    return value


def _coerce(value: object) -> FieldValue:
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    text = str(value)
    if "\n" in text or "\r" in text:
        raise ValueError("Header values must be single-line")
    return text


def _check_key(key: str) -> None:
    if not isinstance(key, str) or not _is_field_start(f"{key}:") or ":" in key or "\n" in key:
        raise ValueError(f"Invalid header field name: {key!r}")
    if key != key.strip():
        raise ValueError(f"Invalid header field name: {key!r}")


class Header(MutableMapping[str, FieldValue]):
    """Ordered field mapping that remembers the source text of each field.

    Fields that are never assigned a different value serialize to exactly
    the bytes they were parsed from. Assigned fields are regenerated in
    canonical form, in place.
    """

    def __init__(self, fields: Mapping[str, object] | None = None):
        self._entries: list[_Entry] = []
        self._open = DELIMITER + "\n"
        self._close = DELIMITER + "\n"
        self._newline = "\n"
        self._present = False
        if fields:
            for key, value in fields.items():
                self[key] = value

    # -- construction from source ------------------------------------------

    @classmethod
    def _from_lines(cls, open_line: str, lines: list[str], close_line: str) -> Header:
        header = cls()
        header._open = open_line
        header._close = close_line
        header._newline = "\r\n" if open_line.endswith("\r\n") else "\n"
        header._present = True

        seen: set[str] = set()
        for line in lines:
            content = _strip_eol(line)
            if _is_field_start(content):
                key, _, rest = content.partition(":")
                key = key.strip()
                if key in seen:
                    raise MalformedHeaderError(f"duplicate field {key!r}")
                seen.add(key)
                entry = _Entry(key=key, raw=line)
                entry.continuation.append(rest.strip())
                header._entries.append(entry)
            elif (
                header._entries
                and header._entries[-1].key is not None
                and _is_continuation(content)
            ):
                last = header._entries[-1]
                last.raw = (last.raw or "") + line
                last.continuation.append(content)
            else:
                header._entries.append(_Entry(key=None, raw=line))

        for entry in header._entries:
            if entry.key is not None:
                inline, *rest = entry.continuation
                entry.value = _parse_value(inline, rest)
                entry.continuation = []
        return header

    # -- mapping protocol ---------------------------------------------------

    def _find(self, key: str) -> _Entry | None:
        for entry in self._entries:
            if entry.key == key:
                return entry
        return None

    def __getitem__(self, key: str) -> FieldValue:
        entry = self._find(key)
        if entry is None:
            raise KeyError(key)
        value = entry.value
        return list(value) if isinstance(value, list) else value  # type: ignore[return-value]

    def __setitem__(self, key: str, value: object) -> None:
        value = _coerce(value)
        entry = self._find(key)
        if entry is not None:
            if entry.value == value:
                return
            entry.value = value
            entry.raw = None
            return
        _check_key(key)
        self._entries.append(_Entry(key=key, value=value))

    def __delitem__(self, key: str) -> None:
        entry = self._find(key)
        if entry is None:
            raise KeyError(key)
        self._entries.remove(entry)

    def __iter__(self) -> Iterator[str]:
        return (e.key for e in self._entries if e.key is not None)

    def __len__(self) -> int:
        return sum(1 for e in self._entries if e.key is not None)

    def __repr__(self) -> str:
        return f"Header({dict(self.items())!r})"

    def rename(self, old: str, new: str) -> None:
        """Rename a field in place, keeping its value and formatting."""
        entry = self._find(old)
        if entry is None:
            raise KeyError(old)
        if old == new:
            return
        if self._find(new) is not None:
            raise ValueError(f"Field already exists: {new!r}")
        _check_key(new)
        entry.key = new
        if entry.raw is not None:
            entry.raw = new + entry.raw[entry.raw.index(":"):]

    def drop_if_empty(self) -> None:
        """Forget the block itself once it holds no lines at all."""
        if not self._entries:
            self._present = False

    def copy(self) -> Header:
        clone = Header()
        clone._open, clone._close = self._open, self._close
        clone._newline, clone._present = self._newline, self._present
        clone._entries = [
            _Entry(
                key=e.key,
                value=list(e.value) if isinstance(e.value, list) else e.value,
                raw=e.raw,
            )
            for e in self._entries
        ]
        return clone

    @property
    def present(self) -> bool:
        """True when the header has a block on disk or any field to write."""
        return self._present or bool(self._entries)

    def serialize(self) -> str:
        if not self.present:
            return ""
        parts = [self._open]
        for entry in self._entries:
            if entry.raw is not None:
                parts.append(entry.raw)
            else:
                parts.append(f"{entry.key}: {format_value(entry.value)}{self._newline}")
        close = self._close
        if not close.endswith("\n"):
            # The block closed at end of file; a body may follow after edits.
            close = close + self._newline
        parts.append(close)
        return "".join(parts)


def parse(text: str) -> tuple[Header, str]:
    """Split *text* into ``(header, body)``.

    A header exists only when the first line is exactly ``---`` and a later
    line is exactly ``---``. Anything else (including an unterminated or
    untokenizable block) yields an empty header and the full text as body.
    """
    lines = split_lines(text)
    if not lines or _strip_eol(lines[0]) != DELIMITER:
        return Header(), text

    for close in range(1, len(lines)):
        if _strip_eol(lines[close]) == DELIMITER:
            break
    else:
        logger.debug("Unterminated header block; treating as body")
        return Header(), text

    try:
        header = Header._from_lines(lines[0], lines[1:close], lines[close])
    except MalformedHeaderError as exc:
        logger.warning("Malformed header treated as absent: %s", exc)
        return Header(), text

    body = "".join(lines[close + 1:])
    return header, body


def serialize(fields: Mapping[str, object]) -> str:
    """Render a header block (delimiters included) for *fields*."""
    if isinstance(fields, Header):
        return fields.serialize()
    return Header(fields).serialize()


def render(header: Header, body: str) -> str:
    """Reassemble a full document from its header and body."""
    text = header.serialize()
    if text and not header._close.endswith("\n") and not body:
        return text[: -len(header._newline)]
    return text + body
