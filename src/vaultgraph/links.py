"""Extract internal wikilinks and external markdown links from note bodies.

A small left-to-right scanner rather than a regex, so that malformed input
has a defined result and scanning stays linear in the body length:

- ``[[target]]``, ``[[target|display]]`` and ``[[target#heading]]`` are
  internal links; an embed ``![[target]]`` is too.
- ``[text](url)`` is an external link when ``url`` has a known scheme.
- No link spans a newline. If another ``[[`` opens before ``]]`` closes,
  scanning restarts at the inner ``[[`` so the innermost pair wins.
"""

from __future__ import annotations

from dataclasses import dataclass

INTERNAL = "internal"
EXTERNAL = "external"

KNOWN_SCHEMES = frozenset(
    {"http", "https", "ftp", "ftps", "mailto", "file", "obsidian", "tel"}
)


@dataclass(frozen=True)
class Link:
    """A single reference found in a document body."""

    kind: str  # INTERNAL or EXTERNAL
    target: str  # note name for internal links, URL for external ones
    display: str | None = None
    heading: str | None = None  # "#section" / "#^block" part of a wikilink
    raw: str = ""
    offset: int = 0


def _has_known_scheme(url: str) -> bool:
    scheme, sep, rest = url.partition(":")
    if not sep or not rest or not scheme:
        return False
    if not scheme[0].isalpha() or not all(c.isalnum() or c in "+.-" for c in scheme):
        return False
    return scheme.lower() in KNOWN_SCHEMES


def _wikilink(body: str, start: int, end: int) -> Link | None:
    """Build a link from ``body[start:end]`` == ``[[...]]``; None if empty."""
    inner = body[start + 2 : end - 2]
    target, sep, display = inner.partition("|")
    target, hsep, heading = target.partition("#")
    target = target.strip()
    if not target:
        return None
    return Link(
        kind=INTERNAL,
        target=target,
        display=display.strip() if sep else None,
        heading=heading.strip() if hsep else None,
        raw=body[start:end],
        offset=start,
    )


class _Finder:
    """``str.find`` for one needle that reuses its last hit.

    Lookups from non-decreasing offsets share one forward pass over the text.
    """

    def __init__(self, text: str, needle: str):
        self.text = text
        self.needle = needle
        self._start = 0
        self._hit = text.find(needle)

    def find(self, start: int, end: int) -> int:
        if start < self._start or (self._hit != -1 and self._hit < start):
            self._start = start
            self._hit = self.text.find(self.needle, start)
        if self._hit == -1 or self._hit + len(self.needle) > end:
            return -1
        return self._hit


class _Scanner:
    def __init__(self, body: str):
        self.body = body
        self.length = len(body)
        self.open = _Finder(body, "[")
        self.wiki_open = _Finder(body, "[[")
        self.wiki_close = _Finder(body, "]]")
        self.close = _Finder(body, "]")
        self.paren = _Finder(body, ")")
        self.newline = _Finder(body, "\n")

    def wikilink(self, pos: int, line_end: int) -> tuple[Link | None, int]:
        """Scan a wikilink opening at *pos*; return ``(link, next_pos)``."""
        close = self.wiki_close.find(pos + 2, line_end)
        if close == -1:
            return None, pos + 2
        # The first "]]" after an inner "[[" is the same one.
        inner_open = self.wiki_open.find(pos + 2, close)
        while inner_open != -1:
            pos = inner_open
            inner_open = self.wiki_open.find(pos + 2, close)
        return _wikilink(self.body, pos, close + 2), close + 2

    def markdown_link(self, pos: int, line_end: int) -> tuple[Link | None, int]:
        """Scan ``[text](url)`` opening at *pos*; return ``(link, next_pos)``."""
        body = self.body
        close = self.close.find(pos + 1, line_end)
        if close == -1:
            # No later "[" on this line can close either.
            return None, line_end
        nested = self.open.find(pos + 1, close)
        while nested != -1:
            if body.startswith("[[", nested):
                return None, nested
            pos = nested
            nested = self.open.find(pos + 1, close)
        if close + 1 >= line_end or body[close + 1] != "(":
            return None, close + 1
        paren = self.paren.find(close + 2, line_end)
        if paren == -1:
            return None, close + 2
        url = body[close + 2 : paren].strip()
        if not _has_known_scheme(url):
            return None, paren + 1
        return (
            Link(
                kind=EXTERNAL,
                target=url,
                display=body[pos + 1 : close],
                raw=body[pos : paren + 1],
                offset=pos,
            ),
            paren + 1,
        )

    def links(self) -> list[Link]:
        links: list[Link] = []
        pos = 0
        line_end = -1
        while pos < self.length:
            pos = self.open.find(pos, self.length)
            if pos == -1:
                break
            if pos >= line_end:
                line_end = self.newline.find(pos, self.length)
                if line_end == -1:
                    line_end = self.length

            if self.body.startswith("[[", pos):
                link, pos = self.wikilink(pos, line_end)
            else:
                link, pos = self.markdown_link(pos, line_end)
            if link is not None:
                links.append(link)
        return links


def extract_links(body: str) -> list[Link]:
    """Return every link in *body*, in source order, without overlap."""
    return _Scanner(body).links()


def internal_targets(body: str) -> list[str]:
    """Wikilink targets in *body*, in order, duplicates kept."""
    return [link.target for link in extract_links(body) if link.kind == INTERNAL]
