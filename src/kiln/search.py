"""Search index generation.

Turns each item's Markdown body into plain text for client-side lookup.
Fenced code is copied verbatim, everything else loses its Markdown markers.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from kiln.core.types import ContentItem, SearchDocument

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
_QUOTE_MARKER = re.compile(r" {0,3}>[ \t]?")
_LIST_ITEM = re.compile(r"^ *(?:[-*+]|\d{1,9}[.)]) +")

_REFERENCE_DEFINITION = re.compile(r"^ {0,3}\[[^\]]+\]:\s*\S+.*$")
_HORIZONTAL_RULE = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
_SETEXT_UNDERLINE = re.compile(r"^ {0,3}=+[ \t]*$")
_HEADING = re.compile(r"^ {0,3}#{1,6}(?:[ \t]+|$)")
_HEADING_CLOSE = re.compile(r"[ \t]+#+[ \t]*$")
_BLOCKQUOTE = re.compile(r"^ {0,3}(?:>[ \t]?)+")
_LIST_MARKER = re.compile(r"^[ \t]*(?:[-*+]|\d{1,9}[.)])[ \t]+(?:\[[ xX]\][ \t]+)?")

_INLINE_CODE = re.compile(r"(`+)(.+?)\1")
_IMAGE = re.compile(r"!\[([^\]]*)\](?:\([^)]*\)|\[[^\]]*\])")
_LINK = re.compile(r"\[([^\]]*)\](?:\([^)]*\)|\[[^\]]*\])")
_AUTOLINK = re.compile(r"<((?:https?|ftp|mailto):[^>\s]+)>")
_HTML_TAG = re.compile(r"</?[A-Za-z][^>]*>|<!--.*?-->")
_STRIKETHROUGH = re.compile(r"~~(\S(?:.*?\S)?)~~")
_STAR_EMPHASIS = re.compile(r"(\*{1,3})(\S(?:.*?\S)?)\1")
_UNDERSCORE_EMPHASIS = re.compile(r"(?<!\w)(_{1,3})(\S(?:.*?\S)?)\1(?!\w)")
_ESCAPE = re.compile(r"\\([\\`*_{}\[\]()#+\-.!>~|])")
_BLANK_RUNS = re.compile(r"\n{3,}")


def _strip_inline(text: str) -> str:
    text = _IMAGE.sub(r"\1", text)
    text = _LINK.sub(r"\1", text)
    text = _AUTOLINK.sub(r"\1", text)
    text = _HTML_TAG.sub("", text)
    text = _STRIKETHROUGH.sub(r"\1", text)
    text = _STAR_EMPHASIS.sub(r"\2", text)
    text = _UNDERSCORE_EMPHASIS.sub(r"\2", text)
    return _ESCAPE.sub(r"\1", text)


def _strip_prose_line(line: str) -> str | None:
    """Strip one prose line, ``None`` when the line carries no text at all."""
    if _REFERENCE_DEFINITION.match(line) or _HORIZONTAL_RULE.match(line) or _SETEXT_UNDERLINE.match(line):
        return None

    line = _BLOCKQUOTE.sub("", line)
    if _HEADING.match(line):
        line = _HEADING_CLOSE.sub("", _HEADING.sub("", line))
    line = _LIST_MARKER.sub("", line)

    # Inline code spans keep their content untouched.
    parts: list[str] = []
    position = 0
    for match in _INLINE_CODE.finditer(line):
        parts.append(_strip_inline(line[position : match.start()]))
        parts.append(match.group(2))
        position = match.end()
    parts.append(_strip_inline(line[position:]))
    return "".join(parts).rstrip()


def _opens_fence(line: str) -> str | None:
    match = _FENCE_OPEN.match(line)
    if match is None:
        return None
    fence = match.group("fence")
    # A backtick fence cannot carry backticks in its info string, "```x```" is inline code.
    if fence[0] == "`" and "`" in match.group("info"):
        return None
    return fence


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _unquote(line: str, levels: int | None = None) -> tuple[int, str]:
    """Remove up to ``levels`` blockquote markers, returning how many were removed."""
    depth = 0
    while levels is None or depth < levels:
        match = _QUOTE_MARKER.match(line)
        if match is None:
            break
        line = line[match.end() :]
        depth += 1
    return depth, line


@dataclass(frozen=True)
class _Fence:
    """An open code fence and the containers it sits in."""

    marker: str
    depth: int
    column: int
    indent: int

    def inner(self, line: str) -> str | None:
        """The line without its blockquote and list prefixes, ``None`` once a container ends."""
        depth, rest = _unquote(line, self.depth)
        if depth < self.depth:
            return None
        if self.column and rest.strip() and _indent(rest) < self.column:
            return None
        return rest[min(_indent(rest), self.column) :]

    def closed_by(self, inner: str) -> bool:
        stripped = inner.strip()
        return (
            _indent(inner) <= 3
            and len(stripped) >= len(self.marker)
            and set(stripped) == {self.marker[0]}
        )

    def code(self, inner: str) -> str:
        return inner[min(_indent(inner), self.indent) :]


def strip_markdown(body: str) -> str:
    """Reduce Markdown to searchable plain text.

    Fenced code blocks (three or more backticks or tildes) are passed through
    verbatim, delimiter lines excluded. A fence only closes on a line of the
    same character that is at least as long as the opening one; a fence left
    open runs to the end of the document. Fences inside blockquotes or list
    items lose the container prefix and end with their container.

    Examples:
        >>> strip_markdown("Some **bold** [link](https://example.com).")
        'Some bold link.'
        >>> strip_markdown("```\\n*kept* `as is`\\n```")
        '*kept* `as is`'

    """
    lines: list[str] = []
    fence: _Fence | None = None
    # Content column of the innermost open list item, 0 outside lists.
    column = 0

    for line in body.splitlines():
        if fence is not None:
            inner = fence.inner(line)
            if inner is not None:
                if fence.closed_by(inner):
                    fence = None
                else:
                    lines.append(fence.code(inner))
                continue
            fence = None

        depth, rest = _unquote(line)
        item = _LIST_ITEM.match(rest)
        if item is not None:
            column = item.end()
            candidate = rest[column:]
        elif rest.strip() and _indent(rest) < column:
            column = 0
            candidate = rest
        else:
            candidate = rest[min(_indent(rest), column) :]

        opening = _opens_fence(candidate)
        if opening is not None:
            fence = _Fence(marker=opening, depth=depth, column=column, indent=_indent(candidate))
            continue

        stripped = _strip_prose_line(line)
        if stripped is not None:
            lines.append(stripped)

    return _BLANK_RUNS.sub("\n\n", "\n".join(lines)).strip("\n")


def build_search_index(items: Sequence[ContentItem]) -> list[SearchDocument]:
    """Produce one ``SearchDocument`` per item, in item order."""
    documents = [
        SearchDocument(slug=item.slug, title=item.title, body=strip_markdown(item.body)) for item in items
    ]
    logger.debug("Built %d search document(s)", len(documents))
    return documents
