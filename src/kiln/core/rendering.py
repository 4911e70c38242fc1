"""Markdown to HTML rendering."""

from __future__ import annotations

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml


def _highlight_block(content: str, lang: str, attrs: str) -> str:
    """Wrap fenced code for a client-side highlighter."""
    language = escapeHtml(lang) if lang else "text"
    return (
        f'<pre class="highlight" data-lang="{language}">'
        f'<code class="language-{language}">{escapeHtml(content)}</code></pre>\n'
    )


def create_renderer(*, highlight_code: bool = False) -> MarkdownIt:
    """Build a commonmark renderer with tables and strikethrough enabled."""
    options: dict[str, object] = {"html": True}
    if highlight_code:
        options["highlight"] = _highlight_block
    return MarkdownIt("commonmark", options).enable(["table", "strikethrough"])


def render_html(content: str | None, renderer: MarkdownIt | None = None) -> str:
    """Render markdown content to HTML.

    Returns an empty string if content is None or empty.
    """
    if not content:
        return ""
    return (renderer or create_renderer()).render(content).strip()
