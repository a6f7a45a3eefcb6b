"""Markdown rendering for Glassbox.

The cache never converts markdown itself; it calls an injected BodyRenderer.
This module provides the default implementation on top of mistune and
Pygments.

Key classes:
- MarkdownRenderer: Renders markdown bodies to HTML.
- _HighlightRenderer: mistune renderer with heading anchors, typography and
  syntax highlighting.

Key functions:
- highlight_css: Stylesheet matching the highlighted code blocks.
"""

from __future__ import annotations

import re

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .errors import RenderError

HIGHLIGHT_STYLE = "monokai"
HIGHLIGHT_CSS_CLASS = "highlight"
TAB_WIDTH = 2

MARKDOWN_PLUGINS = ["strikethrough", "table", "url", "footnotes"]

_DASHES = [
    (re.compile(r"---"), "\u2014"),
    (re.compile(r"--"), "\u2013"),
    (re.compile(r"\.\.\."), "\u2026"),
]

_QUOTE_OPENERS = "([{\u2014\u2013"

_QUOTES = [
    (re.compile(r"([\s(\[{\u2014\u2013])\""), "\\1\u201c"),
    (re.compile(r"\""), "\u201d"),
    (re.compile(r"([\s(\[{\u2014\u2013])'"), "\\1\u2018"),
    (re.compile(r"'"), "\u2019"),
]

# Tokens whose inline children start a fresh run of text.
_BLOCK_TOKENS = {"paragraph", "heading", "block_text", "table_cell"}


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-") or "heading"


def smarten(text: str, previous: str = "") -> str:
    """Apply typographic substitutions to plain text.

    Converts ``---`` and ``--`` to em and en dashes, ``...`` to an ellipsis,
    and straight quotes to curly quotes.

    Args:
        text: Plain text.
        previous: Character rendered just before ``text`` in the same
            paragraph. A leading quote opens only after whitespace, an
            opening bracket, a dash, or at the start of the paragraph.

    Examples:
        >>> smarten('"Wait..." -- she said')
        '\u201cWait\u2026\u201d \u2013 she said'
        >>> smarten('" loudly', previous="p")
        '\u201d loudly'
    """
    for pattern, replacement in _DASHES:
        text = pattern.sub(replacement, text)
    opens = not previous or previous.isspace() or previous in _QUOTE_OPENERS
    text = (" " if opens else "x") + text
    for pattern, replacement in _QUOTES:
        text = pattern.sub(replacement, text)
    return text[1:]


def highlight_css() -> str:
    """Return the stylesheet for highlighted code blocks.

    Returns:
        CSS rules scoped to the ``.highlight`` class.
    """
    formatter = HtmlFormatter(style=HIGHLIGHT_STYLE, cssclass=HIGHLIGHT_CSS_CLASS)
    return formatter.get_style_defs(f".{HIGHLIGHT_CSS_CLASS}")


class _HighlightRenderer(mistune.HTMLRenderer):
    """mistune renderer with heading anchors, typography and Pygments."""

    def __init__(self) -> None:
        super().__init__(escape=False)
        self._heading_id_counts: dict[str, int] = {}
        self._previous = ""

    def render_token(self, token, state):
        if token["type"] in _BLOCK_TOKENS:
            self._previous = ""
        return super().render_token(token, state)

    def text(self, text: str) -> str:
        text = smarten(text, self._previous)
        if text:
            self._previous = text[-1]
        return super().text(text)

    def codespan(self, text: str) -> str:
        if text:
            self._previous = text[-1]
        return super().codespan(text)

    def softbreak(self) -> str:
        self._previous = "\n"
        return super().softbreak()

    def linebreak(self) -> str:
        self._previous = "\n"
        return super().linebreak()

    def heading(self, text: str, level: int, **attrs) -> str:
        """Render a heading with a unique auto-generated ID.

        Args:
            text: Heading text content.
            level: Heading level (1-6).
            **attrs: Additional attributes.

        Returns:
            HTML heading tag with id attribute.
        """
        base_id = _generate_heading_id(text)

        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id

        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block with Pygments syntax highlighting.

        Args:
            code: The code content.
            info: Language identifier (e.g., 'python', 'go').

        Returns:
            HTML string with highlighted code.
        """
        lang = info.split()[0] if info and info.strip() else None
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True, tabsize=TAB_WIDTH)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(
                    style=HIGHLIGHT_STYLE, cssclass=HIGHLIGHT_CSS_CLASS
                )
                return highlight(code, lexer, formatter)
        escaped = code.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
        lang_class = f' class="language-{lang}"' if lang else ""
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


class MarkdownRenderer:
    """Renders markdown bodies to HTML.

    Tables, strikethrough, autolinks and footnotes are enabled. Raw HTML in
    the body is passed through unescaped. A fresh mistune instance is used per
    call so heading IDs never leak between posts.
    """

    def render(self, body: str) -> str:
        """Render markdown to HTML.

        Args:
            body: Markdown source.

        Returns:
            Rendered HTML.

        Raises:
            RenderError: If the markdown engine fails.
        """
        markdown = mistune.create_markdown(
            renderer=_HighlightRenderer(), plugins=MARKDOWN_PLUGINS
        )
        try:
            return markdown(body)
        except Exception as exc:
            raise RenderError(f"failed to render markdown: {exc}") from exc
