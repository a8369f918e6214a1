"""Markdown + LaTeX rendering for question text.

Question text arrives from the server as markdown that may contain ``$...$``
math. Both the browser page and the Qt window show the same HTML fragment;
the browser page loads MathJax to typeset the math, the Qt label shows the
TeX source as-is.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from html import escape

from markdown_it import MarkdownIt


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        """Render a markdown string into an HTML fragment."""
        sanitized = markdown_text.strip()
        if not sanitized:
            return "<p><em>No content provided.</em></p>"
        return self._markdown.render(sanitized)

    def render_inline(self, text: str) -> str:
        """Render a short option label without wrapping it in a paragraph."""
        stripped = text.strip()
        if not stripped:
            return escape("(empty)")
        return self._markdown.renderInline(stripped)


# MarkdownIt renders are read-only, so one shared instance serves both the
# Qt thread and the FastAPI worker threads.
renderer = MarkdownMathRenderer()
