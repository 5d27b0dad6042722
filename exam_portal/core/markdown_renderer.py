"""Markdown rendering for question prompts and option text.

Question banks are authored by administrators as plain JSON strings, which
often carry light Markdown (emphasis, inline code, small tables). Rendering
happens on the server so the exam page only has to insert the fragment.
Raw HTML in the source is escaped rather than passed through.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt


@dataclass(slots=True)
class MarkdownRenderer:
    """Converts Markdown source into HTML fragments."""

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

    def render_inline(self, markdown_text: str) -> str:
        """Render without the wrapping paragraph, for option labels."""

        return self._markdown.renderInline(markdown_text.strip())


renderer = MarkdownRenderer()
# MarkdownIt is safe to share for read-only renders across request threads.
