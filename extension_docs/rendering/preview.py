"""Render published markdown into a standalone HTML preview page.

The docs site understands component tags (``<Block>``, ``<Highlight>``,
``<Loom>``...) that a plain markdown renderer does not. The preview maps them
onto ordinary HTML, converts the markdown with Pygments-highlighted code, and
wraps the result in a Jinja template carrying the matching stylesheet so
authors can check a document locally before publishing.
"""

from __future__ import annotations

import datetime as dt
import re
import typing as typ
from html import escape
from pathlib import Path

from jinja2 import Environment, PackageLoader, select_autoescape
from markdown import Markdown
from pygments.formatters import HtmlFormatter

if typ.TYPE_CHECKING:
    import collections.abc as cabc

HIGHLIGHT_CSS_CLASS = "codehilite"
PAGE_TEMPLATE = "preview_page.jinja"

# Fences indented under a list item are lifted to column zero for fenced_code.
_INDENTED_FENCE = re.compile(r"^ {1,3}(`{3,}|~{3,})", re.MULTILINE)

_VIDEO_EMBEDS = {
    "Loom": "https://www.loom.com/embed/{0}",
    "YouTube": "https://www.youtube.com/embed/{0}",
}


def _attr(value: str) -> str:
    return escape(value, quote=True)


def _block_anchor(match: re.Match[str]) -> str:
    return f'<span id="{_attr(match.group(1))}"></span>'


def _video_embed(match: re.Match[str]) -> str:
    kind, video_id = match.groups()
    src = _VIDEO_EMBEDS[kind].format(_attr(video_id))
    return f'<iframe class="video {kind.lower()}" src="{src}" allowfullscreen></iframe>'


def _demo_video(match: re.Match[str]) -> str:
    return f'<video controls src="{_attr(match.group(1))}"></video>'


COMPONENTS: tuple[tuple[re.Pattern[str], str | cabc.Callable[[re.Match[str]], str]], ...] = (
    (re.compile(r'<Block id=\{"([^"]*)"\}>'), _block_anchor),
    (re.compile(r"</Block>"), ""),
    (re.compile(r'<(Loom|YouTube) id=\{"([^"]*)"\} />'), _video_embed),
    (re.compile(r'<DemoVideo src=\{"([^"]*)"\} />'), _demo_video),
    (re.compile(r"<Center>"), '<div class="center">'),
    (re.compile(r"</Center>"), "</div>"),
    (re.compile(r"<(/?)Highlight>"), r"<\1mark>"),
    (re.compile(r"<Premium />"), '<span class="premium">Premium</span>'),
)


def components_to_html(document: str) -> str:
    """Replace the site's component tags in ``document`` with plain HTML."""
    for pattern, replacement in COMPONENTS:
        document = pattern.sub(replacement, document)
    return document


class HtmlPreviewRenderer:
    """Render published markdown documents as HTML pages."""

    def __init__(self, pygments_style: str = "monokai") -> None:
        self.pygments_style = pygments_style
        self.env = Environment(
            loader=PackageLoader("extension_docs", "templates"),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    @property
    def stylesheet(self) -> str:
        """Pygments rules for the configured style, scoped to highlighted blocks."""
        formatter = HtmlFormatter(style=self.pygments_style)
        return formatter.get_style_defs(f".{HIGHLIGHT_CSS_CLASS}")

    def body_html(self, document: str) -> str:
        """Convert a published markdown document into an HTML fragment."""
        source = _INDENTED_FENCE.sub(r"\1", components_to_html(document))
        if not source.strip():
            return ""
        converter = Markdown(
            extensions=["fenced_code", "codehilite", "tables", "sane_lists"],
            extension_configs={
                "codehilite": {
                    "css_class": HIGHLIGHT_CSS_CLASS,
                    "guess_lang": False,
                    "pygments_style": self.pygments_style,
                }
            },
        )
        return converter.convert(source)

    def render_page(self, document: str, *, title: str) -> str:
        """Render ``document`` into a complete HTML page titled ``title``."""
        page = self.env.get_template(PAGE_TEMPLATE).render(
            title=title,
            body_html=self.body_html(document),
            highlight_css=self.stylesheet,
            generated_at=dt.datetime.now(dt.UTC),
        )
        return page if page.endswith("\n") else f"{page}\n"


def write_preview(
    document: str, output: Path, *, title: str, renderer: HtmlPreviewRenderer | None = None
) -> Path:
    """Render ``document`` to ``output`` and return the written path."""
    html = (renderer or HtmlPreviewRenderer()).render_page(document, title=title)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(html, encoding="utf-8")
    return output


__all__ = ["HtmlPreviewRenderer", "components_to_html", "write_preview"]
