"""Render content trees into the indented markdown the docs site consumes.

Published documents are diffed against their previous versions, so the
whitespace produced here is part of the contract: every line of a block sits
at ``depth * 4`` spaces plus the width of its view-type bullet, including the
continuation lines of multi-line text.
"""

from __future__ import annotations

import typing as typ

from extension_docs.models import ViewType

if typ.TYPE_CHECKING:
    from extension_docs.models import ContentNode
    from extension_docs.rendering.markup import MarkupTranslator

VIEW_TYPE_PREFIXES: dict[str, str] = {
    ViewType.BULLET: "- ",
    ViewType.DOCUMENT: "",
    ViewType.NUMBERED: "1. ",
}
README_HOST = "github.com"


def line_prefix(view_type: str | None, depth: int) -> str:
    """Return the indentation and bullet token for a block at ``depth``."""
    bullet = VIEW_TYPE_PREFIXES.get(view_type or ViewType.BULLET, "- ")
    return f"{' ' * (depth * 4)}{bullet}"


class TreeRenderer:
    """Render blocks recursively using a path-specific markup translator."""

    def __init__(self, translator: MarkupTranslator) -> None:
        self.translator = translator

    def render(self, node: ContentNode, view_type: str | None, depth: int = 0) -> str:
        """Render ``node`` and its subtree as markdown.

        Parameters
        ----------
        node : ContentNode
            Block to render.
        view_type : str or None
            View type of the parent, which decides this block's bullet and
            whether its children are indented (document view is flat).
        depth : int, optional
            Nesting depth used for indentation. Defaults to ``0``.
        """
        prefix = line_prefix(view_type, depth)
        heading = node.heading or 0
        centered = node.text_align == "center"
        padding = f"\n\n{' ' * len(prefix)}" if "\n" in node.text else ""
        parts = [
            prefix,
            f'<Block id={{"{node.uid}"}}>',
            "#" * heading,
            " " if heading > 0 else "",
            "<Center>" if centered else "",
            padding,
            self.translator.translate(node.text, prefix),
            padding,
            "</Center>" if centered else "",
            "</Block>\n\n",
        ]
        flat = view_type == ViewType.DOCUMENT
        child_depth = depth if flat else depth + 1
        parts.extend(
            self.render(child, node.view_type, child_depth) for child in node.children
        )
        if flat and node.children:
            parts.append("\n")
        return "".join(parts)

    def render_nodes(
        self, nodes: typ.Iterable[ContentNode], view_type: str | None
    ) -> str:
        """Render a sequence of top-level blocks under ``view_type``."""
        return "".join(self.render(node, view_type) for node in nodes)

    def render_main_document(
        self, blocks: typ.Sequence[ContentNode], view_type: str | None
    ) -> str:
        """Render the main document, passing a lone README link through verbatim."""
        if len(blocks) == 1 and README_HOST in blocks[0].text:
            return blocks[0].text
        return self.render_nodes(blocks, view_type)


__all__ = ["README_HOST", "VIEW_TYPE_PREFIXES", "TreeRenderer", "line_prefix"]
