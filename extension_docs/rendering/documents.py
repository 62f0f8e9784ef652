"""Turn a publish request into the markdown documents that will be uploaded."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from .markup import MarkupTranslator
from .references import resolve_references
from .tree import TreeRenderer

if typ.TYPE_CHECKING:
    from extension_docs.models import PublishRequest


@dc.dataclass(slots=True)
class RenderedDocuments:
    """Rendered main document plus sub-documents keyed by their raw name."""

    main: str
    subpages: dict[str, str] = dc.field(default_factory=dict)


def render_documents(request: PublishRequest) -> RenderedDocuments:
    """Resolve references (when a reference table is supplied) and render.

    Sub-documents stay keyed by the author's name; callers normalize names
    when building storage keys.
    """
    renderer = TreeRenderer(MarkupTranslator(request.path))
    blocks = request.blocks
    if request.references:
        blocks = resolve_references(blocks, request.path, request.references)
    main = renderer.render_main_document(blocks, request.view_type)

    subpages: dict[str, str] = {}
    for name, entry in request.subpages.items():
        nodes = entry.nodes
        if request.references:
            nodes = resolve_references(nodes, request.path, request.references)
        subpages[name] = renderer.render_nodes(nodes, entry.view_type)
    return RenderedDocuments(main=main, subpages=subpages)


__all__ = ["RenderedDocuments", "render_documents"]
