"""Transform content trees into published markdown and local previews."""

from .documents import RenderedDocuments, render_documents
from .markup import MarkupRule, MarkupTranslator
from .preview import HtmlPreviewRenderer, write_preview
from .references import ReferenceResolver, resolve_references
from .tree import TreeRenderer

__all__ = [
    "HtmlPreviewRenderer",
    "MarkupRule",
    "MarkupTranslator",
    "ReferenceResolver",
    "RenderedDocuments",
    "TreeRenderer",
    "render_documents",
    "resolve_references",
    "write_preview",
]
