r"""Resolve block references in a content tree before it is rendered.

Authors cross-reference blocks with three markers: an embed
(``{{embed: ((uid))}}``), an aliased reference (``[alias](((uid)))``), and a
bare reference (``((uid))``). References to blocks whose page lives in the
publishing namespace (the extension path or one of its sub-pages) become
relative links into the documentation site; references elsewhere collapse to
plain text because the target is not published.

Resolution returns a new tree and leaves the input untouched. Each marker
kind is substituted in a single pass per node, so text introduced by a
substitution is not re-scanned by that same rule.

Example
-------
>>> from extension_docs.models import ContentNode, ReferencedBlock
>>> lookup = {"abcdefghi": ReferencedBlock(text="Install", page="demo/Setup")}
>>> nodes = (ContentNode(uid="root00001", text="See ((abcdefghi))"),)
>>> resolve_references(nodes, "demo", lookup)[0].text
'See [Install](/extensions/demo/setup#abcdefghi)'
"""

from __future__ import annotations

import re
import typing as typ

import msgspec

from extension_docs._constants import EXTENSIONS_URL_PREFIX
from extension_docs.models import ContentNode, ReferencedBlock, ViewType, normalize_name

BLOCK_REF_SOURCE = r"\(\(([\w-]{9,10})\)\)"
BLOCK_REF_PATTERN = re.compile(BLOCK_REF_SOURCE, re.ASCII)
EMBED_REF_PATTERN = re.compile(
    rf"\{{\{{(?:\[\[)?embed(?:\]\])?:\s*{BLOCK_REF_SOURCE}\s*\}}\}}", re.ASCII
)
ALIAS_BLOCK_PATTERN = re.compile(rf"\[(.*?)\]\({BLOCK_REF_SOURCE}\)", re.ASCII)


class BlockLookup(typ.Protocol):
    """Anything that can return a referenced block by uid, such as a dict."""

    def get(self, uid: str, /) -> ReferencedBlock | None: ...


def is_internal(page: str, namespace: str) -> bool:
    """Return True when ``page`` is the namespace itself or nested under it."""
    return page == namespace or page.startswith(f"{namespace}/")


class ReferenceResolver:
    """Resolve reference markers against a lookup for one namespace."""

    def __init__(self, namespace: str, lookup: BlockLookup) -> None:
        self.namespace = namespace
        self.lookup = lookup

    def resolve(self, node: ContentNode) -> ContentNode:
        """Return a copy of ``node`` and its subtree with references resolved."""
        embedded: list[ContentNode] = []
        adopted: dict[str, typ.Any] = {}

        def _embed(match: re.Match[str]) -> str:
            block = self.lookup.get(match.group(1))
            if block is None:
                return match.group(0)
            embedded.extend(block.children)
            adopted.update(
                heading=block.heading,
                view_type=block.view_type or ViewType.BULLET.value,
                text_align=block.text_align,
            )
            return block.text

        def _alias(match: re.Match[str]) -> str:
            alias, uid = match.group(1), match.group(2)
            block = self.lookup.get(uid)
            if block is None:
                return match.group(0)
            return self._link(alias, block, uid) or alias

        def _reference(match: re.Match[str]) -> str:
            uid = match.group(1)
            block = self.lookup.get(uid)
            if block is None:
                return match.group(0)
            return self._link(block.text, block, uid) or block.text

        text = EMBED_REF_PATTERN.sub(_embed, node.text)
        text = ALIAS_BLOCK_PATTERN.sub(_alias, text)
        text = BLOCK_REF_PATTERN.sub(_reference, text)
        children = tuple(self.resolve(child) for child in (*node.children, *embedded))
        return msgspec.structs.replace(node, text=text, children=children, **adopted)

    def _link(self, label: str, block: ReferencedBlock, uid: str) -> str | None:
        page = normalize_name(block.page)
        if not is_internal(page, self.namespace):
            return None
        return f"[{label}]({EXTENSIONS_URL_PREFIX}/{page}#{uid})"


def resolve_references(
    nodes: typ.Iterable[ContentNode], namespace: str, lookup: BlockLookup
) -> tuple[ContentNode, ...]:
    """Resolve references in every node of ``nodes`` for ``namespace``."""
    resolver = ReferenceResolver(namespace, lookup)
    return tuple(resolver.resolve(node) for node in nodes)


__all__ = [
    "ALIAS_BLOCK_PATTERN",
    "BLOCK_REF_PATTERN",
    "EMBED_REF_PATTERN",
    "BlockLookup",
    "ReferenceResolver",
    "is_internal",
    "resolve_references",
]
