"""Delete sub-documents that are no longer part of an extension's docs."""

from __future__ import annotations

import logging
import typing as typ

if typ.TYPE_CHECKING:
    from extension_docs.config import StorageConfig
    from extension_docs.storage import ObjectStore

logger = logging.getLogger(__name__)


class SubpageSetReconciler:
    """Diff desired sub-document names against the keys already published."""

    def __init__(self, store: ObjectStore, layout: StorageConfig) -> None:
        self.store = store
        self.layout = layout

    def stale_keys(self, path: str, names: typ.Iterable[str]) -> list[str]:
        """Return published sub-document keys of ``path`` absent from ``names``.

        The listing is exhausted before diffing. Keys outside the path's
        sub-document prefix, or nested below it, are never returned.
        """
        prefix = self.layout.subpage_prefix(path)
        desired = {self.layout.subpage_key(path, name) for name in names}
        listing = self.store.list_all(prefix, delimiter="/")
        return [
            key
            for key in listing.keys
            if key.startswith(prefix)
            and "/" not in key[len(prefix) :]
            and key not in desired
        ]

    def reconcile(self, path: str, names: typ.Iterable[str]) -> list[str]:
        """Delete stale sub-documents of ``path`` and return their keys."""
        stale = self.stale_keys(path, names)
        if not stale:
            return []
        self.store.delete_many(stale)
        logger.info("Deleted %d subpages for %s", len(stale), path)
        return stale


__all__ = ["SubpageSetReconciler"]
