"""Unit tests for sub-document reconciliation."""

from __future__ import annotations

import typing as typ

from extension_docs.subpages import SubpageSetReconciler

if typ.TYPE_CHECKING:
    from conftest import InMemoryObjectStore

    from extension_docs.config import PublisherConfig


def _seed(store: InMemoryObjectStore, *keys: str) -> None:
    for key in keys:
        store.put(key, "old", "text/markdown")


def test_reconcile_deletes_only_stale_subpages(
    object_store: InMemoryObjectStore, publisher_config: PublisherConfig
) -> None:
    """Published minus desired is deleted; everything else is untouched."""
    _seed(
        object_store,
        "documents/query-builder.md",
        "documents/query-builder/getting_started.md",
        "documents/query-builder/old_page.md",
        "documents/query-builder/nested/deep.md",
        "documents/query-builder-two/old_page.md",
    )
    reconciler = SubpageSetReconciler(object_store, publisher_config.storage)

    deleted = reconciler.reconcile("query-builder", ["Getting Started"])

    assert deleted == ["documents/query-builder/old_page.md"], (
        f"only the stale sub-document should be deleted, got {deleted}"
    )
    assert "documents/query-builder/getting_started.md" in object_store.objects, (
        "desired sub-documents must survive reconciliation"
    )
    assert "documents/query-builder-two/old_page.md" in object_store.objects, (
        "keys outside the path's prefix must never be touched"
    )
    assert "documents/query-builder/nested/deep.md" in object_store.objects, (
        "nested keys are outside the sub-document set"
    )


def test_reconcile_without_stale_keys_skips_delete(
    object_store: InMemoryObjectStore, publisher_config: PublisherConfig
) -> None:
    _seed(object_store, "documents/query-builder/setup.md")
    reconciler = SubpageSetReconciler(object_store, publisher_config.storage)

    assert reconciler.reconcile("query-builder", ["Setup"]) == [], "nothing is stale"
    assert object_store.deleted == [], "no delete call expected for an empty diff"


def test_reconcile_with_no_desired_names_clears_all(
    object_store: InMemoryObjectStore, publisher_config: PublisherConfig
) -> None:
    _seed(
        object_store,
        "documents/query-builder/a.md",
        "documents/query-builder/b.md",
    )
    reconciler = SubpageSetReconciler(object_store, publisher_config.storage)

    deleted = reconciler.reconcile("query-builder", [])

    assert sorted(deleted) == [
        "documents/query-builder/a.md",
        "documents/query-builder/b.md",
    ], f"every published sub-document should be deleted, got {deleted}"
