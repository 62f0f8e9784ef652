"""Write only the extension record fields a publish actually changed."""

from __future__ import annotations

import logging
import typing as typ

if typ.TYPE_CHECKING:
    from extension_docs.models import ExtensionRecord
    from extension_docs.records import RecordStore

logger = logging.getLogger(__name__)


def compute_changes(
    record: ExtensionRecord,
    *,
    description: str,
    src: str,
    monetization_ref: str | None,
) -> dict[str, str | None]:
    """Return the minimal field diff between ``record`` and the new values.

    A cleared monetization reference maps to ``None`` so that the store
    removes the attribute rather than writing an empty string.

    Examples
    --------
    >>> from extension_docs.models import ExtensionRecord
    >>> record = ExtensionRecord(path="demo", owner="u1", description="Old", src="x")
    >>> compute_changes(record, description="New", src="x", monetization_ref=None)
    {'description': 'New'}
    """
    changes: dict[str, str | None] = {}
    if description != record.description:
        changes["description"] = description
    if src != record.src:
        changes["src"] = src
    if monetization_ref != record.monetization_ref:
        changes["monetization_ref"] = monetization_ref
    return changes


class MetadataSynchronizer:
    """Apply field diffs to the record store in a single conditional write."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def sync(
        self,
        record: ExtensionRecord,
        *,
        description: str,
        src: str,
        monetization_ref: str | None,
    ) -> dict[str, str | None]:
        """Update ``record``'s stored fields and return the changes written.

        No store call is made when nothing differs.
        """
        changes = compute_changes(
            record,
            description=description,
            src=src,
            monetization_ref=monetization_ref,
        )
        if not changes:
            logger.debug("Record for %s is up to date", record.path)
            return changes
        self.store.update(record.path, changes)
        logger.info("Updated %s on record %s", ", ".join(sorted(changes)), record.path)
        return changes


__all__ = ["MetadataSynchronizer", "compute_changes"]
