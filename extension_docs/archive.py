"""Write-once snapshots of every publish request.

Each request body is stored verbatim before anything else is mutated, keyed
by path and a minute-granularity version stamp. Snapshots form an audit trail
that survives downstream failures; nothing in the pipeline reads them back.
"""

from __future__ import annotations

import datetime as dt
import logging
import typing as typ

from extension_docs._constants import JSON_CONTENT_TYPE, VERSION_FORMAT

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from extension_docs.config import StorageConfig
    from extension_docs.storage import ObjectStore

logger = logging.getLogger(__name__)


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


def version_stamp(moment: dt.datetime) -> str:
    """Format ``moment`` as ``YYYY-MM-DD-HH-MM``.

    Examples
    --------
    >>> version_stamp(dt.datetime(2024, 3, 7, 9, 5))
    '2024-03-07-09-05'
    """
    return moment.strftime(VERSION_FORMAT)


class VersionArchiver:
    """Persist raw publish bodies under ``versions/{path}/{stamp}.json``."""

    def __init__(
        self,
        store: ObjectStore,
        layout: StorageConfig,
        *,
        clock: cabc.Callable[[], dt.datetime] = utc_now,
    ) -> None:
        self.store = store
        self.layout = layout
        self.clock = clock

    def archive(self, path: str, raw_body: bytes | str) -> str:
        """Write ``raw_body`` for ``path`` and return the version stamp used."""
        version = version_stamp(self.clock())
        key = self.layout.version_key(path, version)
        self.store.put(key, raw_body, JSON_CONTENT_TYPE)
        logger.info("Archived publish request for %s as %s", path, key)
        return version


__all__ = ["VersionArchiver", "utc_now", "version_stamp"]
