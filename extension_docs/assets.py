"""Upload rendered documents, thumbnails, and script bundles.

Uploads within a stage fan out on a thread pool and the stage waits for every
write; the first failure fails the stage once the pool drains. Writes that
already landed are not rolled back.
"""

from __future__ import annotations

import concurrent.futures as cf
import logging
import typing as typ

from extension_docs._constants import (
    MARKDOWN_CONTENT_TYPE,
    PNG_CONTENT_TYPE,
    SCRIPT_CONTENT_TYPE,
)
from extension_docs.errors import StageError
from extension_docs.transport import DEFAULT_TIMEOUT, build_session

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    import requests

    from extension_docs.config import StorageConfig
    from extension_docs.rendering import RenderedDocuments
    from extension_docs.storage import ObjectStore, PutResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


def _gather(
    tasks: cabc.Sequence[cabc.Callable[[], PutResult]], max_workers: int
) -> list[PutResult]:
    """Run ``tasks`` concurrently and return their results in order.

    Every task is awaited before the first error (in submission order) is
    re-raised.
    """
    if not tasks:
        return []
    with cf.ThreadPoolExecutor(max_workers=min(max_workers, len(tasks))) as pool:
        futures = [pool.submit(task) for task in tasks]
        cf.wait(futures)
    return [future.result() for future in futures]


class AssetPublisher:
    """Write the published artifacts of an extension to object storage."""

    def __init__(
        self,
        store: ObjectStore,
        layout: StorageConfig,
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self.store = store
        self.layout = layout
        self.timeout = timeout
        self.max_workers = max_workers
        self._session = session or build_session()

    def upload_thumbnail(self, path: str, url: str) -> PutResult:
        """Stream the image at ``url`` into the thumbnail key of ``path``."""
        response = self._session.get(url, stream=True, timeout=self.timeout)
        try:
            response.raise_for_status()
            # Store the image bytes, not a gzip or deflate transfer encoding.
            response.raw.decode_content = True
            return self.store.put(self.layout.thumbnail_key(path), response.raw, PNG_CONTENT_TYPE)
        finally:
            response.close()

    def publish_documents(
        self,
        path: str,
        documents: RenderedDocuments,
        *,
        thumbnail: str | None = None,
    ) -> str | None:
        """Upload the main document, sub-documents, and optional thumbnail.

        Returns
        -------
        str | None
            The ETag reported for the main document write.
        """
        main_key = self.layout.document_key(path)
        tasks: list[cabc.Callable[[], PutResult]] = [
            lambda: self.store.put(main_key, documents.main, MARKDOWN_CONTENT_TYPE)
        ]
        for name, body in documents.subpages.items():
            key = self.layout.subpage_key(path, name)
            tasks.append(
                lambda key=key, body=body: self.store.put(key, body, MARKDOWN_CONTENT_TYPE)
            )
        if thumbnail:
            tasks.append(lambda: self.upload_thumbnail(path, thumbnail))

        results = _gather(tasks, self.max_workers)
        logger.info(
            "Uploaded %d document(s)%s for %s",
            1 + len(documents.subpages),
            " and a thumbnail" if thumbnail else "",
            path,
        )
        return results[0].etag

    def publish_bundle(self, path: str, version: str, implementation: str) -> list[str]:
        """Write ``implementation`` to the versioned and canonical bundle keys."""
        keys = self.layout.bundle_keys(path, version)
        tasks: list[cabc.Callable[[], PutResult]] = [
            lambda key=key: self.store.put(key, implementation, SCRIPT_CONTENT_TYPE)
            for key in keys
        ]
        try:
            _gather(tasks, self.max_workers)
        except Exception as exc:
            raise StageError("Failed to publish versioned extension", exc) from exc
        logger.info("Published bundle for %s at version %s", path, version)
        return list(keys)


__all__ = ["DEFAULT_MAX_WORKERS", "AssetPublisher"]
