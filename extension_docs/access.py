"""Check that a publisher may publish to the requested path."""

from __future__ import annotations

import threading
import typing as typ

from extension_docs.errors import AuthorizationError

if typ.TYPE_CHECKING:
    from extension_docs.models import Publisher, PublishRequest
    from extension_docs.records import RecordStore


class OwnerPathsCache:
    """Read-through cache of the paths each owner holds.

    The cache is not authoritative: a miss for a path re-queries the record
    store before the caller is refused, so newly reserved paths are picked up
    without a restart.
    """

    def __init__(self, records: RecordStore) -> None:
        self._records = records
        self._paths: dict[str, frozenset[str]] = {}
        self._lock = threading.Lock()

    def refresh(self, owner: str) -> frozenset[str]:
        """Reload and return the paths held by ``owner``."""
        paths = frozenset(self._records.paths_for_owner(owner))
        with self._lock:
            self._paths[owner] = paths
        return paths

    def owns(self, owner: str, path: str) -> bool:
        """Return True when ``owner`` holds ``path``, refreshing on a miss."""
        with self._lock:
            cached = self._paths.get(owner)
        if cached is not None and path in cached:
            return True
        return path in self.refresh(owner)


def authorize(publisher: Publisher, request: PublishRequest, cache: OwnerPathsCache) -> None:
    """Raise :class:`AuthorizationError` unless ``publisher`` may publish ``request``."""
    if not cache.owns(publisher.id, request.path):
        msg = f"User does not have access to path {request.path}"
        raise AuthorizationError(msg)
    if request.premium is not None and not publisher.payout_account:
        msg = (
            "Premium pricing requires a connected payout account. "
            "Connect a Stripe account before publishing a premium extension."
        )
        raise AuthorizationError(msg)


__all__ = ["OwnerPathsCache", "authorize"]
