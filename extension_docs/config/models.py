"""Typed dataclasses describing publisher configuration structures."""

from __future__ import annotations

import dataclasses as dc

from extension_docs.models import normalize_name


class PublisherConfigError(ValueError):
    """Raised when the publisher configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class StorageConfig:
    """Bucket and key layout for every object the pipeline writes."""

    bucket: str
    region: str | None = None
    endpoint: str | None = None
    documents_prefix: str = "documents"
    thumbnails_prefix: str = "thumbnails"
    versions_prefix: str = "versions"
    bundle_filename: str = "main.js"

    def document_key(self, path: str) -> str:
        """Return the key of the main markdown document for ``path``."""
        return f"{self.documents_prefix}/{path}.md"

    def subpage_prefix(self, path: str) -> str:
        """Return the key prefix under which ``path``'s sub-documents live."""
        return f"{self.documents_prefix}/{path}/"

    def subpage_key(self, path: str, name: str) -> str:
        """Return the key of the sub-document ``name`` (normalized) of ``path``."""
        return f"{self.subpage_prefix(path)}{normalize_name(name)}.md"

    def thumbnail_key(self, path: str) -> str:
        return f"{self.thumbnails_prefix}/{path}.png"

    def version_key(self, path: str, version: str) -> str:
        return f"{self.versions_prefix}/{path}/{version}.json"

    def bundle_keys(self, path: str, version: str) -> tuple[str, str]:
        """Return the version-stamped and canonical bundle keys for ``path``."""
        return (
            f"{path}/{version}/{self.bundle_filename}",
            f"{path}/{self.bundle_filename}",
        )


@dc.dataclass(slots=True)
class RecordsConfig:
    """Metadata store table holding extension records."""

    table: str
    owner_index: str = "user-index"
    region: str | None = None


@dc.dataclass(slots=True)
class SiteConfig:
    """Public documentation site settings."""

    base_url: str = "https://roamjs.com"

    def canonical_src(self, path: str, bundle_filename: str) -> str:
        """Return the default entry URL served for ``path``."""
        return f"{self.base_url.rstrip('/')}/{path}/{bundle_filename}"


@dc.dataclass(slots=True)
class DeployConfig:
    """GitHub Actions workflow rebuilt after every publish."""

    repo: str
    workflow: str = "isr.yaml"
    ref: str = "main"
    api_base: str = "https://api.github.com"


@dc.dataclass(slots=True)
class PaymentsConfig:
    """Payment platform defaults."""

    currency: str = "usd"
    max_network_retries: int = 3


@dc.dataclass(slots=True)
class PublisherConfig:
    """Aggregate configuration loaded from ``publisher.yaml``."""

    storage: StorageConfig
    records: RecordsConfig
    deploy: DeployConfig
    site: SiteConfig = dc.field(default_factory=SiteConfig)
    payments: PaymentsConfig = dc.field(default_factory=PaymentsConfig)


__all__ = [
    "DeployConfig",
    "PaymentsConfig",
    "PublisherConfig",
    "PublisherConfigError",
    "RecordsConfig",
    "SiteConfig",
    "StorageConfig",
]
