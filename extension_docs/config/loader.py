"""Load publisher configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ

from ruamel.yaml import YAML

from .models import (
    DeployConfig,
    PaymentsConfig,
    PublisherConfig,
    PublisherConfigError,
    RecordsConfig,
    SiteConfig,
    StorageConfig,
)

if typ.TYPE_CHECKING:
    from pathlib import Path


def load_publisher_config(path: Path) -> PublisherConfig:
    """Load the YAML configuration describing storage, records, and deploys.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``config/publisher.yaml``).

    Returns
    -------
    PublisherConfig
        Parsed configuration with defaults applied to every optional field.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    PublisherConfigError
        If a required section or field (bucket, table, deploy repo) is
        missing.

    Examples
    --------
    >>> from pathlib import Path
    >>> config = load_publisher_config(Path("config/publisher.yaml"))  # doctest: +SKIP
    >>> config.storage.document_key("demo")  # doctest: +SKIP
    'documents/demo.md'
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):  # pragma: no cover - config error guard
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)

    return PublisherConfig(
        storage=_build_storage(_section(loaded, "storage")),
        records=_build_records(_section(loaded, "records")),
        deploy=_build_deploy(_section(loaded, "deploy")),
        site=_build_site(loaded.get("site") or {}),
        payments=_build_payments(loaded.get("payments") or {}),
    )


def _section(raw: typ.Mapping[str, typ.Any], name: str) -> typ.Mapping[str, typ.Any]:
    payload = raw.get(name)
    if not isinstance(payload, dict) or not payload:
        msg = f"Missing '{name}' section in publisher configuration."
        raise PublisherConfigError(msg)
    return payload


def _required(payload: typ.Mapping[str, typ.Any], section: str, key: str) -> str:
    value = payload.get(key)
    if not value:
        msg = f"Missing '{section}.{key}' in publisher configuration."
        raise PublisherConfigError(msg)
    return str(value)


def _build_storage(payload: typ.Mapping[str, typ.Any]) -> StorageConfig:
    base = StorageConfig(bucket=_required(payload, "storage", "bucket"))
    return StorageConfig(
        bucket=base.bucket,
        region=payload.get("region", base.region),
        endpoint=payload.get("endpoint", base.endpoint),
        documents_prefix=str(
            payload.get("documents_prefix", base.documents_prefix)
        ).strip("/"),
        thumbnails_prefix=str(
            payload.get("thumbnails_prefix", base.thumbnails_prefix)
        ).strip("/"),
        versions_prefix=str(
            payload.get("versions_prefix", base.versions_prefix)
        ).strip("/"),
        bundle_filename=payload.get("bundle_filename", base.bundle_filename),
    )


def _build_records(payload: typ.Mapping[str, typ.Any]) -> RecordsConfig:
    base = RecordsConfig(table=_required(payload, "records", "table"))
    return RecordsConfig(
        table=base.table,
        owner_index=payload.get("owner_index", base.owner_index),
        region=payload.get("region", base.region),
    )


def _build_deploy(payload: typ.Mapping[str, typ.Any]) -> DeployConfig:
    base = DeployConfig(repo=_required(payload, "deploy", "repo"))
    return DeployConfig(
        repo=base.repo,
        workflow=payload.get("workflow", base.workflow),
        ref=payload.get("ref", base.ref),
        api_base=payload.get("api_base", base.api_base),
    )


def _build_site(payload: typ.Mapping[str, typ.Any]) -> SiteConfig:
    base = SiteConfig()
    return SiteConfig(base_url=payload.get("base_url", base.base_url))


def _build_payments(payload: typ.Mapping[str, typ.Any]) -> PaymentsConfig:
    base = PaymentsConfig()
    return PaymentsConfig(
        currency=payload.get("currency", base.currency),
        max_network_retries=int(
            payload.get("max_network_retries", base.max_network_retries)
        ),
    )


__all__ = ["load_publisher_config"]
