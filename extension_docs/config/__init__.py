"""Load and validate publisher configuration YAML.

This subpackage parses ``publisher.yaml``, applies defaults for the object
key layout, metadata table, deploy workflow, and payment settings, and
produces typed dataclasses (:class:`PublisherConfig`, :class:`StorageConfig`,
etc.) that the pipeline consumes. The primary entry point is
:func:`load_publisher_config`.

Examples
--------
>>> from pathlib import Path
>>> from extension_docs.config import load_publisher_config
>>> config = load_publisher_config(Path("config/publisher.yaml"))  # doctest: +SKIP
>>> config.storage.subpage_key("demo", "Getting Started")  # doctest: +SKIP
'documents/demo/getting_started.md'
"""

from .loader import load_publisher_config
from .models import (
    DeployConfig,
    PaymentsConfig,
    PublisherConfig,
    PublisherConfigError,
    RecordsConfig,
    SiteConfig,
    StorageConfig,
)

__all__ = [
    "DeployConfig",
    "PaymentsConfig",
    "PublisherConfig",
    "PublisherConfigError",
    "RecordsConfig",
    "SiteConfig",
    "StorageConfig",
    "load_publisher_config",
]
