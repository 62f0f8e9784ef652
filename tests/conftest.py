"""Shared fixtures and in-memory collaborators for the publish pipeline tests."""

from __future__ import annotations

import datetime as dt
import threading
import typing as typ

import msgspec
import pytest
import requests

from extension_docs.config import (
    DeployConfig,
    PublisherConfig,
    RecordsConfig,
    StorageConfig,
)
from extension_docs.deploy_trigger import DeployReceipt, DeployTriggerError
from extension_docs.errors import ProvisioningError, StageError
from extension_docs.models import ExtensionRecord
from extension_docs.pipeline import PublishPipeline
from extension_docs.records import RecordNotFoundError
from extension_docs.storage import Listing, PutResult

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from pytest_mock import MockerFixture

FIXED_NOW = dt.datetime(2024, 3, 7, 9, 5, tzinfo=dt.UTC)


class InMemoryObjectStore:
    """Object store that keeps bodies in a dict and can fail chosen keys."""

    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.deleted: list[str] = []
        self.fail_keys: set[str] = set()
        self._lock = threading.Lock()

    def put(self, key: str, body: typ.Any, content_type: str) -> PutResult:
        if key in self.fail_keys:
            msg = f"simulated write failure for {key}"
            raise OSError(msg)
        if isinstance(body, str):
            data = body.encode("utf-8")
        elif isinstance(body, bytes):
            data = body
        else:
            data = body.read()
        with self._lock:
            self.objects[key] = (data, content_type)
        return PutResult(key=key, etag=f'"etag-{key}"')

    def list_all(self, prefix: str, *, delimiter: str = "/") -> Listing:
        listing = Listing()
        with self._lock:
            keys = sorted(self.objects)
        for key in keys:
            if not key.startswith(prefix):
                continue
            rest = key[len(prefix) :]
            if delimiter and delimiter in rest:
                common = prefix + rest.split(delimiter, 1)[0] + delimiter
                if common not in listing.prefixes:
                    listing.prefixes.append(common)
            else:
                listing.keys.append(key)
        return listing

    def delete_many(self, keys: typ.Sequence[str]) -> list[str]:
        with self._lock:
            for key in keys:
                self.objects.pop(key, None)
            self.deleted.extend(keys)
        return list(keys)

    def text(self, key: str) -> str:
        return self.objects[key][0].decode("utf-8")

    def content_type(self, key: str) -> str:
        return self.objects[key][1]


class InMemoryRecordStore:
    """Record store holding :class:`ExtensionRecord` values by path."""

    def __init__(self, *records: ExtensionRecord) -> None:
        self.records = {record.path: record for record in records}
        self.updates: list[tuple[str, dict[str, str | None]]] = []
        self.owner_queries: list[str] = []

    def get(self, path: str) -> ExtensionRecord:
        try:
            return self.records[path]
        except KeyError:
            msg = f"No extension record exists for path {path}"
            raise RecordNotFoundError(msg) from None

    def update(self, path: str, changes: cabc.Mapping[str, str | None]) -> None:
        record = self.get(path)
        for field, value in changes.items():
            setattr(record, field, value)
        self.updates.append((path, dict(changes)))

    def paths_for_owner(self, owner: str) -> list[str]:
        self.owner_queries.append(owner)
        return [record.path for record in self.records.values() if record.owner == owner]


class FakePaymentGateway:
    """Payment gateway recording calls and issuing sequential ids."""

    def __init__(self) -> None:
        self.products: dict[str, dict[str, typ.Any]] = {}
        self.prices: dict[str, dict[str, typ.Any]] = {}
        self.deleted_products: list[str] = []
        self.calls: list[str] = []
        self.fail_with: str | None = None

    def _check(self, call: str) -> None:
        self.calls.append(call)
        if self.fail_with == call:
            msg = f"simulated {call} failure"
            raise ProvisioningError(msg)

    def create_product(self, *, name: str, description: str | None) -> str:
        self._check("create_product")
        product_id = f"prod_{len(self.products) + 1}"
        self.products[product_id] = {"name": name, "description": description}
        return product_id

    def create_price(self, **params: typ.Any) -> str:
        self._check("create_price")
        price_id = f"price_{len(self.prices) + 1}"
        self.prices[price_id] = params
        return price_id

    def retrieve_price_product(self, price_id: str) -> str:
        self._check("retrieve_price_product")
        return self.prices.get(price_id, {}).get("product", f"prod_for_{price_id}")

    def delete_product(self, product_id: str) -> None:
        self._check("delete_product")
        self.deleted_products.append(product_id)


class RecordingSink:
    """Operator sink that keeps every report in memory."""

    def __init__(self) -> None:
        self.reports: list[tuple[str, BaseException]] = []

    def report(self, subject: str, error: BaseException) -> str:
        self.reports.append((subject, error))
        return f"ref-{len(self.reports)}"


class FakeDeployTrigger:
    """Deploy trigger recording fired paths."""

    def __init__(self) -> None:
        self.fired: list[tuple[str, str | None]] = []
        self.fail = False

    def fire(self, path: str, *, etag: str | None = None) -> DeployReceipt:
        if self.fail:
            raise StageError("Failed to redeploy", DeployTriggerError("boom"))
        self.fired.append((path, etag))
        return DeployReceipt(path=path, status_code=204, etag=etag)


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore(
        ExtensionRecord(path="query-builder", owner="user-1", description="Old text"),
        ExtensionRecord(path="other-ext", owner="user-2"),
    )


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def deploy_trigger() -> FakeDeployTrigger:
    return FakeDeployTrigger()


@pytest.fixture
def publisher_config() -> PublisherConfig:
    return PublisherConfig(
        storage=StorageConfig(bucket="docs-bucket"),
        records=RecordsConfig(table="extensions"),
        deploy=DeployConfig(repo="octo/site"),
    )


@pytest.fixture
def http_session(mocker: MockerFixture) -> requests.Session:
    return mocker.Mock(spec=requests.Session)


@pytest.fixture
def pipeline(
    publisher_config: PublisherConfig,
    object_store: InMemoryObjectStore,
    record_store: InMemoryRecordStore,
    gateway: FakePaymentGateway,
    deploy_trigger: FakeDeployTrigger,
    sink: RecordingSink,
    http_session: requests.Session,
) -> PublishPipeline:
    return PublishPipeline(
        publisher_config,
        store=object_store,
        records=record_store,
        gateway=gateway,
        deploy_trigger=deploy_trigger,
        sink=sink,
        clock=lambda: FIXED_NOW,
        session=http_session,
    )


@pytest.fixture
def request_body() -> cabc.Callable[..., bytes]:
    """Return a factory producing JSON publish bodies for ``query-builder``."""

    def _build(**overrides: typ.Any) -> bytes:
        payload: dict[str, typ.Any] = {
            "path": "query-builder",
            "description": "Build queries visually",
            "blocks": [{"uid": "blockuid01", "text": "Welcome"}],
        }
        payload.update(overrides)
        return msgspec.json.encode(payload)

    return _build
