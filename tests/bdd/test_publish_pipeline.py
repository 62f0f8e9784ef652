"""Behaviour tests for the publish pipeline using pytest-bdd.

These scenarios drive :class:`extension_docs.pipeline.PublishPipeline` with
the in-memory collaborators from ``tests/conftest.py``: validation refusals,
the description length boundary, and the presence-based paid tier lifecycle.

Usage
-----
Run ``pytest tests/bdd/test_publish_pipeline.py -v`` to execute only these
scenarios.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from extension_docs.models import Publisher
from extension_docs.pipeline import MISSING_CONTENT_MESSAGE

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from conftest import FakePaymentGateway, InMemoryObjectStore, InMemoryRecordStore

    from extension_docs.pipeline import PublishPipeline

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "publish_pipeline.feature"
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Share mutable scenario data across pytest-bdd steps."""
    return {"overrides": {}}


@given("a publisher who owns the path query-builder")
def given_publisher(scenario_state: ScenarioState) -> None:
    scenario_state["publisher"] = Publisher(id="user-1")


@given("a publisher with a payout account who owns the path query-builder")
def given_paying_publisher(scenario_state: ScenarioState) -> None:
    scenario_state["publisher"] = Publisher(id="user-1", payout_account="acct_123")


@given("a publish request with no documentation blocks")
def given_empty_tree(scenario_state: ScenarioState) -> None:
    scenario_state["overrides"]["blocks"] = []


@given(parsers.parse("a publish request whose description is {length:d} characters long"))
def given_description_length(scenario_state: ScenarioState, length: int) -> None:
    scenario_state["overrides"]["description"] = "d" * length


@given(parsers.parse("the extension is monetized with price {price_id}"))
def given_monetized(record_store: InMemoryRecordStore, price_id: str) -> None:
    record_store.records["query-builder"].monetization_ref = price_id


@given("a publish request without a premium tier")
def given_no_premium(scenario_state: ScenarioState) -> None:
    scenario_state["overrides"].pop("premium", None)


@given("a publish request with a premium tier")
def given_premium(scenario_state: ScenarioState) -> None:
    scenario_state["overrides"]["premium"] = {"price": 10, "name": "Pro"}


@when("the request is published")
def when_published(
    pipeline: PublishPipeline,
    request_body: cabc.Callable[..., bytes],
    scenario_state: ScenarioState,
) -> None:
    body = request_body(**scenario_state["overrides"])
    scenario_state["outcome"] = pipeline.publish(scenario_state["publisher"], body)


@then(parsers.parse("the response status is {status:d}"))
def then_status(scenario_state: ScenarioState, status: int) -> None:
    response = scenario_state["outcome"].response
    assert response.status_code == status, (
        f"expected status {status}, got {response.status_code}: {response.render()}"
    )


@then("the response asks for documentation content")
def then_missing_content(scenario_state: ScenarioState) -> None:
    assert scenario_state["outcome"].response.body == MISSING_CONTENT_MESSAGE


@then("no objects are written")
def then_nothing_written(object_store: InMemoryObjectStore) -> None:
    assert object_store.objects == {}, f"unexpected writes: {sorted(object_store.objects)}"


@then(parsers.parse("the product behind {price_id} is deleted"))
def then_product_deleted(gateway: FakePaymentGateway, price_id: str) -> None:
    assert gateway.deleted_products == [f"prod_for_{price_id}"], (
        f"unexpected deleted products: {gateway.deleted_products}"
    )


@then("the stored monetization reference is cleared")
def then_reference_cleared(record_store: InMemoryRecordStore) -> None:
    assert record_store.records["query-builder"].monetization_ref is None


@then("no payment calls are made")
def then_no_payment_calls(gateway: FakePaymentGateway) -> None:
    assert gateway.calls == [], f"unexpected payment calls: {gateway.calls}"
