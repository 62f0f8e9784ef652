"""Tests for the DynamoDB-backed record store."""

from __future__ import annotations

import typing as typ

import pytest

from extension_docs.models import ExtensionState
from extension_docs.records import (
    DynamoRecordStore,
    RecordNotFoundError,
    build_update_expression,
)

if typ.TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.fixture
def client(mocker: MockerFixture) -> typ.Any:
    return mocker.Mock()


def test_update_expression_sets_and_removes() -> None:
    args = build_update_expression(
        {"description": "New", "src": "https://x/main.js", "monetization_ref": None}
    )
    assert args == {
        "UpdateExpression": "SET #description = :description, #src = :src REMOVE #premium",
        "ExpressionAttributeNames": {
            "#description": "description",
            "#src": "src",
            "#premium": "premium",
        },
        "ExpressionAttributeValues": {
            ":description": {"S": "New"},
            ":src": {"S": "https://x/main.js"},
        },
    }, f"unexpected update arguments: {args}"


def test_remove_only_update_has_no_values() -> None:
    args = build_update_expression({"monetization_ref": None})
    assert "ExpressionAttributeValues" not in args, "REMOVE needs no attribute values"


def test_get_maps_string_attributes(client: typ.Any) -> None:
    client.get_item.return_value = {
        "Item": {
            "id": {"S": "demo"},
            "user": {"S": "user-1"},
            "description": {"S": "Demo"},
            "state": {"S": "UNDER REVIEW"},
            "premium": {"S": "price_1"},
        }
    }
    record = DynamoRecordStore("extensions", client).get("demo")

    assert record.owner == "user-1"
    assert record.state is ExtensionState.UNDER_REVIEW
    assert record.monetization_ref == "price_1"
    assert record.src is None, "absent attributes should map to None"


def test_get_missing_record_raises(client: typ.Any) -> None:
    client.get_item.return_value = {}
    with pytest.raises(RecordNotFoundError, match="demo"):
        DynamoRecordStore("extensions", client).get("demo")


def test_update_is_conditional_on_existence(client: typ.Any) -> None:
    DynamoRecordStore("extensions", client).update("demo", {"description": "New"})

    kwargs = client.update_item.call_args.kwargs
    assert kwargs["ConditionExpression"] == "attribute_exists(id)"
    assert kwargs["Key"] == {"id": {"S": "demo"}}


def test_paths_for_owner_paginates_index(client: typ.Any) -> None:
    client.query.side_effect = [
        {"Items": [{"id": {"S": "alpha"}}], "LastEvaluatedKey": {"id": {"S": "alpha"}}},
        {"Items": [{"id": {"S": "beta"}}]},
    ]
    store = DynamoRecordStore("extensions", client, owner_index="owners")

    assert store.paths_for_owner("user-1") == ["alpha", "beta"]
    first, second = (call.kwargs for call in client.query.call_args_list)
    assert first["IndexName"] == "owners"
    assert second["ExclusiveStartKey"] == {"id": {"S": "alpha"}}
