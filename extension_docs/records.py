"""Metadata store access for extension records.

Records live in a DynamoDB table keyed by ``id`` (the extension path), with
every attribute stored as a string. A secondary index on ``user`` answers
"which paths does this owner hold".
"""

from __future__ import annotations

import typing as typ

import boto3

from extension_docs.credentials import as_boto_kwargs
from extension_docs.models import ExtensionRecord, ExtensionState

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from extension_docs.config import RecordsConfig
    from extension_docs.credentials import CredentialSet

# Record field -> stored attribute name.
ATTRIBUTE_NAMES: dict[str, str] = {
    "description": "description",
    "src": "src",
    "owner": "user",
    "state": "state",
    "monetization_ref": "premium",
}


class RecordNotFoundError(LookupError):
    """Raised when no record exists for a path."""


class RecordStore(typ.Protocol):
    """Metadata store operations consumed by the publish pipeline."""

    def get(self, path: str) -> ExtensionRecord: ...

    def update(self, path: str, changes: cabc.Mapping[str, str | None]) -> None: ...

    def paths_for_owner(self, owner: str) -> list[str]: ...


def build_update_expression(
    changes: cabc.Mapping[str, str | None],
) -> dict[str, typ.Any]:
    """Return DynamoDB update arguments for a field-level change set.

    Fields mapped to ``None`` are removed; all others are set.

    Examples
    --------
    >>> args = build_update_expression({"description": "New", "monetization_ref": None})
    >>> args["UpdateExpression"]
    'SET #description = :description REMOVE #premium'
    """
    names: dict[str, str] = {}
    values: dict[str, dict[str, str]] = {}
    sets: list[str] = []
    removes: list[str] = []
    for field, value in changes.items():
        attribute = ATTRIBUTE_NAMES[field]
        names[f"#{attribute}"] = attribute
        if value is None:
            removes.append(f"#{attribute}")
        else:
            values[f":{attribute}"] = {"S": value}
            sets.append(f"#{attribute} = :{attribute}")
    clauses = []
    if sets:
        clauses.append("SET " + ", ".join(sets))
    if removes:
        clauses.append("REMOVE " + ", ".join(removes))
    args: dict[str, typ.Any] = {
        "UpdateExpression": " ".join(clauses),
        "ExpressionAttributeNames": names,
    }
    if values:
        args["ExpressionAttributeValues"] = values
    return args


def record_from_item(path: str, item: cabc.Mapping[str, typ.Any]) -> ExtensionRecord:
    """Convert a DynamoDB item into an :class:`ExtensionRecord`."""

    def _string(attribute: str) -> str | None:
        value = item.get(attribute)
        return value.get("S") if isinstance(value, dict) else None

    state = _string("state")
    return ExtensionRecord(
        path=path,
        owner=_string("user") or "",
        description=_string("description") or "",
        src=_string("src"),
        state=ExtensionState(state) if state else ExtensionState.DEVELOPMENT,
        monetization_ref=_string("premium"),
    )


class DynamoRecordStore:
    """:class:`RecordStore` backed by a DynamoDB table."""

    def __init__(self, table: str, client: typ.Any, *, owner_index: str = "user-index") -> None:
        self.table = table
        self.owner_index = owner_index
        self._client = client

    @classmethod
    def from_config(cls, records: RecordsConfig, creds: CredentialSet) -> DynamoRecordStore:
        kwargs = as_boto_kwargs(creds)
        if records.region:
            kwargs["region_name"] = records.region
        return cls(
            records.table,
            boto3.client("dynamodb", **kwargs),
            owner_index=records.owner_index,
        )

    def get(self, path: str) -> ExtensionRecord:
        response = self._client.get_item(TableName=self.table, Key={"id": {"S": path}})
        item = response.get("Item")
        if not item:
            msg = f"No extension record exists for path {path}"
            raise RecordNotFoundError(msg)
        return record_from_item(path, item)

    def update(self, path: str, changes: cabc.Mapping[str, str | None]) -> None:
        """Apply ``changes`` in one conditional update; the record must exist."""
        self._client.update_item(
            TableName=self.table,
            Key={"id": {"S": path}},
            ConditionExpression="attribute_exists(id)",
            **build_update_expression(changes),
        )

    def paths_for_owner(self, owner: str) -> list[str]:
        """Return every path owned by ``owner`` via the owner index."""
        paths: list[str] = []
        kwargs: dict[str, typ.Any] = {
            "TableName": self.table,
            "IndexName": self.owner_index,
            "KeyConditionExpression": "#u = :u",
            "ExpressionAttributeNames": {"#u": "user"},
            "ExpressionAttributeValues": {":u": {"S": owner}},
        }
        while True:
            response = self._client.query(**kwargs)
            paths.extend(item["id"]["S"] for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return paths
            kwargs["ExclusiveStartKey"] = last_key


__all__ = [
    "ATTRIBUTE_NAMES",
    "DynamoRecordStore",
    "RecordNotFoundError",
    "RecordStore",
    "build_update_expression",
    "record_from_item",
]
