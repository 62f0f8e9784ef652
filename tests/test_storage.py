"""Tests for the S3-backed object store."""

from __future__ import annotations

import io
import typing as typ

import pytest

from extension_docs.config import StorageConfig
from extension_docs.credentials import CredentialSet
from extension_docs.storage import DELETE_BATCH_SIZE, S3ObjectStore

if typ.TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.fixture
def client(mocker: MockerFixture) -> typ.Any:
    return mocker.Mock()


def test_put_bytes_returns_etag(client: typ.Any) -> None:
    client.put_object.return_value = {"ETag": '"abc"'}
    store = S3ObjectStore("docs-bucket", client)

    result = store.put("documents/demo.md", "body", "text/markdown")

    assert result.etag == '"abc"', f"unexpected etag {result.etag!r}"
    client.put_object.assert_called_once_with(
        Bucket="docs-bucket", Key="documents/demo.md", Body=b"body", ContentType="text/markdown"
    )


def test_put_stream_uses_managed_upload(client: typ.Any) -> None:
    stream = io.BytesIO(b"png")
    store = S3ObjectStore("docs-bucket", client)

    result = store.put("thumbnails/demo.png", stream, "image/png")

    assert result.etag is None, "streamed uploads do not report an etag"
    client.upload_fileobj.assert_called_once_with(
        stream, "docs-bucket", "thumbnails/demo.png", ExtraArgs={"ContentType": "image/png"}
    )


def test_list_all_follows_continuation_tokens(client: typ.Any) -> None:
    client.list_objects_v2.side_effect = [
        {
            "Contents": [{"Key": "documents/demo/a.md"}],
            "CommonPrefixes": [{"Prefix": "documents/demo/nested/"}],
            "IsTruncated": True,
            "NextContinuationToken": "page-2",
        },
        {"Contents": [{"Key": "documents/demo/b.md"}], "IsTruncated": False},
    ]
    store = S3ObjectStore("docs-bucket", client)

    listing = store.list_all("documents/demo/")

    assert listing.keys == ["documents/demo/a.md", "documents/demo/b.md"], (
        "keys from every page should be collected"
    )
    assert listing.prefixes == ["documents/demo/nested/"]
    second_call = client.list_objects_v2.call_args_list[1].kwargs
    assert second_call["ContinuationToken"] == "page-2"
    assert second_call["Delimiter"] == "/"


def test_delete_many_batches_requests(client: typ.Any) -> None:
    keys = [f"documents/demo/{index}.md" for index in range(DELETE_BATCH_SIZE + 1)]
    client.delete_objects.side_effect = lambda **kwargs: {
        "Deleted": [{"Key": item["Key"]} for item in kwargs["Delete"]["Objects"]]
    }
    store = S3ObjectStore("docs-bucket", client)

    deleted = store.delete_many(keys)

    assert deleted == keys, "every key should be reported deleted"
    assert client.delete_objects.call_count == 2, "deletes should be chunked by 1000"


def test_delete_errors_are_raised(client: typ.Any) -> None:
    client.delete_objects.return_value = {"Errors": [{"Key": "documents/demo/a.md"}]}
    store = S3ObjectStore("docs-bucket", client)

    with pytest.raises(RuntimeError, match="documents/demo/a.md"):
        store.delete_many(["documents/demo/a.md"])


def test_from_config_builds_client_with_endpoint(mocker: MockerFixture) -> None:
    boto_client = mocker.patch("extension_docs.storage.boto3.client")
    S3ObjectStore.from_config(
        StorageConfig(bucket="docs-bucket", region="eu-west-1"),
        CredentialSet(
            aws_access_key_id="a",
            aws_secret_access_key="b",
            s3_endpoint="https://s3.example.com",
        ),
    )
    boto_client.assert_called_once_with(
        "s3",
        aws_access_key_id="a",
        aws_secret_access_key="b",
        region_name="eu-west-1",
        endpoint_url="https://s3.example.com",
    )
