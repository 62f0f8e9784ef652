"""Object storage access for published documents, thumbnails, and bundles.

The pipeline depends on the small :class:`ObjectStore` protocol; the
production implementation, :class:`S3ObjectStore`, talks to an S3-compatible
bucket through ``boto3``.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import boto3

from extension_docs.credentials import as_boto_kwargs

if typ.TYPE_CHECKING:
    from extension_docs.config import StorageConfig
    from extension_docs.credentials import CredentialSet

DELETE_BATCH_SIZE = 1000

Body = bytes | str | typ.BinaryIO


@dc.dataclass(slots=True)
class PutResult:
    """Outcome of a single object write."""

    key: str
    etag: str | None = None


@dc.dataclass(slots=True)
class Listing:
    """Every object key and common prefix found under a listing prefix."""

    keys: list[str] = dc.field(default_factory=list)
    prefixes: list[str] = dc.field(default_factory=list)


class ObjectStore(typ.Protocol):
    """Storage operations consumed by the publish pipeline."""

    def put(self, key: str, body: Body, content_type: str) -> PutResult: ...

    def list_all(self, prefix: str, *, delimiter: str = "/") -> Listing: ...

    def delete_many(self, keys: typ.Sequence[str]) -> list[str]: ...


class S3ObjectStore:
    """:class:`ObjectStore` backed by an S3 bucket."""

    def __init__(self, bucket: str, client: typ.Any) -> None:
        self.bucket = bucket
        self._client = client

    @classmethod
    def from_config(
        cls, storage: StorageConfig, creds: CredentialSet
    ) -> S3ObjectStore:
        """Build a store whose client uses ``creds`` and the configured endpoint."""
        kwargs = as_boto_kwargs(creds)
        if storage.region:
            kwargs["region_name"] = storage.region
        endpoint = storage.endpoint or creds.s3_endpoint
        if endpoint:
            kwargs["endpoint_url"] = endpoint
        return cls(storage.bucket, boto3.client("s3", **kwargs))

    def put(self, key: str, body: Body, content_type: str) -> PutResult:
        """Write ``body`` to ``key``; file-like bodies are streamed."""
        if isinstance(body, (bytes, str)):
            data = body.encode("utf-8") if isinstance(body, str) else body
            response = self._client.put_object(
                Bucket=self.bucket, Key=key, Body=data, ContentType=content_type
            )
            return PutResult(key=key, etag=response.get("ETag"))
        self._client.upload_fileobj(
            body, self.bucket, key, ExtraArgs={"ContentType": content_type}
        )
        return PutResult(key=key)

    def list_all(self, prefix: str, *, delimiter: str = "/") -> Listing:
        """List every key under ``prefix``, following continuation tokens."""
        listing = Listing()
        kwargs: dict[str, typ.Any] = {
            "Bucket": self.bucket,
            "Prefix": prefix,
            "Delimiter": delimiter,
        }
        while True:
            response = self._client.list_objects_v2(**kwargs)
            listing.keys.extend(item["Key"] for item in response.get("Contents", []))
            listing.prefixes.extend(
                item["Prefix"] for item in response.get("CommonPrefixes", [])
            )
            if not response.get("IsTruncated"):
                break
            kwargs["ContinuationToken"] = response["NextContinuationToken"]
        return listing

    def delete_many(self, keys: typ.Sequence[str]) -> list[str]:
        """Delete ``keys`` in batches and return the keys S3 reports deleted."""
        deleted: list[str] = []
        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start : start + DELETE_BATCH_SIZE]
            response = self._client.delete_objects(
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": key} for key in batch], "Quiet": False},
            )
            errors = response.get("Errors", [])
            if errors:
                failed = ", ".join(error["Key"] for error in errors)
                msg = f"Failed to delete objects: {failed}"
                raise RuntimeError(msg)
            deleted.extend(item["Key"] for item in response.get("Deleted", []))
        return deleted


__all__ = [
    "DELETE_BATCH_SIZE",
    "Listing",
    "ObjectStore",
    "PutResult",
    "S3ObjectStore",
]
