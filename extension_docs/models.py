"""Typed models for publish requests and stored extension records.

Request payloads arrive as JSON with camelCase keys and are decoded into
frozen :mod:`msgspec` structs so that malformed bodies are rejected before any
side effect. Records persisted in the metadata store and the caller identity
are plain dataclasses.

Examples
--------
>>> from extension_docs.models import decode_request
>>> request = decode_request(b'{"path": "demo", "blocks": [], "description": "x"}')
>>> request.path
'demo'
>>> normalize_name("Getting Started")
'getting_started'
"""

from __future__ import annotations

import dataclasses as dc
import enum

import msgspec


class ViewType(enum.StrEnum):
    """Rendering mode applied to a node's children."""

    BULLET = "bullet"
    NUMBERED = "numbered"
    DOCUMENT = "document"


class ExtensionState(enum.StrEnum):
    """Review lifecycle state of an extension path."""

    DEVELOPMENT = "DEVELOPMENT"
    UNDER_REVIEW = "UNDER REVIEW"
    LIVE = "LIVE"
    PRIVATE = "PRIVATE"


class ContentNode(msgspec.Struct, frozen=True, rename="camel"):
    """A single block of the author's outline and its ordered children."""

    uid: str
    text: str = ""
    heading: int | None = 0
    text_align: str | None = None
    view_type: str | None = None
    children: tuple[ContentNode, ...] = ()


class SubpageEntry(msgspec.Struct, frozen=True, rename="camel"):
    """Nodes rendered into one named sub-document."""

    nodes: tuple[ContentNode, ...] = ()
    view_type: str | None = None


class PremiumDescriptor(msgspec.Struct, frozen=True, rename="camel"):
    """Pricing input for the optional paid tier.

    ``price`` is expressed in whole currency units. An empty ``usage`` means
    licensed billing. ``quantity`` enables a divide-by unit transform when it
    is greater than one.
    """

    price: int
    name: str = ""
    description: list[str] = msgspec.field(default_factory=list)
    usage: str = ""
    quantity: int | None = None
    interval: str = "month"


class ReferencedBlock(msgspec.Struct, frozen=True, rename="camel"):
    """A block that may be referenced from the published tree."""

    text: str = ""
    page: str = ""
    heading: int | None = 0
    text_align: str | None = None
    view_type: str | None = None
    children: tuple[ContentNode, ...] = ()


class PublishRequest(msgspec.Struct, frozen=True, rename="camel"):
    """The body of a documentation publish request."""

    path: str
    blocks: tuple[ContentNode, ...] = ()
    view_type: str | None = None
    description: str = ""
    contributors: list[str] = msgspec.field(default_factory=list)
    subpages: dict[str, SubpageEntry] = msgspec.field(default_factory=dict)
    thumbnail: str | None = None
    entry: str | None = None
    implementation: str | None = None
    premium: PremiumDescriptor | None = None
    references: dict[str, ReferencedBlock] = msgspec.field(default_factory=dict)


@dc.dataclass(slots=True)
class ExtensionRecord:
    """Descriptive metadata stored for a reserved extension path."""

    path: str
    owner: str
    description: str = ""
    src: str | None = None
    state: ExtensionState = ExtensionState.DEVELOPMENT
    monetization_ref: str | None = None


@dc.dataclass(slots=True, frozen=True)
class Publisher:
    """The already-authenticated caller of a publish request."""

    id: str
    email: str | None = None
    payout_account: str | None = None


_DECODER = msgspec.json.Decoder(PublishRequest)


def decode_request(body: bytes | str) -> PublishRequest:
    """Decode a raw JSON publish body into a :class:`PublishRequest`.

    Raises
    ------
    msgspec.DecodeError
        If the body is not valid JSON or does not match the request shape.
    """
    return _DECODER.decode(body)


def normalize_name(name: str) -> str:
    """Normalize a page or sub-document name for use in keys and URLs."""
    return name.replace(" ", "_").lower()


__all__ = [
    "ContentNode",
    "ExtensionRecord",
    "ExtensionState",
    "PremiumDescriptor",
    "PublishRequest",
    "Publisher",
    "ReferencedBlock",
    "SubpageEntry",
    "ViewType",
    "decode_request",
    "normalize_name",
]
