"""Error taxonomy for the publish pipeline.

Each caller-facing error carries the HTTP status the pipeline answers with.
:class:`ProvisioningError` is the exception: it is captured, reported to the
operator sink, and never surfaced to the caller.
"""

from __future__ import annotations

from http import HTTPStatus


class PublishError(RuntimeError):
    """Base class for failures raised while publishing documentation."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR


class ValidationError(PublishError):
    """Raised when the request is rejected before any side effect."""

    status_code = HTTPStatus.BAD_REQUEST


class AuthorizationError(PublishError):
    """Raised when the caller may not publish to the requested path."""

    status_code = HTTPStatus.FORBIDDEN


class ProvisioningError(PublishError):
    """Raised when the payment platform rejects a product or price call."""


class StageError(PublishError):
    """Wrap an unexpected failure with the name of the stage that raised it."""

    def __init__(self, context: str, cause: BaseException) -> None:
        super().__init__(f"{context}: {cause}")
        self.context = context
        self.cause = cause


__all__ = [
    "AuthorizationError",
    "ProvisioningError",
    "PublishError",
    "StageError",
    "ValidationError",
]
