"""End-to-end documentation publish.

:class:`PublishPipeline` turns one publish request into uploaded documents,
an updated extension record, an optional paid tier, and a site rebuild. The
stages run in a fixed order:

1. decode and validate the body, then authorize the caller;
2. archive the raw body (write-once audit trail);
3. fetch the extension record;
4. run two branches concurrently: provisioning followed by the metadata
   write, and sub-document reconciliation followed by the upload fan-out and
   the rebuild trigger;
5. publish the script bundle when the request carries an implementation and
   no custom entry.

Validation and authorization failures answer 400 and 403 without side
effects. A provisioning failure is reported to the operator sink and the
publish continues with the existing monetization reference. Every other
failure is reported to the sink and answers 500 with the reference id. Writes
that landed before a failure are not rolled back.

Publishes of the same path are not serialized against each other; two
overlapping publishes may interleave their uploads.
"""

from __future__ import annotations

import concurrent.futures as cf
import dataclasses as dc
import logging
import typing as typ
from http import HTTPStatus

import msgspec

from extension_docs._constants import MAX_DESCRIPTION_LENGTH
from extension_docs.access import OwnerPathsCache, authorize
from extension_docs.archive import VersionArchiver, utc_now
from extension_docs.assets import AssetPublisher
from extension_docs.deploy_trigger import GitHubDispatchClient
from extension_docs.errors import (
    AuthorizationError,
    ProvisioningError,
    ValidationError,
)
from extension_docs.metadata import MetadataSynchronizer
from extension_docs.models import decode_request
from extension_docs.monetization import MonetizationProvisioner, StripeGateway
from extension_docs.notify import LoggingOperatorSink, PublishReport
from extension_docs.records import DynamoRecordStore
from extension_docs.rendering import render_documents
from extension_docs.storage import S3ObjectStore
from extension_docs.subpages import SubpageSetReconciler
from extension_docs.transport import build_session

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    import requests

    from extension_docs.config import PublisherConfig
    from extension_docs.credentials import CredentialSet
    from extension_docs.deploy_trigger import DeployReceipt, DeployTrigger
    from extension_docs.models import ExtensionRecord, Publisher, PublishRequest
    from extension_docs.monetization import PaymentGateway
    from extension_docs.notify import OperatorSink
    from extension_docs.records import RecordStore
    from extension_docs.rendering import RenderedDocuments
    from extension_docs.storage import ObjectStore

logger = logging.getLogger(__name__)

T = typ.TypeVar("T")

MISSING_CONTENT_MESSAGE = (
    'Missing documentation content. Create a "Documentation" block on your '
    "extensions page and nest the content under it."
)
MISSING_DESCRIPTION_MESSAGE = (
    'Missing extension description. Create a "Description" block on your '
    "extensions page and nest the extension description under it."
)
DESCRIPTION_TOO_LONG_MESSAGE = (
    f"Description is too long. Please keep it {MAX_DESCRIPTION_LENGTH} characters or fewer."
)

STAGE_DECODE = "decode"
STAGE_VALIDATE = "validate"
STAGE_AUTHORIZE = "authorize"
STAGE_ARCHIVE = "archive"
STAGE_RECORD = "record"
STAGE_RENDER = "render"
STAGE_PROVISION = "provision"
STAGE_METADATA = "metadata"
STAGE_RECONCILE = "reconcile"
STAGE_UPLOAD = "upload"
STAGE_DEPLOY = "deploy"
STAGE_BUNDLE = "bundle"


def description_length(text: str) -> int:
    """Return the length of ``text`` in UTF-16 code units, as browsers count it.

    Characters outside the Basic Multilingual Plane, such as most emoji,
    count twice.
    """
    return len(text.encode("utf-16-le")) // 2


def validate_request(request: PublishRequest) -> None:
    """Reject a request that cannot be published.

    Raises
    ------
    ValidationError
        If the tree is empty, the description is missing, or the description
        exceeds the length limit.
    """
    if not request.blocks:
        raise ValidationError(MISSING_CONTENT_MESSAGE)
    if not request.description:
        raise ValidationError(MISSING_DESCRIPTION_MESSAGE)
    if description_length(request.description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(DESCRIPTION_TOO_LONG_MESSAGE)


@dc.dataclass(slots=True)
class PublishResponse:
    """Status code and body answered to the caller."""

    status_code: int
    body: dict[str, typ.Any] | str

    @property
    def ok(self) -> bool:
        return self.status_code < HTTPStatus.BAD_REQUEST

    def render(self) -> str:
        """Return the body as text, JSON-encoding structured bodies."""
        if isinstance(self.body, str):
            return self.body
        return msgspec.json.encode(self.body).decode("utf-8")


@dc.dataclass(slots=True)
class PublishOutcome:
    """Response plus the per-stage report of one publish."""

    response: PublishResponse
    report: PublishReport


def _run_stage(
    report: PublishReport,
    stage: str,
    func: cabc.Callable[..., T],
    *args: typ.Any,
    **kwargs: typ.Any,
) -> T:
    try:
        result = func(*args, **kwargs)
    except Exception as exc:
        report.record(stage, error=exc)
        raise
    report.record(stage)
    return result


class PublishPipeline:
    """Orchestrate the stages of a documentation publish."""

    def __init__(
        self,
        config: PublisherConfig,
        *,
        store: ObjectStore,
        records: RecordStore,
        gateway: PaymentGateway,
        deploy_trigger: DeployTrigger,
        sink: OperatorSink | None = None,
        paths_cache: OwnerPathsCache | None = None,
        clock: cabc.Callable[[], dt.datetime] = utc_now,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.records = records
        self.deploy_trigger = deploy_trigger
        self.sink = sink or LoggingOperatorSink()
        self.paths_cache = paths_cache or OwnerPathsCache(records)
        self.archiver = VersionArchiver(store, config.storage, clock=clock)
        self.provisioner = MonetizationProvisioner(gateway, currency=config.payments.currency)
        self.synchronizer = MetadataSynchronizer(records)
        self.reconciler = SubpageSetReconciler(store, config.storage)
        self.assets = AssetPublisher(store, config.storage, session=session)

    @classmethod
    def from_config(
        cls,
        config: PublisherConfig,
        creds: CredentialSet,
        *,
        sink: OperatorSink | None = None,
    ) -> PublishPipeline:
        """Build a pipeline wired to S3, DynamoDB, Stripe, and GitHub."""
        session = build_session()
        return cls(
            config,
            store=S3ObjectStore.from_config(config.storage, creds),
            records=DynamoRecordStore.from_config(config.records, creds),
            gateway=StripeGateway(
                creds.stripe_secret_key,
                max_network_retries=config.payments.max_network_retries,
            ),
            deploy_trigger=GitHubDispatchClient.from_config(
                config.deploy, creds.github_token, session=session
            ),
            sink=sink,
            session=session,
        )

    def publish(self, publisher: Publisher, body: bytes | str) -> PublishOutcome:
        """Publish the request ``body`` on behalf of ``publisher``."""
        report = PublishReport()
        try:
            self._publish(publisher, body, report)
        except (ValidationError, AuthorizationError) as exc:
            logger.info("Rejected publish for %s: %s", report.path, exc)
            response = PublishResponse(exc.status_code, str(exc))
        except Exception as exc:
            subject = f"Publish failed for {report.path or 'an undecoded request'}"
            report.reference_id = self.sink.report(subject, exc)
            response = PublishResponse(
                HTTPStatus.INTERNAL_SERVER_ERROR,
                f"Unknown error - Message Id {report.reference_id}",
            )
        else:
            response = PublishResponse(HTTPStatus.OK, {"success": True})
        return PublishOutcome(response=response, report=report)

    def _publish(self, publisher: Publisher, body: bytes | str, report: PublishReport) -> None:
        try:
            request = decode_request(body)
        except msgspec.DecodeError as exc:
            report.record(STAGE_DECODE, error=exc)
            msg = f"Malformed publish request: {exc}"
            raise ValidationError(msg) from exc
        report.path = request.path
        report.record(STAGE_DECODE)

        _run_stage(report, STAGE_VALIDATE, validate_request, request)
        _run_stage(report, STAGE_AUTHORIZE, authorize, publisher, request, self.paths_cache)
        version = _run_stage(report, STAGE_ARCHIVE, self.archiver.archive, request.path, body)
        record = _run_stage(report, STAGE_RECORD, self.records.get, request.path)
        documents = _run_stage(report, STAGE_RENDER, render_documents, request)

        with cf.ThreadPoolExecutor(max_workers=2) as pool:
            metadata = pool.submit(self._monetize_and_sync, request, record, report)
            assets = pool.submit(self._publish_assets, request, documents, report)
            cf.wait([metadata, assets])
        metadata.result()
        receipt = assets.result()

        if request.implementation and not request.entry:
            _run_stage(
                report,
                STAGE_BUNDLE,
                self.assets.publish_bundle,
                request.path,
                version,
                request.implementation,
            )
        logger.info(
            "Published %s at version %s (etag %s)", request.path, version, receipt.etag
        )

    def _monetize_and_sync(
        self,
        request: PublishRequest,
        record: ExtensionRecord,
        report: PublishReport,
    ) -> dict[str, str | None]:
        monetization_ref = record.monetization_ref
        try:
            outcome = self.provisioner.apply(request.path, monetization_ref, request.premium)
        except ProvisioningError as exc:
            report.record(STAGE_PROVISION, error=exc)
            self.sink.report(f"Failed to provision premium tier for {request.path}", exc)
        else:
            monetization_ref = outcome.monetization_ref
            report.record(STAGE_PROVISION, detail=str(outcome.state))

        src = request.entry or self.config.site.canonical_src(
            request.path, self.config.storage.bundle_filename
        )
        return _run_stage(
            report,
            STAGE_METADATA,
            self.synchronizer.sync,
            record,
            description=request.description,
            src=src,
            monetization_ref=monetization_ref,
        )

    def _publish_assets(
        self,
        request: PublishRequest,
        documents: RenderedDocuments,
        report: PublishReport,
    ) -> DeployReceipt:
        _run_stage(
            report,
            STAGE_RECONCILE,
            self.reconciler.reconcile,
            request.path,
            documents.subpages.keys(),
        )
        etag = _run_stage(
            report,
            STAGE_UPLOAD,
            self.assets.publish_documents,
            request.path,
            documents,
            thumbnail=request.thumbnail,
        )
        return _run_stage(report, STAGE_DEPLOY, self.deploy_trigger.fire, request.path, etag=etag)


__all__ = [
    "DESCRIPTION_TOO_LONG_MESSAGE",
    "MISSING_CONTENT_MESSAGE",
    "MISSING_DESCRIPTION_MESSAGE",
    "PublishOutcome",
    "PublishPipeline",
    "PublishResponse",
    "description_length",
    "validate_request",
]
