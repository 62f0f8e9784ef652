r"""Ask the documentation site to rebuild an extension's pages.

The site is rebuilt by a GitHub Actions workflow; publishing fires its
``workflow_dispatch`` event with the extension path as the only input.

Example
-------
>>> from extension_docs.deploy_trigger import GitHubDispatchClient
>>> client = GitHubDispatchClient(token="ghp_example", repo="octo/site")  # doctest: +SKIP
>>> client.fire("query-builder").status_code  # doctest: +SKIP
204
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ
from http import HTTPStatus

import requests

from extension_docs.errors import StageError
from extension_docs.transport import USER_AGENT

if typ.TYPE_CHECKING:
    from extension_docs.config import DeployConfig

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.github.com"
_ACCEPT_HEADER = "application/vnd.github+json"


class DeployTriggerError(RuntimeError):
    """Raised when the workflow dispatch is rejected."""


@dc.dataclass(slots=True)
class DeployReceipt:
    """Acknowledgement of a dispatched rebuild.

    Attributes
    ----------
    path : str
        Extension path the rebuild was requested for.
    status_code : int
        HTTP status returned by the dispatch endpoint.
    etag : str | None
        ETag of the main document upload the rebuild will pick up.
    """

    path: str
    status_code: int
    etag: str | None = None


class DeployTrigger(typ.Protocol):
    """Fire a downstream rebuild for a published extension."""

    def fire(self, path: str, *, etag: str | None = None) -> DeployReceipt: ...


class GitHubDispatchClient:
    """Dispatch the site rebuild workflow through the GitHub REST API."""

    def __init__(
        self,
        *,
        token: str | None,
        repo: str,
        workflow: str = "isr.yaml",
        ref: str = "main",
        api_base: str = DEFAULT_API_BASE,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Initialise the client with its target workflow and transport.

        Parameters
        ----------
        token : str | None
            Token allowed to dispatch workflows on ``repo``.
        repo : str
            Repository in ``owner/name`` form hosting the workflow.
        workflow : str, optional
            Workflow file name or id. Defaults to ``"isr.yaml"``.
        ref : str, optional
            Git ref the workflow runs against. Defaults to ``"main"``.
        api_base : str, optional
            Base URL for the GitHub API. Defaults to ``DEFAULT_API_BASE``.
        session : requests.Session, optional
            Session to reuse connections. Defaults to a new session.
        timeout : float, optional
            Per-request timeout in seconds. Defaults to ``10.0``.
        """
        normalized = repo.strip()
        if not normalized:
            msg = "Repository name cannot be empty"
            raise ValueError(msg)
        self.repo = normalized
        self.workflow = workflow
        self.ref = ref
        self.timeout = timeout
        self._api_base = api_base.rstrip("/") or DEFAULT_API_BASE
        self._session = session or requests.Session()
        self._headers = {"Accept": _ACCEPT_HEADER, "User-Agent": USER_AGENT}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_config(
        cls,
        deploy: DeployConfig,
        token: str | None,
        *,
        session: requests.Session | None = None,
    ) -> GitHubDispatchClient:
        return cls(
            token=token,
            repo=deploy.repo,
            workflow=deploy.workflow,
            ref=deploy.ref,
            api_base=deploy.api_base,
            session=session,
        )

    @property
    def dispatch_url(self) -> str:
        return f"{self._api_base}/repos/{self.repo}/actions/workflows/{self.workflow}/dispatches"

    def dispatch(self, path: str) -> int:
        """POST the dispatch event for ``path`` and return the status code."""
        payload = {"ref": self.ref, "inputs": {"extension": path}}
        try:
            response = self._session.post(
                self.dispatch_url,
                json=payload,
                headers=self._headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            msg = f"Failed to reach GitHub workflow dispatch for '{self.repo}': {exc}"
            raise DeployTriggerError(msg) from exc

        if response.status_code >= HTTPStatus.BAD_REQUEST:
            snippet = response.text[:200]
            msg = (
                f"Workflow dispatch for '{self.repo}' failed with "
                f"status {response.status_code}: {snippet}"
            )
            raise DeployTriggerError(msg)
        return response.status_code

    def fire(self, path: str, *, etag: str | None = None) -> DeployReceipt:
        """Request a rebuild of ``path``; failures are wrapped in :class:`StageError`."""
        try:
            status = self.dispatch(path)
        except DeployTriggerError as exc:
            raise StageError("Failed to redeploy", exc) from exc
        logger.info("Dispatched %s for %s (%s)", self.workflow, path, status)
        return DeployReceipt(path=path, status_code=status, etag=etag)


__all__ = [
    "DEFAULT_API_BASE",
    "DeployReceipt",
    "DeployTrigger",
    "DeployTriggerError",
    "GitHubDispatchClient",
]
