"""Cyclopts CLI entrypoint for publishing and previewing extension documentation.

The ``docs`` console script runs the publish pipeline against the configured
storage, record, payment, and deploy services, and can render a request
locally (markdown or an HTML preview) without touching any of them.

Examples
--------
Publish a request body on behalf of an owner:

>>> from extension_docs.cli import app
>>> app.run(
...     ["publish", "--request", "request.json", "--owner", "user-1"]
... )  # doctest: +SKIP

Render the markdown a request would publish:

>>> app.run(["render", "--request", "request.json", "--output-dir", "out"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .config import load_publisher_config
from .credentials import DEFAULT_CREDENTIALS_PATH, resolve_credentials
from .models import Publisher, decode_request, normalize_name
from .pipeline import PublishPipeline
from .rendering import render_documents, write_preview

DEFAULT_CONFIG = Path("config/publisher.yaml")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

app = App(name="docs", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]


def configure_logging(*, verbose: bool = False) -> None:
    """Send log records to stdout in the pipeline's log format."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stdout,
        force=True,
    )


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


@app.command(help="Publish a documentation request to the live services.")
def publish(
    *,
    request: typ.Annotated[
        Path, Parameter(help="Path to the JSON publish request", env_var="INPUT_REQUEST")
    ],
    owner: typ.Annotated[
        str, Parameter(help="Identifier of the publishing user", env_var="INPUT_OWNER")
    ],
    email: typ.Annotated[str | None, Parameter(help="Publisher email")] = None,
    payout_account: typ.Annotated[
        str | None,
        Parameter(help="Connected payout account id (required for premium)"),
    ] = None,
    config: typ.Annotated[
        Path, Parameter(help="Path to publisher config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
    credentials: typ.Annotated[
        Path,
        Parameter(
            help="Where credentials are stored (TOML)",
            env_var="EXTENSION_DOCS_CREDENTIALS",
        ),
    ] = DEFAULT_CREDENTIALS_PATH,
    verbose: bool = False,
) -> None:
    """Run the publish pipeline for ``request`` and print the response.

    Parameters
    ----------
    request : Path
        JSON body of the publish request.
    owner : str
        Identifier of the already-authenticated publisher.
    email : str or None, optional
        Publisher email, reported alongside failures.
    payout_account : str or None, optional
        Connected payout account; premium publishes are refused without one.
    config : Path, optional
        Path to ``publisher.yaml``.
    credentials : Path, optional
        Path to the stored credentials file.
    verbose : bool, optional
        Log at DEBUG level.

    Raises
    ------
    SystemExit
        With status 1 when the pipeline answers with an error status.
    """
    configure_logging(verbose=verbose)
    pipeline = PublishPipeline.from_config(
        load_publisher_config(config),
        resolve_credentials(path=credentials),
    )
    publisher = Publisher(id=owner, email=email, payout_account=payout_account)
    outcome = pipeline.publish(publisher, request.read_bytes())
    print(f"{outcome.response.status_code} {outcome.response.render()}")
    for stage in outcome.report.stages:
        status = "ok" if stage.ok else f"failed: {stage.error}"
        print(f"  {stage.stage}: {status}")
    if not outcome.response.ok:
        raise SystemExit(1)


@app.command(help="Render a request's markdown documents locally.")
def render(
    *,
    request: typ.Annotated[
        Path, Parameter(help="Path to the JSON publish request", env_var="INPUT_REQUEST")
    ],
    output_dir: typ.Annotated[
        Path, Parameter(help="Folder receiving the rendered markdown")
    ] = Path("dist"),
) -> None:
    """Write the main document and sub-documents without publishing them."""
    payload = decode_request(request.read_bytes())
    documents = render_documents(payload)
    main_path = output_dir / f"{payload.path}.md"
    main_path.parent.mkdir(parents=True, exist_ok=True)
    main_path.write_text(documents.main, encoding="utf-8")
    print(f"wrote {_format_path(main_path)}")
    for name, body in documents.subpages.items():
        sub_path = output_dir / payload.path / f"{normalize_name(name)}.md"
        sub_path.parent.mkdir(parents=True, exist_ok=True)
        sub_path.write_text(body, encoding="utf-8")
        print(f"wrote {_format_path(sub_path)}")


@app.command(help="Render a request's main document as an HTML preview page.")
def preview(
    *,
    request: typ.Annotated[
        Path, Parameter(help="Path to the JSON publish request", env_var="INPUT_REQUEST")
    ],
    output: typ.Annotated[Path, Parameter(help="HTML file to write")] = Path(
        "preview.html"
    ),
) -> None:
    """Write an HTML preview of the main document of ``request``."""
    payload = decode_request(request.read_bytes())
    documents = render_documents(payload)
    written = write_preview(documents.main, output, title=payload.path)
    print(f"wrote {_format_path(written)}")


def main() -> None:
    """Invoke the Cyclopts application that powers the ``docs`` console command."""
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
