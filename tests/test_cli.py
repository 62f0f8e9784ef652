"""Tests for the ``docs`` console commands."""

from __future__ import annotations

import typing as typ

import pytest

from extension_docs import cli
from extension_docs.notify import PublishReport
from extension_docs.pipeline import PublishOutcome, PublishResponse

if typ.TYPE_CHECKING:
    from pathlib import Path

    from pytest_mock import MockerFixture

REQUEST = b"""
{
  "path": "query-builder",
  "description": "Build queries",
  "blocks": [{"uid": "mainblk01", "text": "Hello"}],
  "subpages": {"Getting Started": {"nodes": [{"uid": "subblk001", "text": "Install"}]}}
}
"""


@pytest.fixture
def request_file(tmp_path: Path) -> Path:
    path = tmp_path / "request.json"
    path.write_bytes(REQUEST)
    return path


def test_render_writes_markdown(
    request_file: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    output_dir = tmp_path / "out"
    cli.render(request=request_file, output_dir=output_dir)

    main = (output_dir / "query-builder.md").read_text(encoding="utf-8")
    assert main == '- <Block id={"mainblk01"}>Hello</Block>\n\n'
    assert (output_dir / "query-builder" / "getting_started.md").exists()
    assert capsys.readouterr().out.count("wrote ") == 2


def test_preview_writes_html(request_file: Path, tmp_path: Path) -> None:
    output = tmp_path / "preview.html"
    cli.preview(request=request_file, output=output)
    assert 'id="mainblk01"' in output.read_text(encoding="utf-8")


def test_publish_prints_response_and_fails_on_error(
    request_file: Path,
    tmp_path: Path,
    mocker: MockerFixture,
    capsys: pytest.CaptureFixture[str],
) -> None:
    mocker.patch.object(cli, "load_publisher_config")
    mocker.patch.object(cli, "resolve_credentials")
    mocker.patch.object(cli, "configure_logging")
    pipeline = mocker.Mock()
    pipeline.publish.return_value = PublishOutcome(
        response=PublishResponse(403, "User does not have access to path query-builder"),
        report=PublishReport(path="query-builder"),
    )
    from_config = mocker.patch.object(
        cli.PublishPipeline, "from_config", return_value=pipeline
    )

    with pytest.raises(SystemExit) as excinfo:
        cli.publish(request=request_file, owner="user-9", credentials=tmp_path / "c.toml")

    assert excinfo.value.code == 1, "error responses should exit non-zero"
    from_config.assert_called_once()
    publisher, body = pipeline.publish.call_args.args
    assert publisher.id == "user-9"
    assert body == REQUEST
    assert "403 User does not have access" in capsys.readouterr().out
