"""Per-stage publish results and the operator sink that receives failures."""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ
import uuid

logger = logging.getLogger(__name__)


@dc.dataclass(slots=True)
class StageReport:
    """Result of one pipeline stage."""

    stage: str
    ok: bool = True
    error: BaseException | None = None
    detail: str | None = None


@dc.dataclass(slots=True)
class PublishReport:
    """Ordered stage results of a single publish."""

    path: str | None = None
    stages: list[StageReport] = dc.field(default_factory=list)
    reference_id: str | None = None

    def record(
        self,
        stage: str,
        *,
        error: BaseException | None = None,
        detail: str | None = None,
    ) -> StageReport:
        report = StageReport(stage=stage, ok=error is None, error=error, detail=detail)
        self.stages.append(report)
        return report

    def get(self, stage: str) -> StageReport | None:
        """Return the report for ``stage`` if it ran."""
        return next((report for report in self.stages if report.stage == stage), None)

    @property
    def failures(self) -> list[StageReport]:
        return [report for report in self.stages if not report.ok]

    @property
    def ok(self) -> bool:
        return not self.failures


class OperatorSink(typ.Protocol):
    """Destination for failures an operator must look at."""

    def report(self, subject: str, error: BaseException) -> str:
        """Record ``error`` and return a reference id quoted to the caller."""
        ...


class LoggingOperatorSink:
    """:class:`OperatorSink` that writes failures to the log with a traceback."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def report(self, subject: str, error: BaseException) -> str:
        reference = uuid.uuid4().hex
        self._log.error(
            "%s [%s]: %s",
            subject,
            reference,
            error,
            exc_info=(type(error), error, error.__traceback__),
        )
        return reference


__all__ = ["LoggingOperatorSink", "OperatorSink", "PublishReport", "StageReport"]
