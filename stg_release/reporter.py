"""Status sinks for stage progress."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Protocol, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .pipeline.models import PipelineReport, StageResult

logger = logging.getLogger("stg_release")


class Reporter(Protocol):
    def stage_started(self, stage: str, description: str) -> None:  # pragma: no cover - interface
        ...

    def note(self, stage: str, message: str) -> None:  # pragma: no cover - interface
        ...

    def stage_finished(self, result: "StageResult") -> None:  # pragma: no cover - interface
        ...

    def pipeline_finished(self, report: "PipelineReport") -> None:  # pragma: no cover - interface
        ...


_LEVELS = {
    "passed": logging.INFO,
    "skipped": logging.INFO,
    "warned": logging.WARNING,
    "failed": logging.ERROR,
}


class LoggingReporter:
    """Report through the ``stg_release`` logger."""

    def __init__(self, log: logging.Logger = logger) -> None:
        self.log = log

    def stage_started(self, stage: str, description: str) -> None:
        self.log.info("[%s] %s", stage, description or "running")

    def note(self, stage: str, message: str) -> None:
        self.log.info("[%s] %s", stage, message)

    def stage_finished(self, result: "StageResult") -> None:
        level = _LEVELS.get(result.outcome.value, logging.INFO)
        if result.diagnostic:
            self.log.log(level, "[%s] %s: %s", result.stage, result.outcome.value, result.diagnostic)
        else:
            self.log.log(level, "[%s] %s", result.stage, result.outcome.value)

    def pipeline_finished(self, report: "PipelineReport") -> None:
        level = logging.INFO if report.exit_code == 0 else logging.ERROR
        suffix = f" ({len(report.warnings)} advisory)" if report.warnings else ""
        self.log.log(level, "pipeline %s%s", report.verdict.value, suffix)


@dataclass
class RecordingReporter:
    """Keep every event in memory."""

    events: List[Tuple[str, str, str]] = field(default_factory=list)

    def stage_started(self, stage: str, description: str) -> None:
        self.events.append(("started", stage, description))

    def note(self, stage: str, message: str) -> None:
        self.events.append(("note", stage, message))

    def stage_finished(self, result: "StageResult") -> None:
        self.events.append(("finished", result.stage, result.outcome.value))

    def pipeline_finished(self, report: "PipelineReport") -> None:
        self.events.append(("pipeline", "finish", report.verdict.value))

    def started(self) -> List[str]:
        return [stage for kind, stage, _ in self.events if kind == "started"]
