from __future__ import annotations

import logging

import pytest

from stg_release.pipeline import PipelineReport, Severity, StageOutcome, StageResult
from stg_release.reporter import LoggingReporter


def test_logging_reporter_levels(caplog: pytest.LogCaptureFixture) -> None:
    reporter = LoggingReporter()
    warned = StageResult("smoke-test", StageOutcome.WARNED, Severity.ADVISORY, "artifact not found")
    failed = StageResult("lint", StageOutcome.FAILED, Severity.FATAL, "clippy failed")

    with caplog.at_level(logging.INFO, logger="stg_release"):
        reporter.stage_started("lint", "cargo clippy")
        reporter.stage_finished(warned)
        reporter.stage_finished(failed)
        reporter.pipeline_finished(PipelineReport(results=[warned, failed]))

    levels = [record.levelno for record in caplog.records]
    assert levels == [logging.INFO, logging.WARNING, logging.ERROR, logging.ERROR]
    assert caplog.records[1].getMessage() == "[smoke-test] warned: artifact not found"
    assert caplog.records[-1].getMessage() == "pipeline failed (1 advisory)"
