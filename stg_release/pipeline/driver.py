"""Sequential stage driver."""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Sequence

from ..arch import ArchTarget, detect, host_machine
from ..errors import AssemblerError, ResolverIOError, ToolFailure, ToolUnavailable
from ..packaging import PackageLayout
from ..reporter import LoggingReporter, Reporter
from ..settings import PipelineConfig, ProjectSettings
from ..toolchain import ToolchainInvoker
from .models import PipelineReport, Severity, StageOutcome, StageResult, StageSpec
from .stages import DEFAULT_STAGES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HostProbe:
    machine: str
    is_alpine: bool

    @classmethod
    def detect(cls, settings: ProjectSettings) -> "HostProbe":
        return cls(
            machine=host_machine(settings.host_arch),
            is_alpine=settings.alpine_release_file.exists(),
        )


class PipelineDriver:
    """Run every stage once, in order, and aggregate a verdict.

    A fatal stage failure stops the run; later stages are not executed.
    ``ResolverIOError`` is not converted into a stage result and propagates
    to the caller. Package layouts live in a scratch directory that is
    removed before :meth:`run` returns or raises.
    """

    def __init__(
        self,
        config: PipelineConfig,
        settings: ProjectSettings,
        *,
        invoker: Optional[ToolchainInvoker] = None,
        reporter: Optional[Reporter] = None,
        host: Optional[HostProbe] = None,
        stages: Sequence[StageSpec] = DEFAULT_STAGES,
        scratch_parent: Optional[Path] = None,
    ) -> None:
        self.config = config
        self.settings = settings
        self.invoker = invoker or ToolchainInvoker(cwd=settings.project_root)
        self.reporter: Reporter = reporter or LoggingReporter()
        self.host = host or HostProbe.detect(settings)
        self.arch: ArchTarget = detect(self.host.machine)
        self.stages = tuple(stages)
        self.scratch_parent = scratch_parent
        self.scratch_root: Path = Path()
        self.layouts: Dict[str, PackageLayout] = {}

    def run(self) -> PipelineReport:
        report = PipelineReport()
        logger.debug("host %s -> %s / %s", self.host.machine, self.arch.label, self.arch.triple)
        try:
            with tempfile.TemporaryDirectory(prefix="stg-release-", dir=self.scratch_parent) as scratch:
                self.scratch_root = Path(scratch)
                for spec in self.stages:
                    result = self._run_stage(spec)
                    report.results.append(result)
                    self.reporter.stage_finished(result)
                    if result.is_fatal_failure:
                        report.halted_at = spec.name
                        break
        finally:
            report.finished_at = datetime.now(timezone.utc)
        self.reporter.pipeline_finished(report)
        return report

    def _run_stage(self, spec: StageSpec) -> StageResult:
        skip_reason = spec.enabled(self)
        if skip_reason:
            return StageResult(spec.name, StageOutcome.SKIPPED, spec.severity, skip_reason)

        self.reporter.stage_started(spec.name, spec.description)
        try:
            return spec.runner(self)
        except ResolverIOError:
            raise
        except ToolUnavailable as exc:
            return StageResult(spec.name, StageOutcome.SKIPPED, Severity.ADVISORY, str(exc))
        except ToolFailure as exc:
            return StageResult(spec.name, StageOutcome.FAILED, spec.severity, str(exc))
        except AssemblerError as exc:
            return StageResult(spec.name, StageOutcome.FAILED, Severity.ADVISORY, str(exc))
