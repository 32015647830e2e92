"""Stage sequencing for the build-verification pipeline."""

from .driver import HostProbe, PipelineDriver
from .models import PipelineReport, Severity, StageOutcome, StageResult, StageSpec, Verdict
from .stages import DEFAULT_STAGES

__all__ = [
    "DEFAULT_STAGES",
    "HostProbe",
    "PipelineDriver",
    "PipelineReport",
    "Severity",
    "StageOutcome",
    "StageResult",
    "StageSpec",
    "Verdict",
]
