"""Stage and report models for the verification pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .driver import PipelineDriver


class Severity(str, Enum):
    FATAL = "fatal"
    ADVISORY = "advisory"


class StageOutcome(str, Enum):
    PASSED = "passed"
    WARNED = "warned"
    FAILED = "failed"
    SKIPPED = "skipped"


class Verdict(str, Enum):
    PASSED = "passed"
    FAILED = "failed"


@dataclass(slots=True)
class StageResult:
    stage: str
    outcome: StageOutcome
    severity: Severity
    diagnostic: Optional[str] = None
    details: Dict[str, object] = field(default_factory=dict)

    @property
    def is_fatal_failure(self) -> bool:
        return self.severity is Severity.FATAL and self.outcome is StageOutcome.FAILED

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "stage": self.stage,
            "outcome": self.outcome.value,
            "severity": self.severity.value,
        }
        if self.diagnostic:
            payload["diagnostic"] = self.diagnostic
        if self.details:
            payload["details"] = self.details
        return payload


@dataclass(frozen=True)
class StageSpec:
    name: str
    severity: Severity
    runner: Callable[["PipelineDriver"], StageResult]
    enabled: Callable[["PipelineDriver"], Optional[str]] = lambda driver: None
    description: str = ""


@dataclass
class PipelineReport:
    results: List[StageResult] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    halted_at: Optional[str] = None

    @property
    def verdict(self) -> Verdict:
        if any(result.is_fatal_failure for result in self.results):
            return Verdict.FAILED
        return Verdict.PASSED

    @property
    def exit_code(self) -> int:
        return 0 if self.verdict is Verdict.PASSED else 1

    @property
    def warnings(self) -> List[StageResult]:
        return [
            result
            for result in self.results
            if result.outcome is StageOutcome.WARNED
            or (result.outcome is StageOutcome.FAILED and result.severity is Severity.ADVISORY)
        ]

    def get(self, stage: str) -> Optional[StageResult]:
        for result in self.results:
            if result.stage == stage:
                return result
        return None

    def stages(self) -> List[str]:
        return [result.stage for result in self.results]

    def to_dict(self) -> Dict[str, object]:
        return {
            "verdict": self.verdict.value,
            "exit_code": self.exit_code,
            "halted_at": self.halted_at,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "stages": [result.to_dict() for result in self.results],
        }
