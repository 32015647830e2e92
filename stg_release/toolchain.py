"""Synchronous wrappers around cargo, rustup and the packaging helpers."""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .errors import ToolFailure, ToolUnavailable

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]
Which = Callable[[str], Optional[str]]


class ToolOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    UNAVAILABLE = "unavailable"


@dataclass(slots=True)
class ToolResult:
    command: List[str]
    outcome: ToolOutcome
    returncode: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome is ToolOutcome.SUCCESS

    def detail(self) -> str:
        if self.timed_out:
            return "timed out"
        return (self.stderr or self.stdout).strip()

    def raise_for_outcome(self) -> "ToolResult":
        if self.outcome is ToolOutcome.UNAVAILABLE:
            raise ToolUnavailable(self.command[0])
        if self.outcome is ToolOutcome.FAILURE:
            raise ToolFailure(self.command, self.returncode, self.detail())
        return self


@dataclass
class ToolchainInvoker:
    """Issue one external command at a time and classify its completion.

    ``runner`` and ``which`` default to :func:`subprocess.run` and
    :func:`shutil.which`; tests substitute recording fakes.
    """

    cwd: Path
    runner: Runner = subprocess.run
    which: Which = shutil.which
    history: List[ToolResult] = field(default_factory=list)

    def available(self, tool: str) -> bool:
        return self.which(tool) is not None

    def run(self, command: Sequence[str], *, timeout: Optional[float] = None) -> ToolResult:
        argv = [str(part) for part in command]
        executable = argv[0]
        if "/" not in executable and not self.available(executable):
            result = ToolResult(command=argv, outcome=ToolOutcome.UNAVAILABLE)
            self.history.append(result)
            return result

        logger.debug("running %s", " ".join(argv))
        try:
            proc = self.runner(
                argv,
                cwd=str(self.cwd),
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                check=False,
                timeout=timeout,
            )
        except FileNotFoundError:
            result = ToolResult(command=argv, outcome=ToolOutcome.UNAVAILABLE)
        except subprocess.TimeoutExpired as exc:
            result = ToolResult(
                command=argv,
                outcome=ToolOutcome.FAILURE,
                stdout=_as_text(exc.stdout),
                stderr=_as_text(exc.stderr),
                timed_out=True,
            )
        except OSError as exc:
            result = ToolResult(command=argv, outcome=ToolOutcome.FAILURE, stderr=str(exc))
        else:
            outcome = ToolOutcome.SUCCESS if proc.returncode == 0 else ToolOutcome.FAILURE
            result = ToolResult(
                command=argv,
                outcome=outcome,
                returncode=proc.returncode,
                stdout=proc.stdout or "",
                stderr=proc.stderr or "",
            )
        self.history.append(result)
        return result

    # cargo ----------------------------------------------------------------

    def build(self, binary: str, *, target: Optional[str] = None, release: bool = True) -> ToolResult:
        command = ["cargo", "build"]
        if release:
            command.append("--release")
        if target:
            command.extend(["--target", target])
        command.extend(["--bin", binary])
        return self.run(command)

    def clean(self) -> ToolResult:
        return self.run(["cargo", "clean"])

    def clippy(self, binary: str, lint_args: Sequence[str]) -> ToolResult:
        return self.run(["cargo", "clippy", "--bin", binary, "--", *lint_args])

    def fmt_check(self) -> ToolResult:
        return self.run(["cargo", "fmt", "--check"])

    def deb(self, *, no_build: bool = True) -> ToolResult:
        command = ["cargo", "deb"]
        if no_build:
            command.append("--no-build")
        return self.run(command)

    # rustup ---------------------------------------------------------------

    def installed_targets(self) -> List[str]:
        result = self.run(["rustup", "target", "list", "--installed"])
        return _lines(result.stdout) if result.ok else []

    def available_targets(self, keyword: str = "") -> List[str]:
        result = self.run(["rustup", "target", "list"])
        if not result.ok:
            return []
        return [line.split()[0] for line in _lines(result.stdout) if keyword in line]

    def add_target(self, triple: str) -> ToolResult:
        return self.run(["rustup", "target", "add", triple])

    # packaging helpers ----------------------------------------------------

    def check_syntax(self, script: Path) -> ToolResult:
        return self.run(["sh", "-n", str(script)])

    def list_deb(self, package: Path) -> ToolResult:
        return self.run(["dpkg-deb", "-c", str(package)])


def _lines(text: str) -> List[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def _as_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)
