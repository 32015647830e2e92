"""Exception hierarchy shared by the release pipeline."""

from __future__ import annotations

from typing import Optional, Sequence


class ReleaseError(RuntimeError):
    """Base class for every error raised by stg-release."""


class ResolverIOError(ReleaseError):
    """Raised when the manifest backup cannot be created."""

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class ToolUnavailable(ReleaseError):
    """Raised when an optional external tool is not installed."""

    def __init__(self, tool: str) -> None:
        super().__init__(f"Tool '{tool}' is not available on PATH.")
        self.tool = tool


class ToolFailure(ReleaseError):
    """Raised when a tool ran and reported a non-zero exit status."""

    def __init__(self, command: Sequence[str], returncode: Optional[int], detail: str = "") -> None:
        rendered = " ".join(command)
        message = f"'{rendered}' failed ({returncode})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode
        self.detail = detail


class AssemblerError(ReleaseError):
    """Raised when a package layout cannot be constructed or validated."""

    def __init__(self, ecosystem: str, message: str) -> None:
        super().__init__(f"[{ecosystem}] {message}")
        self.ecosystem = ecosystem


class UnknownFlag(ReleaseError):
    """Raised for command-line flags the pipeline does not recognise."""

    def __init__(self, flags: Sequence[str]) -> None:
        joined = ", ".join(flags)
        super().__init__(f"Unknown option(s): {joined}")
        self.flags = list(flags)
