"""Build verification and packaging pipeline for Standard Terminal Graphics."""

__version__ = "0.1.0"

from .arch import ArchTarget, detect
from .errors import (
    AssemblerError,
    ReleaseError,
    ResolverIOError,
    ToolFailure,
    ToolUnavailable,
    UnknownFlag,
)
from .manifest import ManifestTransaction, remove_target_block
from .pipeline import PipelineDriver, PipelineReport, StageOutcome, StageResult
from .settings import PipelineConfig, ProjectSettings
from .toolchain import ToolchainInvoker, ToolOutcome, ToolResult

__all__ = [
    "__version__",
    "ArchTarget",
    "AssemblerError",
    "ManifestTransaction",
    "PipelineConfig",
    "PipelineDriver",
    "PipelineReport",
    "ProjectSettings",
    "ReleaseError",
    "ResolverIOError",
    "StageOutcome",
    "StageResult",
    "ToolFailure",
    "ToolOutcome",
    "ToolResult",
    "ToolUnavailable",
    "ToolchainInvoker",
    "UnknownFlag",
    "detect",
    "remove_target_block",
]
