"""Project settings for the Cargo workspace under verification."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

DEFAULT_LINT_ALLOW: Tuple[str, ...] = (
    "clippy::too_many_arguments",
    "clippy::manual_div_ceil",
    "clippy::inherent_to_string",
)

ALPINE_RELEASE_FILE = Path("/etc/alpine-release")


@dataclass(frozen=True)
class PipelineConfig:
    """Invocation flags; built once from the command line."""

    skip_lint: bool = False
    skip_format: bool = False
    allow_warnings: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {
            "skip_lint": self.skip_lint,
            "skip_format": self.skip_format,
            "allow_warnings": self.allow_warnings,
        }


@dataclass(frozen=True)
class ProjectSettings:
    """Static description of the crate the pipeline drives."""

    project_root: Path
    manifest_name: str = "Cargo.toml"
    binary_name: str = "stg-demo"
    short_name: str = "stg"
    conflict_section: str = "example"
    conflict_target: str = "demo"
    secondary_file: Optional[str] = "examples/demo.rs"
    backup_suffix: str = ".bak"
    smoke_timeout: float = 3.0
    lint_allow: Tuple[str, ...] = DEFAULT_LINT_ALLOW
    overrides_dir: str = "packaging"
    host_arch: Optional[str] = None
    alpine_release_file: Path = field(default=ALPINE_RELEASE_FILE)

    @property
    def manifest_path(self) -> Path:
        return self.project_root / self.manifest_name

    @property
    def secondary_path(self) -> Optional[Path]:
        if not self.secondary_file:
            return None
        return self.project_root / self.secondary_file

    def artifact_path(self, target: Optional[str] = None) -> Path:
        base = self.project_root / "target"
        if target:
            base = base / target
        return base / "release" / self.binary_name

    def overrides_for(self, ecosystem: str) -> Path:
        return self.project_root / self.overrides_dir / ecosystem

    @classmethod
    def from_env(
        cls,
        project_root: str | Path,
        *,
        environ: Optional[Mapping[str, str]] = None,
        load_env_file: bool = True,
    ) -> "ProjectSettings":
        """Build settings for ``project_root`` honouring ``STG_RELEASE_*`` overrides."""

        root = Path(project_root).resolve()
        if load_env_file:
            env_file = root / ".env"
            if env_file.exists():
                load_dotenv(env_file, override=False)
        env = os.environ if environ is None else environ

        settings = cls(project_root=root)
        overrides: dict[str, object] = {}
        if env.get("STG_RELEASE_MANIFEST"):
            overrides["manifest_name"] = env["STG_RELEASE_MANIFEST"]
        if env.get("STG_RELEASE_BINARY"):
            overrides["binary_name"] = env["STG_RELEASE_BINARY"]
        if env.get("STG_RELEASE_HOST_ARCH"):
            overrides["host_arch"] = env["STG_RELEASE_HOST_ARCH"]
        if env.get("STG_RELEASE_SMOKE_TIMEOUT"):
            try:
                overrides["smoke_timeout"] = float(env["STG_RELEASE_SMOKE_TIMEOUT"])
            except ValueError as exc:
                raise ValueError(
                    f"STG_RELEASE_SMOKE_TIMEOUT must be a number (got '{env['STG_RELEASE_SMOKE_TIMEOUT']}')"
                ) from exc
        return replace(settings, **overrides) if overrides else settings
