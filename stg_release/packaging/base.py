"""Shared contract for the package layout assemblers."""

from __future__ import annotations

import logging
import shutil
import stat
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..arch import ArchTarget
from ..errors import AssemblerError, ReleaseError
from ..schemas.config import StgConfig, config_paths
from ..schemas.package import PackageMetadata, load_package_metadata
from ..settings import ProjectSettings
from ..toolchain import ToolchainInvoker, ToolOutcome
from .render import render_template

logger = logging.getLogger(__name__)

_EXECUTABLE = stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP | stat.S_IROTH | stat.S_IXOTH


@dataclass(slots=True)
class PackageLayout:
    ecosystem: str
    root: Path
    arch: str
    binary_path: Path
    doc_dir: Path
    scripts: Dict[str, Path] = field(default_factory=dict)
    generated: List[str] = field(default_factory=list)
    overrides: List[str] = field(default_factory=list)
    package_file: Optional[Path] = None
    logs: List[str] = field(default_factory=list)


class PackageAssembler(ABC):
    """Build one ecosystem's package tree under ``scratch_root``.

    Control and lifecycle scripts found in ``<project>/packaging/<name>/`` are
    copied verbatim; any script not supplied there is rendered from the
    bundled templates and, for shell scripts, checked with ``sh -n``.
    """

    name: str

    def __init__(
        self,
        settings: ProjectSettings,
        invoker: ToolchainInvoker,
        *,
        scratch_root: Path,
        config: Optional[StgConfig] = None,
    ) -> None:
        self.settings = settings
        self.invoker = invoker
        self.scratch_root = Path(scratch_root)
        self.config = config or StgConfig()

    @abstractmethod
    def assemble(self, artifact: Path, arch: ArchTarget) -> PackageLayout:
        ...

    @property
    def overrides_dir(self) -> Path:
        return self.settings.overrides_for(self.name)

    def _fresh_root(self, dirname: str) -> Path:
        root = self.scratch_root / dirname
        if root.exists():
            shutil.rmtree(root)
        root.mkdir(parents=True)
        return root

    def _metadata(self) -> PackageMetadata:
        try:
            return load_package_metadata(self.settings.manifest_path)
        except ReleaseError as exc:
            raise AssemblerError(self.name, str(exc)) from exc

    def _install_binary(self, artifact: Path, destination: Path) -> Path:
        if not artifact.is_file():
            raise AssemblerError(self.name, f"Compiled artifact not found: {artifact}")
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(artifact, destination)
        destination.chmod(_EXECUTABLE)
        return destination

    def _copy_docs(self, doc_dir: Path, names: tuple[str, ...] = ("README.md", "LICENSE")) -> List[str]:
        doc_dir.mkdir(parents=True, exist_ok=True)
        copied: List[str] = []
        for name in names:
            source = self.settings.project_root / name
            if source.is_file():
                shutil.copy2(source, doc_dir / name)
                copied.append(name)
        return copied

    def _lifecycle_values(self, metadata: PackageMetadata, pkgname: str) -> Dict[str, object]:
        return {
            "pkgname": pkgname,
            "binary": self.settings.binary_name,
            "config_body": self.config.to_toml(),
            "version": metadata.version,
            **config_paths(self.settings.short_name),
        }

    def _place_script(
        self,
        layout: PackageLayout,
        name: str,
        destination: Path,
        render: Callable[[], str],
        *,
        shell: bool = True,
    ) -> Path:
        """Copy the user override for ``name`` or render and validate a fresh one."""

        destination.parent.mkdir(parents=True, exist_ok=True)
        override = self.overrides_dir / name
        if override.is_file():
            shutil.copy2(override, destination)
            layout.overrides.append(name)
            layout.logs.append(f"{name}: using override {override}")
        else:
            destination.write_text(_render(self.name, render), encoding="utf-8")
            if shell:
                destination.chmod(_EXECUTABLE)
                self._validate_syntax(destination)
            layout.generated.append(name)
            layout.logs.append(f"{name}: generated")
        layout.scripts[name] = destination
        return destination

    def _scaffold(self, path: Path, render: Callable[[], str]) -> bool:
        """Write ``path`` only when it does not exist yet; returns True when written."""

        if path.exists():
            logger.info("%s already present; leaving it untouched", path.name)
            return False
        path.write_text(_render(self.name, render), encoding="utf-8")
        logger.info("scaffolded %s", path)
        return True

    def _validate_syntax(self, script: Path) -> None:
        result = self.invoker.check_syntax(script)
        if result.outcome is ToolOutcome.UNAVAILABLE:
            raise AssemblerError(self.name, f"Cannot validate {script.name}: 'sh' is not available.")
        if not result.ok:
            raise AssemblerError(self.name, f"Generated {script.name} failed syntax check: {result.detail()}")


def _render(ecosystem: str, render: Callable[[], str]) -> str:
    try:
        return render()
    except KeyError as exc:
        raise AssemblerError(ecosystem, f"Template placeholder missing: {exc}") from exc


def template(name: str, values: Dict[str, object]) -> Callable[[], str]:
    return lambda: render_template(name, values)
