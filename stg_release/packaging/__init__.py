"""Package layout assemblers for the Debian and Alpine ecosystems."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Type

from ..schemas.config import StgConfig
from ..settings import ProjectSettings
from ..toolchain import ToolchainInvoker
from .apk import ApkAssembler
from .base import PackageAssembler, PackageLayout
from .deb import DebAssembler

ASSEMBLERS: Dict[str, Type[PackageAssembler]] = {
    DebAssembler.name: DebAssembler,
    ApkAssembler.name: ApkAssembler,
}


def build_assembler(
    name: str,
    *,
    settings: ProjectSettings,
    invoker: ToolchainInvoker,
    scratch_root: Path,
    config: Optional[StgConfig] = None,
) -> PackageAssembler:
    try:
        factory = ASSEMBLERS[name]
    except KeyError as exc:
        raise ValueError(f"Unknown package assembler '{name}'") from exc
    return factory(settings, invoker, scratch_root=scratch_root, config=config)


__all__ = [
    "ASSEMBLERS",
    "ApkAssembler",
    "DebAssembler",
    "PackageAssembler",
    "PackageLayout",
    "build_assembler",
]
