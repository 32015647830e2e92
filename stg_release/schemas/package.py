"""Package metadata read from the ``[package]`` table of ``Cargo.toml``."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import ReleaseError

DEFAULT_MAINTAINER = "Standard Terminal Graphics Team <team@stg.dev>"


class PackageMetadata(BaseModel):
    name: str
    version: str
    description: str = ""
    license: str = "MIT"
    repository: Optional[str] = None
    authors: List[str] = Field(default_factory=list)
    maintainer: Optional[str] = Field(default=None, description="From [package.metadata.deb].maintainer.")
    section: str = "utils"
    priority: str = "optional"

    model_config = ConfigDict(extra="ignore")

    @property
    def effective_maintainer(self) -> str:
        if self.maintainer:
            return self.maintainer
        if self.authors:
            return self.authors[0]
        return DEFAULT_MAINTAINER

    @property
    def deb_name(self) -> str:
        return self.name.replace("_", "-")


def load_package_metadata(manifest_path: Path) -> PackageMetadata:
    """Parse ``manifest_path`` and validate its package table."""

    try:
        with manifest_path.open("rb") as handle:
            document = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ReleaseError(f"Unable to read package metadata from {manifest_path}: {exc}") from exc

    package = dict(document.get("package") or {})
    deb = (package.get("metadata") or {}).get("deb") or {}
    payload = {
        **package,
        "maintainer": deb.get("maintainer"),
        "section": deb.get("section", "utils"),
        "priority": deb.get("priority", "optional"),
    }
    try:
        return PackageMetadata.model_validate(payload)
    except ValidationError as exc:
        raise ReleaseError(f"Invalid [package] table in {manifest_path}: {exc}") from exc
