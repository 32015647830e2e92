"""Debian package layout (``DEBIAN/`` control area plus ``usr/`` payload)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..arch import ArchTarget, debian_arch
from ..errors import AssemblerError
from .base import PackageAssembler, PackageLayout, template

logger = logging.getLogger(__name__)


class DebAssembler(PackageAssembler):
    name = "deb"

    def assemble(self, artifact: Path, arch: ArchTarget) -> PackageLayout:
        metadata = self._metadata()
        package_name = metadata.deb_name
        root = self._fresh_root("debian-package")
        layout = PackageLayout(
            ecosystem=self.name,
            root=root,
            arch=debian_arch(arch.label),
            binary_path=root / "usr" / "bin" / self.settings.binary_name,
            doc_dir=root / "usr" / "share" / "doc" / package_name,
        )
        self._install_binary(artifact, layout.binary_path)
        docs = self._copy_docs(layout.doc_dir)
        layout.logs.extend(f"doc: {name}" for name in docs)

        control_dir = root / "DEBIAN"
        control_values = {
            "package": package_name,
            "version": metadata.version,
            "section": metadata.section,
            "priority": metadata.priority,
            "arch": layout.arch,
            "maintainer": metadata.effective_maintainer,
            "description": metadata.description or package_name,
        }
        self._place_script(layout, "control", control_dir / "control", template("control", control_values), shell=False)

        lifecycle = self._lifecycle_values(metadata, self.settings.short_name)
        self._place_script(layout, "postinst", control_dir / "postinst", template("post_install.sh", lifecycle))
        self._place_script(layout, "prerm", control_dir / "prerm", template("pre_remove.sh", lifecycle))

        if self.invoker.available("cargo-deb"):
            layout.package_file = self._build_with_cargo_deb(layout)
        else:
            layout.logs.append("cargo-deb not available; layout only")
        return layout

    def _build_with_cargo_deb(self, layout: PackageLayout) -> Optional[Path]:
        result = self.invoker.deb(no_build=True)
        if not result.ok:
            raise AssemblerError(self.name, f"cargo deb failed: {result.detail()}")

        output_dir = self.settings.project_root / "target" / "debian"
        packages = sorted(output_dir.glob("*.deb"), key=lambda path: path.stat().st_mtime) if output_dir.is_dir() else []
        if not packages:
            layout.logs.append(f"cargo deb produced no package under {output_dir}")
            return None
        package = packages[-1]
        layout.logs.append(f"package: {package}")

        if self.invoker.available("dpkg-deb"):
            listing = self.invoker.list_deb(package)
            expected = f"usr/bin/{self.settings.binary_name}"
            if not listing.ok:
                raise AssemblerError(self.name, f"dpkg-deb could not list {package.name}: {listing.detail()}")
            if expected not in listing.stdout:
                raise AssemblerError(self.name, f"{package.name} does not contain {expected}")
            layout.logs.append(f"verified {expected} in {package.name}")
        return package
