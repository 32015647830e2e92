"""Alpine package layout and ``APKBUILD`` scaffold."""

from __future__ import annotations

from pathlib import Path

from ..arch import ArchTarget
from .base import PackageAssembler, PackageLayout, template


class ApkAssembler(PackageAssembler):
    name = "apk"

    def assemble(self, artifact: Path, arch: ArchTarget) -> PackageLayout:
        metadata = self._metadata()
        short = self.settings.short_name
        root = self._fresh_root("alpine-package")
        layout = PackageLayout(
            ecosystem=self.name,
            root=root,
            arch=arch.label,
            binary_path=root / "usr" / "bin" / self.settings.binary_name,
            doc_dir=root / "usr" / "share" / "doc" / short,
        )
        (root / "etc" / short).mkdir(parents=True)
        self._install_binary(artifact, layout.binary_path)
        self._copy_docs(layout.doc_dir, ("README.md",))

        lifecycle = self._lifecycle_values(metadata, short)
        self._place_script(layout, "INSTALL", root / "INSTALL", template("post_install.sh", lifecycle))
        self._place_script(layout, "DEINSTALL", root / "DEINSTALL", template("pre_remove.sh", lifecycle))

        apkbuild_values = {
            "maintainer": metadata.effective_maintainer,
            "pkgname": short,
            "pkgver": metadata.version,
            "pkgdesc": metadata.description.replace('"', "'"),
            "url": metadata.repository or "",
            "arch": arch.label,
            "license": metadata.license,
            "binary": self.settings.binary_name,
        }
        apkbuild = self.settings.project_root / "APKBUILD"
        if self._scaffold(apkbuild, template("APKBUILD", apkbuild_values)):
            layout.generated.append("APKBUILD")
        else:
            layout.overrides.append("APKBUILD")
        layout.scripts["APKBUILD"] = apkbuild

        # abuild picks up install hooks named after the package next to APKBUILD
        for script, suffix in (("INSTALL", "post-install"), ("DEINSTALL", "pre-deinstall")):
            hook_name = f"{short}.{suffix}"
            hook = self.settings.project_root / hook_name
            source = layout.scripts[script]
            if self._scaffold(hook, lambda: source.read_text(encoding="utf-8")):
                layout.generated.append(hook_name)
            else:
                layout.overrides.append(hook_name)
            layout.scripts[hook_name] = hook
        layout.logs.append(f"layout ready for {arch.label}")
        return layout
