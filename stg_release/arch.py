"""Host architecture mapping for packaging labels and musl cross targets."""

from __future__ import annotations

import platform
from typing import Dict, NamedTuple, Optional


class ArchTarget(NamedTuple):
    label: str
    triple: str


_ARCH_TABLE: Dict[str, ArchTarget] = {
    "x86_64": ArchTarget("x86_64", "x86_64-unknown-linux-musl"),
    "i386": ArchTarget("x86", "i686-unknown-linux-musl"),
    "i686": ArchTarget("x86", "i686-unknown-linux-musl"),
    "aarch64": ArchTarget("aarch64", "aarch64-unknown-linux-musl"),
    "armv7l": ArchTarget("armv7", "armv7-unknown-linux-musleabihf"),
}


def detect(host_arch: str) -> ArchTarget:
    """Map a ``uname -m`` style identifier to its packaging label and triple.

    Unknown identifiers are passed through unchanged as the label and the
    triple is formed as ``{host_arch}-unknown-linux-musl``. Never raises.
    """

    known = _ARCH_TABLE.get(host_arch)
    if known is not None:
        return known
    return ArchTarget(host_arch, f"{host_arch}-unknown-linux-musl")


def host_machine(override: Optional[str] = None) -> str:
    return override or platform.machine()


_DEBIAN_ARCH: Dict[str, str] = {
    "x86_64": "amd64",
    "x86": "i386",
    "aarch64": "arm64",
    "armv7": "armhf",
}


def debian_arch(label: str) -> str:
    """Translate a packaging label into Debian's architecture name."""

    return _DEBIAN_ARCH.get(label, label)
