from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pytest

from stg_release.pipeline import HostProbe
from stg_release.settings import ProjectSettings
from stg_release.toolchain import ToolchainInvoker

SAMPLE_MANIFEST = '''[package]
name = "standard_terminal_graphics"
version = "0.1.0"
edition = "2021"
authors = ["Standard Terminal Graphics Team"]
description = "A Rust library for advanced terminal graphics using Unicode Braille characters"
license = "MIT"
repository = "https://github.com/example/standard_terminal_graphics"

[dependencies]
crossterm = "0.27"
rayon = "1.10"

# main binary
[[bin]]
name = "stg-demo"
path = "examples/demo.rs"

[[example]]
name = "demo"
path = "examples/demo.rs"

# .deb packaging
[package.metadata.deb]
maintainer = "Standard Terminal Graphics Team <team@example.com>"
extended-description = """\\
Standard Terminal Graphics (STG) is an advanced terminal graphics library.

[[example]]
name = "demo"
"""
section = "graphics"
priority = "optional"
assets = [
    ["target/release/stg-demo", "usr/bin/stg-demo", "755"],
    ["README.md", "usr/share/doc/standard-terminal-graphics/README.md", "644"],
]

[package.metadata.deb.systemd-units]

[profile.release]
opt-level = 3
lto = true
'''

DEFAULT_TOOLS = ("cargo", "rustup", "sh")


class FakeRunner:
    """Stands in for ``subprocess.run``; records argv and answers from rules.

    A successful ``cargo build`` drops a fake artifact where the real build
    would put it, so later stages find a binary.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.calls: List[List[str]] = []
        self._rules: Dict[Tuple[str, ...], Tuple[int, str, str]] = {}
        self._raises: Dict[Tuple[str, ...], BaseException] = {}
        self.on_call = None

    def respond(self, *prefix: str, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self._rules[tuple(prefix)] = (returncode, stdout, stderr)

    def fail(self, *prefix: str, returncode: int = 1, stderr: str = "error") -> None:
        self.respond(*prefix, returncode=returncode, stderr=stderr)

    def raise_on(self, *prefix: str, exc: BaseException) -> None:
        self._raises[tuple(prefix)] = exc

    def commands(self, *prefix: str) -> List[List[str]]:
        return [call for call in self.calls if tuple(call[: len(prefix)]) == prefix]

    def __call__(self, argv: Sequence[str], **kwargs: object) -> subprocess.CompletedProcess:
        command = [str(part) for part in argv]
        self.calls.append(command)
        if self.on_call is not None:
            self.on_call(command)
        exc = self._match(self._raises, command)
        if exc is not None:
            raise exc
        returncode, stdout, stderr = self._match(self._rules, command) or (0, "", "")
        if returncode == 0 and command[:2] == ["cargo", "build"]:
            self._write_artifact(command)
        return subprocess.CompletedProcess(command, returncode, stdout, stderr)

    def _match(self, table: Dict[Tuple[str, ...], object], command: List[str]):
        best = None
        best_length = -1
        for prefix, value in table.items():
            if tuple(command[: len(prefix)]) == prefix and len(prefix) > best_length:
                best, best_length = value, len(prefix)
        return best

    def _write_artifact(self, command: List[str]) -> None:
        binary = command[command.index("--bin") + 1]
        base = self.root / "target"
        if "--target" in command:
            base = base / command[command.index("--target") + 1]
        artifact = base / "release" / binary
        artifact.parent.mkdir(parents=True, exist_ok=True)
        artifact.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
        artifact.chmod(0o755)


class FakeWhich:
    def __init__(self, tools: Iterable[str] = DEFAULT_TOOLS) -> None:
        self.tools = set(tools)

    def __call__(self, tool: str) -> Optional[str]:
        return f"/usr/bin/{tool}" if tool in self.tools else None


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    root = tmp_path / "stg"
    (root / "examples").mkdir(parents=True)
    (root / "Cargo.toml").write_text(SAMPLE_MANIFEST, encoding="utf-8")
    (root / "examples" / "demo.rs").write_text("fn main() {}\n", encoding="utf-8")
    (root / "README.md").write_text("# STG\n", encoding="utf-8")
    (root / "LICENSE").write_text("MIT\n", encoding="utf-8")
    return root


@pytest.fixture()
def settings(project: Path, tmp_path: Path) -> ProjectSettings:
    return ProjectSettings(
        project_root=project,
        host_arch="x86_64",
        alpine_release_file=tmp_path / "alpine-release",
    )


@pytest.fixture()
def runner(project: Path) -> FakeRunner:
    return FakeRunner(project)


@pytest.fixture()
def which() -> FakeWhich:
    return FakeWhich()


@pytest.fixture()
def invoker(project: Path, runner: FakeRunner, which: FakeWhich) -> ToolchainInvoker:
    return ToolchainInvoker(cwd=project, runner=runner, which=which)


@pytest.fixture()
def host() -> HostProbe:
    return HostProbe(machine="x86_64", is_alpine=False)
