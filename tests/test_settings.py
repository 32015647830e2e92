from __future__ import annotations

import os
from pathlib import Path

import pytest

from stg_release.settings import DEFAULT_LINT_ALLOW, PipelineConfig, ProjectSettings


def test_defaults(tmp_path: Path) -> None:
    settings = ProjectSettings.from_env(tmp_path, environ={}, load_env_file=False)
    assert settings.manifest_path == tmp_path.resolve() / "Cargo.toml"
    assert settings.secondary_path == tmp_path.resolve() / "examples" / "demo.rs"
    assert settings.artifact_path() == tmp_path.resolve() / "target" / "release" / "stg-demo"
    assert settings.lint_allow == DEFAULT_LINT_ALLOW
    assert settings.smoke_timeout == 3.0


def test_environment_overrides(tmp_path: Path) -> None:
    settings = ProjectSettings.from_env(
        tmp_path,
        environ={
            "STG_RELEASE_BINARY": "stg-viewer",
            "STG_RELEASE_HOST_ARCH": "aarch64",
            "STG_RELEASE_SMOKE_TIMEOUT": "1.5",
        },
        load_env_file=False,
    )
    assert settings.binary_name == "stg-viewer"
    assert settings.host_arch == "aarch64"
    assert settings.smoke_timeout == 1.5
    assert settings.artifact_path("aarch64-unknown-linux-musl") == (
        tmp_path.resolve() / "target" / "aarch64-unknown-linux-musl" / "release" / "stg-viewer"
    )


def test_invalid_timeout_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="STG_RELEASE_SMOKE_TIMEOUT"):
        ProjectSettings.from_env(tmp_path, environ={"STG_RELEASE_SMOKE_TIMEOUT": "soon"}, load_env_file=False)


def test_dotenv_file_is_loaded(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("STG_RELEASE_MANIFEST", raising=False)
    (tmp_path / ".env").write_text("STG_RELEASE_MANIFEST=Cargo.release.toml\n", encoding="utf-8")
    try:
        settings = ProjectSettings.from_env(tmp_path)
    finally:
        os.environ.pop("STG_RELEASE_MANIFEST", None)
    assert settings.manifest_name == "Cargo.release.toml"


def test_pipeline_config_to_dict() -> None:
    assert PipelineConfig(skip_lint=True).to_dict() == {
        "skip_lint": True,
        "skip_format": False,
        "allow_warnings": False,
    }
