from __future__ import annotations

import hashlib
import os
import signal
from pathlib import Path

import pytest

from stg_release.errors import ResolverIOError
from stg_release.manifest import ManifestTransaction, count_assignments


def _digest(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


def _transaction(project: Path, **kwargs) -> ManifestTransaction:
    return ManifestTransaction(
        project / "Cargo.toml",
        section="example",
        target="demo",
        secondary_path=project / "examples" / "demo.rs",
        **kwargs,
    )


def test_transaction_edits_then_restores_byte_for_byte(project: Path) -> None:
    manifest = project / "Cargo.toml"
    before = _digest(manifest)

    with _transaction(project) as transaction:
        assert transaction.is_open
        assert count_assignments(manifest.read_text(encoding="utf-8"), "example", "demo") == 0
        assert transaction.manifest_backup.exists()
        assert not (project / "examples" / "demo.rs").exists()
        assert (project / "examples" / "demo.rs.bak").exists()

    assert _digest(manifest) == before
    assert not transaction.manifest_backup.exists()
    assert (project / "examples" / "demo.rs").read_text(encoding="utf-8") == "fn main() {}\n"
    assert not (project / "examples" / "demo.rs.bak").exists()


def test_transaction_restores_when_body_raises(project: Path) -> None:
    manifest = project / "Cargo.toml"
    before = _digest(manifest)

    with pytest.raises(RuntimeError):
        with _transaction(project):
            raise RuntimeError("compile blew up")

    assert _digest(manifest) == before
    assert (project / "examples" / "demo.rs").exists()


def test_transaction_restores_on_system_exit(project: Path) -> None:
    manifest = project / "Cargo.toml"
    before = _digest(manifest)

    with pytest.raises(SystemExit):
        with _transaction(project):
            raise SystemExit(143)

    assert _digest(manifest) == before


@pytest.mark.skipif(not hasattr(signal, "SIGTERM"), reason="SIGTERM unavailable")
def test_sigterm_inside_transaction_becomes_system_exit(project: Path) -> None:
    manifest = project / "Cargo.toml"
    before = _digest(manifest)
    previous = signal.getsignal(signal.SIGTERM)

    with pytest.raises(SystemExit) as excinfo:
        with _transaction(project):
            os.kill(os.getpid(), signal.SIGTERM)

    assert excinfo.value.code == 128 + signal.SIGTERM
    assert _digest(manifest) == before
    assert signal.getsignal(signal.SIGTERM) == previous


def test_restore_without_open_transaction_is_noop(project: Path) -> None:
    transaction = _transaction(project)
    assert transaction.restore() is False
    with transaction:
        pass
    assert transaction.restore() is False


def test_stale_backup_refuses_to_start(project: Path) -> None:
    manifest = project / "Cargo.toml"
    stale = project / "Cargo.toml.bak"
    stale.write_text("old\n", encoding="utf-8")
    before = _digest(manifest)

    with pytest.raises(ResolverIOError) as excinfo:
        with _transaction(project):
            pytest.fail("body must not run")

    assert excinfo.value.path == str(stale)
    assert _digest(manifest) == before
    assert stale.read_text(encoding="utf-8") == "old\n"
    assert (project / "examples" / "demo.rs").exists()


def test_missing_manifest_raises_resolver_error_and_undoes_rename(project: Path) -> None:
    (project / "Cargo.toml").unlink()

    with pytest.raises(ResolverIOError):
        _transaction(project).begin()

    assert (project / "examples" / "demo.rs").exists()
    assert not (project / "examples" / "demo.rs.bak").exists()


def test_absent_secondary_file_is_ignored(project: Path) -> None:
    (project / "examples" / "demo.rs").unlink()
    with _transaction(project) as transaction:
        assert transaction.edit is not None and transaction.edit.removed
    assert not (project / "examples" / "demo.rs").exists()


def test_manifest_without_target_is_left_untouched(project: Path) -> None:
    manifest = project / "Cargo.toml"
    manifest.write_text('[package]\nname = "x"\nversion = "0.1.0"\n', encoding="utf-8")
    with _transaction(project) as transaction:
        assert transaction.edit is not None
        assert transaction.edit.strategy == "none"
        assert manifest.read_text(encoding="utf-8") == '[package]\nname = "x"\nversion = "0.1.0"\n'


def test_stale_secondary_backup_refuses_to_start_when_source_missing(project: Path) -> None:
    source = project / "examples" / "demo.rs"
    hidden = project / "examples" / "demo.rs.bak"
    source.rename(hidden)
    before = _digest(project / "Cargo.toml")

    with pytest.raises(ResolverIOError) as excinfo:
        with _transaction(project):
            pytest.fail("body must not run")

    assert excinfo.value.path == str(hidden)
    assert hidden.read_text(encoding="utf-8") == "fn main() {}\n"
    assert not source.exists()
    assert not (project / "Cargo.toml.bak").exists()
    assert _digest(project / "Cargo.toml") == before
