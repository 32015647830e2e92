"""Stage runners, in execution order."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from ..errors import AssemblerError, ToolUnavailable
from ..manifest import ManifestTransaction
from ..packaging import build_assembler
from ..toolchain import ToolOutcome, ToolResult
from .models import Severity, StageOutcome, StageResult, StageSpec

if TYPE_CHECKING:
    from .driver import PipelineDriver

COMPILE = "compile"
SMOKE_TEST = "smoke-test"
PACKAGE_DEB = "package-deb"
PACKAGE_APK = "package-apk"
LINT = "lint"
FORMAT = "format"
CROSS_COMPILE = "cross-compile"


def run_compile(driver: "PipelineDriver") -> StageResult:
    settings = driver.settings
    invoker = driver.invoker

    if driver.config.allow_warnings:
        build = invoker.build(settings.binary_name)
        return _fatal_tool_result(COMPILE, build, {"transaction": False})

    transaction = ManifestTransaction(
        settings.manifest_path,
        section=settings.conflict_section,
        target=settings.conflict_target,
        secondary_path=settings.secondary_path,
        backup_suffix=settings.backup_suffix,
    )
    build: Optional[ToolResult] = None
    with transaction:
        edit = transaction.edit
        if edit is not None and edit.removed:
            driver.reporter.note(COMPILE, f"duplicate target '{settings.conflict_target}' masked ({edit.strategy})")
        clean = invoker.clean()
        if clean.ok:
            build = invoker.build(settings.binary_name)

    details: Dict[str, object] = {
        "transaction": True,
        "manifest_edit": edit.strategy if edit is not None else "none",
    }
    if build is None:
        return _fatal_tool_result(COMPILE, clean, details)
    return _fatal_tool_result(COMPILE, build, details)


def run_smoke_test(driver: "PipelineDriver") -> StageResult:
    artifact = driver.settings.artifact_path()
    if not artifact.is_file():
        return StageResult(SMOKE_TEST, StageOutcome.WARNED, Severity.ADVISORY, f"artifact not found: {artifact}")
    result = driver.invoker.run([str(artifact)], timeout=driver.settings.smoke_timeout)
    details = {"timed_out": result.timed_out, "returncode": result.returncode}
    if result.outcome is ToolOutcome.UNAVAILABLE:
        return StageResult(SMOKE_TEST, StageOutcome.WARNED, Severity.ADVISORY, "artifact could not be executed", details)
    return StageResult(SMOKE_TEST, StageOutcome.PASSED, Severity.ADVISORY, details=details)


def run_package_deb(driver: "PipelineDriver") -> StageResult:
    return _package(driver, PACKAGE_DEB, "deb")


def run_package_apk(driver: "PipelineDriver") -> StageResult:
    return _package(driver, PACKAGE_APK, "apk")


def run_lint(driver: "PipelineDriver") -> StageResult:
    settings = driver.settings
    if driver.config.allow_warnings:
        result = driver.invoker.clippy(settings.binary_name, ["-W", "clippy::all"])
        _raise_if_unavailable(result)
        if result.ok:
            return StageResult(LINT, StageOutcome.PASSED, Severity.ADVISORY)
        return StageResult(LINT, StageOutcome.WARNED, Severity.ADVISORY, "lint warnings permitted by --allow-warnings")

    lint_args: List[str] = []
    for lint in settings.lint_allow:
        lint_args.extend(["-A", lint])
    result = driver.invoker.clippy(settings.binary_name, lint_args)
    _raise_if_unavailable(result)
    if result.ok:
        allowed = ", ".join(settings.lint_allow)
        return StageResult(LINT, StageOutcome.PASSED, Severity.FATAL, f"allowed: {allowed}" if allowed else None)
    return StageResult(
        LINT,
        StageOutcome.FAILED,
        Severity.FATAL,
        "clippy failed; run 'cargo clippy --fix', or use --skip-lint / --allow-warnings",
        {"output": result.detail()},
    )


def run_format(driver: "PipelineDriver") -> StageResult:
    result = driver.invoker.fmt_check()
    _raise_if_unavailable(result)
    if result.ok:
        severity = Severity.ADVISORY if driver.config.allow_warnings else Severity.FATAL
        return StageResult(FORMAT, StageOutcome.PASSED, severity)
    if driver.config.allow_warnings:
        return StageResult(FORMAT, StageOutcome.WARNED, Severity.ADVISORY, "formatting differs; run 'cargo fmt'")
    return StageResult(FORMAT, StageOutcome.FAILED, Severity.FATAL, "formatting differs; run 'cargo fmt'")


def run_cross_compile(driver: "PipelineDriver") -> StageResult:
    invoker = driver.invoker
    triple = driver.arch.triple
    details: Dict[str, object] = {"target": triple}

    if driver.host.is_alpine:
        if triple not in invoker.installed_targets():
            return StageResult(
                CROSS_COMPILE,
                StageOutcome.WARNED,
                Severity.ADVISORY,
                f"target {triple} not installed; install with: rustup target add {triple}",
                details,
            )
    else:
        musl_targets = invoker.available_targets("musl")[:3]
        if musl_targets:
            driver.reporter.note(CROSS_COMPILE, "musl targets available: " + ", ".join(musl_targets))
        details["available"] = musl_targets
        if triple not in invoker.installed_targets():
            invoker.add_target(triple).raise_for_outcome()
            details["installed"] = True

    build = invoker.build(driver.settings.binary_name, target=triple)
    if build.ok:
        return StageResult(CROSS_COMPILE, StageOutcome.PASSED, Severity.ADVISORY, details=details)
    return StageResult(
        CROSS_COMPILE,
        StageOutcome.FAILED,
        Severity.ADVISORY,
        f"cross build for {triple} failed (expected on some hosts)",
        details,
    )


def _deb_enabled(driver: "PipelineDriver") -> Optional[str]:
    if driver.invoker.available("cargo-deb"):
        return None
    return "cargo-deb not installed"


def _apk_enabled(driver: "PipelineDriver") -> Optional[str]:
    if driver.host.is_alpine or driver.invoker.available("abuild"):
        return None
    return "not an Alpine host and abuild not installed"


def _lint_enabled(driver: "PipelineDriver") -> Optional[str]:
    return "disabled by --skip-lint" if driver.config.skip_lint else None


def _format_enabled(driver: "PipelineDriver") -> Optional[str]:
    return "disabled by --skip-format" if driver.config.skip_format else None


def _cross_enabled(driver: "PipelineDriver") -> Optional[str]:
    if driver.host.is_alpine or driver.invoker.available("rustup"):
        return None
    return "not an Alpine host and rustup not installed"


def _package(driver: "PipelineDriver", stage: str, ecosystem: str) -> StageResult:
    assembler = build_assembler(
        ecosystem,
        settings=driver.settings,
        invoker=driver.invoker,
        scratch_root=driver.scratch_root,
    )
    try:
        layout = assembler.assemble(driver.settings.artifact_path(), driver.arch)
    except OSError as exc:
        raise AssemblerError(ecosystem, f"filesystem error: {exc}") from exc
    driver.layouts[ecosystem] = layout
    details: Dict[str, object] = {
        "arch": layout.arch,
        "generated": list(layout.generated),
        "overrides": list(layout.overrides),
    }
    if layout.package_file is not None:
        details["package_file"] = str(layout.package_file)
    return StageResult(stage, StageOutcome.PASSED, Severity.ADVISORY, details=details)


def _fatal_tool_result(stage: str, result: ToolResult, details: Dict[str, object]) -> StageResult:
    if result.ok:
        return StageResult(stage, StageOutcome.PASSED, Severity.FATAL, details=details)
    if result.outcome is ToolOutcome.UNAVAILABLE:
        diagnostic = f"'{result.command[0]}' is not installed"
    else:
        diagnostic = f"'{' '.join(result.command)}' failed ({result.returncode})"
    return StageResult(stage, StageOutcome.FAILED, Severity.FATAL, diagnostic, {**details, "output": result.detail()})


def _raise_if_unavailable(result: ToolResult) -> None:
    if result.outcome is ToolOutcome.UNAVAILABLE:
        raise ToolUnavailable(result.command[0])


DEFAULT_STAGES: Tuple[StageSpec, ...] = (
    StageSpec(COMPILE, Severity.FATAL, run_compile, description="cargo build --release"),
    StageSpec(SMOKE_TEST, Severity.ADVISORY, run_smoke_test, description="run the release binary briefly"),
    StageSpec(PACKAGE_DEB, Severity.ADVISORY, run_package_deb, _deb_enabled, "assemble Debian package"),
    StageSpec(PACKAGE_APK, Severity.ADVISORY, run_package_apk, _apk_enabled, "assemble Alpine package"),
    StageSpec(LINT, Severity.FATAL, run_lint, _lint_enabled, "cargo clippy"),
    StageSpec(FORMAT, Severity.FATAL, run_format, _format_enabled, "cargo fmt --check"),
    StageSpec(CROSS_COMPILE, Severity.ADVISORY, run_cross_compile, _cross_enabled, "musl cross-compilation check"),
)
