"""Command-line entry point for the build-verification pipeline."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Mapping, Optional, Sequence

from .errors import ResolverIOError, UnknownFlag
from .pipeline import PipelineDriver
from .settings import PipelineConfig, ProjectSettings

logger = logging.getLogger("stg_release")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args, extras = parser.parse_known_args(argv)
    try:
        _reject_unknown(extras)
    except UnknownFlag as exc:
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: {exc}", file=sys.stderr)
        return 2

    if args.help:
        parser.print_help()
        return 0

    _configure_logging(args.verbose)
    config = PipelineConfig(
        skip_lint=args.skip_lint,
        skip_format=args.skip_format,
        allow_warnings=args.allow_warnings,
    )
    settings = ProjectSettings.from_env(args.project_root)
    logger.debug("config %s, project %s", config.to_dict(), settings.project_root)

    driver = PipelineDriver(config, settings)
    try:
        report = driver.run()
    except ResolverIOError as exc:
        logger.error("manifest backup failed, nothing was modified: %s", exc)
        return 1

    if args.json:
        _print_json(report.to_dict())
    return report.exit_code


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stg-release",
        description="Build, smoke-test, package and lint the STG crate.",
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument("-h", "--help", action="store_true", help="Show this help and exit.")
    parser.add_argument("--skip-lint", "--skip-clippy", dest="skip_lint", action="store_true", help="Skip cargo clippy.")
    parser.add_argument("--skip-format", action="store_true", help="Skip cargo fmt --check.")
    parser.add_argument(
        "--allow-warnings",
        action="store_true",
        help="Downgrade lint/format failures to warnings and build without manifest conflict resolution.",
    )
    parser.add_argument("--project-root", default=".", help="Crate root containing Cargo.toml (default: cwd).")
    parser.add_argument("--json", action="store_true", help="Print the stage report as JSON.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def _reject_unknown(extras: Sequence[str]) -> None:
    if extras:
        raise UnknownFlag(extras)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)-7s %(message)s",
        stream=sys.stderr,
    )


def _print_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, indent=2, default=str))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
