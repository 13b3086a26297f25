# src/main.py - v1
"""CLI entry point: release command.

Usage:
    releaseflow release <component> [patch|minor|major] [options]

The plan preview (--dry-run) or the run report is printed to stdout as
JSON; logs go to stderr.
"""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from releaseflow.config.settings import ConfigurationError, Settings, load_settings
from releaseflow.core.errors import PlanError, PreflightError, ReleaseFlowError
from releaseflow.core.models import ReleaseOptions, RunStatus
from releaseflow.logging.logger import setup_logging
from releaseflow.pipeline.release import ReleaseService
from releaseflow.version import __version__

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INCOMPLETE = 2
EXIT_INTERRUPTED = 130

_OK_STATUSES = {RunStatus.SUCCESS, RunStatus.SKIPPED}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_FATAL

    try:
        settings = load_settings()
    except (ConfigurationError, ValidationError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return EXIT_FATAL

    setup_logging(
        level="DEBUG" if args.verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )

    try:
        return args.func(args, settings)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return EXIT_INTERRUPTED
    except PreflightError as exc:
        logger.error("Preflight failed: %s", exc)
        for path in exc.dirty_paths:
            logger.error("  dirty: %s", path)
        if exc.hint:
            logger.error("Hint: %s", exc.hint)
        return EXIT_FATAL
    except PlanError as exc:
        logger.error("Invalid release plan: %s", exc)
        return EXIT_FATAL
    except (ReleaseFlowError, ConfigurationError) as exc:
        logger.error("%s", exc)
        return EXIT_FATAL
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return EXIT_FATAL


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="releaseflow",
        description=f"releaseflow v{__version__} - dependency-ordered release pipelines",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    p_release = subparsers.add_parser(
        "release", help="Plan and run a release for one component",
    )
    p_release.add_argument("component", help="Component id")
    p_release.add_argument(
        "bump", nargs="?", choices=["patch", "minor", "major"], default=None,
        help="Version bump (default: DEFAULT_BUMP setting)",
    )
    p_release.add_argument(
        "--dry-run", action="store_true",
        help="Print the plan without running any step",
    )
    p_release.add_argument("--no-tag", action="store_true", help="Do not create a git tag")
    p_release.add_argument("--no-push", action="store_true", help="Do not push to the remote")
    p_release.add_argument(
        "--no-commit", action="store_true",
        help="Do not create a release commit",
    )
    p_release.add_argument(
        "-m", "--message", dest="commit_message", default=None,
        help="Release commit message ({version} is substituted)",
    )
    p_release.add_argument(
        "--steps", type=Path, default=None,
        help="JSON file with the release steps (overrides the component's steps)",
    )
    p_release.add_argument(
        "-v", "--verbose", action="store_true", default=argparse.SUPPRESS,
        help="Enable debug logging",
    )
    p_release.set_defaults(func=_cmd_release)

    return parser


def _cmd_release(args: argparse.Namespace, settings: Settings) -> int:
    """Execute or preview a release."""
    options = ReleaseOptions(
        bump_type=args.bump or settings.default_bump,
        dry_run=args.dry_run,
        no_tag=args.no_tag,
        no_push=args.no_push,
        no_commit=args.no_commit,
        commit_message=args.commit_message,
    )
    raw_steps = _load_steps_file(args.steps) if args.steps else None

    cancel = _CancelFlag()
    service = ReleaseService(settings, should_cancel=cancel)

    if options.dry_run:
        preview = service.preview(args.component, options, raw_steps)
        print(preview.model_dump_json(indent=2))
        return EXIT_OK

    with cancel.installed():
        report = service.run(args.component, options, raw_steps)
    print(report.model_dump_json(indent=2))

    if report.cancelled:
        return EXIT_INTERRUPTED
    return EXIT_OK if report.status in _OK_STATUSES else EXIT_INCOMPLETE


def _load_steps_file(path: Path) -> list[dict[str, Any]]:
    """Read steps from a JSON list or an object with a "steps" list."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read steps file {path}: {exc}") from exc
    if isinstance(data, dict):
        data = data.get("steps")
    if not isinstance(data, list):
        raise ConfigurationError(f"Steps file {path} must hold a list of steps")
    return data


class _CancelFlag:
    """Set by SIGTERM; polled by the scheduler between steps."""

    def __init__(self) -> None:
        self.requested = False

    def __call__(self) -> bool:
        return self.requested

    def _handle(self, signum: int, frame: object) -> None:
        logger.warning("Received signal %d; stopping after the current step", signum)
        self.requested = True

    def installed(self) -> _SignalScope:
        return _SignalScope(self)


class _SignalScope:
    def __init__(self, flag: _CancelFlag) -> None:
        self._flag = flag
        self._previous: Any = None

    def __enter__(self) -> _CancelFlag:
        try:
            self._previous = signal.signal(signal.SIGTERM, self._flag._handle)
        except ValueError:
            # Not on the main thread; cancellation stays callback-only.
            self._previous = None
        return self._flag

    def __exit__(self, *exc: object) -> None:
        if self._previous is not None:
            signal.signal(signal.SIGTERM, self._previous)


if __name__ == "__main__":
    sys.exit(main())
