"""
Command-line interface for buildlint.

  buildlint analyze PATH... [--format text|json] [--severity-threshold LEVEL]
                            [--rules A,B] [--extensions .csproj,.props]
                            [--jobs N] [-v]
  buildlint rules

Exit codes: 0 no diagnostic at or above the threshold, 1 otherwise,
2 usage error, 3 internal error, 130 interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
import threading

from buildlint.config import APP_VERSION, settings
from buildlint.core.discovery import discover
from buildlint.core.errors import BuildLintError
from buildlint.core.reporter import combine, exit_code, render_json, render_text
from buildlint.core.rule_engine import RULE_CATALOG, parse_rule_ids
from buildlint.models.rule_models import Severity
from buildlint.workers.scan_worker import CancellationToken, ScanWorker

logger = logging.getLogger("buildlint.cli")

EXIT_INTERNAL_ERROR = 3
EXIT_INTERRUPTED = 130


def configure_logging(verbosity: int) -> None:
    """Warnings by default, -v for progress, -vv for per-file detail. Logs go to stderr."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,
    )


def _comma_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buildlint",
        description=(
            "Find shell-dialect, escaping, quoting, portability and property-ordering "
            "problems in commands embedded in MSBuild project files."
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Analyze build files or directories.")
    analyze.add_argument(
        "paths",
        nargs="+",
        metavar="PATH",
        help="Build files, or directories searched recursively by extension.",
    )
    analyze.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text).",
    )
    analyze.add_argument(
        "--severity-threshold",
        choices=[s.value for s in Severity],
        default=Severity.ERROR.value,
        help="Lowest severity that makes the exit code non-zero (default: error).",
    )
    analyze.add_argument(
        "--rules",
        type=_comma_list,
        default=None,
        help="Comma-separated rule IDs to run (default: all).",
    )
    analyze.add_argument(
        "--extensions",
        type=_comma_list,
        default=None,
        help="Comma-separated file extensions matched in directories "
        f"(default: {','.join(settings.file_extensions)}).",
    )
    analyze.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help=f"Files analyzed in parallel (default: {settings.max_workers}).",
    )
    analyze.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be specified multiple times).",
    )

    subparsers.add_parser("rules", help="List the rules buildlint checks.")

    return parser


def _list_rules() -> int:
    width = max(len(rule_id.value) for rule_id in RULE_CATALOG)
    for rule_id, info in RULE_CATALOG.items():
        print(f"{rule_id.value:<{width}}  {info.severity.value:<7}  {info.title}")
    return 0


def _analyze(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    try:
        rules = parse_rule_ids(args.rules)
    except ValueError as e:
        parser.error(str(e))
    if args.jobs is not None and args.jobs < 1:
        parser.error("--jobs must be at least 1")

    paths = discover(args.paths, args.extensions or settings.file_extensions)
    if not paths:
        logger.warning("No build files found")

    worker = ScanWorker(max_workers=args.jobs)
    token = CancellationToken()
    # First Ctrl+C lets running files finish and skips the rest
    on_main_thread = threading.current_thread() is threading.main_thread()
    if on_main_thread:
        previous = signal.signal(signal.SIGINT, lambda signum, frame: token.cancel())
    try:
        report = asyncio.run(worker.scan_paths(paths, rules, token))
    finally:
        if on_main_thread:
            signal.signal(signal.SIGINT, previous)

    diagnostics = combine(report.files)
    if args.format == "json":
        print(render_json(diagnostics))
    else:
        print(render_text(diagnostics))

    if report.files_skipped:
        print(
            f"buildlint: interrupted, {report.files_skipped} file(s) not analyzed",
            file=sys.stderr,
        )
        return EXIT_INTERRUPTED
    return exit_code(diagnostics, Severity(args.severity_threshold))


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.command == "rules":
        return _list_rules()

    configure_logging(verbosity=args.verbose)

    try:
        return _analyze(args, parser)
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    except BuildLintError as exc:
        print(f"buildlint: internal error: {exc}", file=sys.stderr)
        return EXIT_INTERNAL_ERROR


if __name__ == "__main__":  # pragma: no cover - manual invocation
    raise SystemExit(main())
