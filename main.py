#!/usr/bin/env python3
"""Mod Jar Inspector - Entry Point"""

from __future__ import annotations

import argparse
import faulthandler
import logging
import os
import sys
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path

from errors import ScanAborted
from jar_scanner import default_jobs, scan_jars
from reports import (
    access_widener_report,
    jar_in_jar_report,
    mixin_report,
    raw_report,
    reverse_jar_in_jar_report,
)

__version__ = "0.1.0"

LOG_FILE_ENV = "MOD_JAR_INSPECTOR_LOG_FILE"

_log = logging.getLogger(__name__)

# Handlers installed by the last setup_logging() call, replaced on the next one.
_installed_handlers: list[logging.Handler] = []


def setup_logging(verbose: bool = False, log_file: str | None = None) -> list[logging.Handler]:
    """Send every module's log records to stderr and, optionally, a rotating file.

    Returns the handlers that were installed on the root logger.
    """
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    handlers: list[logging.Handler] = [console]

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=1 * 1024 * 1024,  # 1 MB
            backupCount=2,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s  %(levelname)-8s  %(name)s  %(message)s")
        )
        handlers.append(file_handler)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for old in _installed_handlers:
        root.removeHandler(old)
        old.close()
    _installed_handlers[:] = handlers
    for handler in handlers:
        root.addHandler(handler)
    return handlers


def install_crash_handler(logger: logging.Logger):
    def handle_exception(exc_type, exc_value, exc_tb):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        logger.critical(
            "Unhandled exception:\n%s",
            "".join(traceback.format_exception(exc_type, exc_value, exc_tb)),
        )

    sys.excepthook = handle_exception

    # Hard crashes (segfault, abort) can't go through logging
    faulthandler.enable(sys.stderr, all_threads=True)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _add_filter(parser: argparse.ArgumentParser, help_text: str):
    parser.add_argument("--filter", help=help_text)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mod-jar-inspector",
        description="Inspect the mod jars in a folder: mixins, jar-in-jar trees and access wideners",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--dir",
        default=".",
        help="Folder to read mod jars from (default: current folder)",
    )
    parser.add_argument(
        "--jobs",
        type=_positive_int,
        default=default_jobs(),
        help="Number of jars to read in parallel (env: MOD_JAR_INSPECTOR_JOBS)",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop without a report if any jar cannot be read",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    parser.add_argument(
        "--log-file",
        default=os.environ.get(LOG_FILE_ENV),
        help=f"Also write a debug log to this file (env: {LOG_FILE_ENV})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    mixin_parser = subparsers.add_parser("mixin", help="List mixins in mods in the folder")
    _add_filter(mixin_parser, "Filter the list of mixins using this search string")

    jij_parser = subparsers.add_parser(
        "jar-in-jar", aliases=["jij"], help="Display the Jar in Jar tree for the folder"
    )
    jij_parser.add_argument(
        "-r",
        "--reverse",
        action="store_true",
        help="Display the reverse tree, only showing jars which are contained by other jars",
    )
    _add_filter(jij_parser, "Filter the list of top-level mods (by mod id) using this search string")

    aw_parser = subparsers.add_parser(
        "access-widener", aliases=["aw"], help="Print access widener files in mods in the folder"
    )
    _add_filter(aw_parser, "Filter the files using this search string")

    subparsers.add_parser("raw", help="Print raw traversal output")
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def render(args: argparse.Namespace, results) -> list[str]:
    if args.command == "mixin":
        return mixin_report(results, args.filter)
    if args.command in ("jar-in-jar", "jij"):
        if args.reverse:
            return reverse_jar_in_jar_report(results, args.filter)
        return jar_in_jar_report(results, args.filter)
    if args.command in ("access-widener", "aw"):
        return access_widener_report(results, args.filter)
    if args.command == "raw":
        return raw_report(results)
    raise ValueError(f"Unknown command: {args.command}")


def run(args: argparse.Namespace) -> int:
    directory = Path(args.dir)
    if not directory.is_dir():
        print(f"Not a folder: {directory}", file=sys.stderr)
        return 1

    print("Reading mods in the current folder..." if args.dir == "." else f"Reading mods in {directory}...")

    try:
        report = scan_jars(directory, jobs=args.jobs, fail_fast=args.fail_fast)
    except ScanAborted as exc:
        print(f"Failed to read {exc.file_name}: {exc.cause}", file=sys.stderr)
        return 1

    for failure in report.failures:
        print(f"Failed to read {failure.file_name}: {failure.error}", file=sys.stderr)

    for line in render(args, report.results):
        print(line)
    return 1 if report.failures else 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)
    install_crash_handler(_log)
    _log.info("Starting Mod Jar Inspector %s", __version__)
    return run(args)


if __name__ == "__main__":
    raise SystemExit(main())
