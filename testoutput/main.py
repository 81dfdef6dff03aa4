"""Entry point for the testoutput command.

Reads ``go test -json`` output from stdin and prints a GitHub Actions
``::error`` command for every failing test, pointing at the test's source
declaration when it can be found. Exits non-zero when any test failed.

Example::

    go test -json ./... | testoutput --root-pkg github.com/owner/repo
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from testoutput.config import DEFAULT_CONFIG_PATH, TestOutputConfig
from testoutput.events.decoder import SinkWriteError
from testoutput.reporting.commands import WorkflowCommander
from testoutput.reporting.reporter import Reporter


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Annotate failing go tests as GitHub Actions errors"
    )
    parser.add_argument(
        "--root-path",
        type=str,
        default=None,
        help="Root path for test packages (default: .)",
    )
    parser.add_argument(
        "--root-pkg",
        type=str,
        default=None,
        help="Import path of the package at --root-path (required unless set in the config file)",
    )
    parser.add_argument(
        "--passthrough",
        action="store_true",
        default=None,
        help="Write test output to stdout",
    )
    parser.add_argument(
        "--config-file",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to the JSON config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Path to write a YAML summary of the run",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Explain on stderr why a failure has no source location",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    config = TestOutputConfig.load(args.config_file).with_overrides(
        root_path=args.root_path,
        root_pkg=args.root_pkg,
        passthrough=args.passthrough,
        report=args.report,
    )
    if not config.root_pkg:
        print("Error: --root-pkg is required", file=sys.stderr)
        return 2
    root_pkg = config.root_pkg
    root_path = os.path.abspath(config.root_path)
    passthrough = config.passthrough
    report_path = config.report

    stdout = sys.stdout
    reporter = Reporter(
        WorkflowCommander(printer=stdout.write),
        root_path=root_path,
        root_pkg=root_pkg,
        passthrough=stdout if passthrough else None,
        verbose=args.verbose,
    )
    try:
        failed = reporter.run(sys.stdin.buffer)
    except SinkWriteError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    stdout.flush()

    if report_path is not None:
        reporter.write_yaml(report_path)
        print(f"Report written to: {report_path}", file=sys.stderr)

    if args.verbose:
        print(f"testoutput: {failed} failing test(s)", file=sys.stderr)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
