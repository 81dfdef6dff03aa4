"""Failure reporting for ``go test -json`` streams.

The Reporter makes a single pass over the input:

1. **Decoding** - lines are decoded into events, optionally mirroring test
   output to a passthrough sink as it arrives.
2. **Aggregating** - events from real tests in real packages are grouped by
   ``package:test`` and reduced to the groups whose outcome is ``fail``.
3. **Emitting** - failures are visited in sorted key order; each one gets
   a best-effort source location and exactly one ``::error`` command.

The number of failures reported is returned so the caller can pick an exit
code. A summary of the run can also be written as YAML.
"""

from __future__ import annotations

import datetime
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, Any, Iterable

import yaml

from testoutput.discovery.locator import (
    DeclarationCache,
    LocatorError,
    SourceLocation,
    find_test,
)
from testoutput.events.decoder import decode_events
from testoutput.events.index import TestEvents
from testoutput.reporting.commands import FileLocation, WorkflowCommander


class ReporterState(str, Enum):
    START = "start"
    DECODING = "decoding"
    AGGREGATING = "aggregating"
    EMITTING = "emitting"
    DONE = "done"


@dataclass
class Failure:
    """One reported test failure."""

    key: str
    package: str
    test: str
    message: str
    location: SourceLocation | None = None
    elapsed: float | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "key": self.key,
            "package": self.package,
            "test": self.test,
            "message": self.message,
        }
        if self.elapsed is not None:
            data["elapsed"] = self.elapsed
        if self.location is not None:
            data["file"] = self.location.file
            data["line"] = self.location.line
        return data


class Reporter:
    """Turns a test event stream into workflow error annotations.

    A Reporter handles exactly one stream; create a new one per run.
    """

    def __init__(
        self,
        commander: WorkflowCommander,
        root_path: str,
        root_pkg: str,
        passthrough: IO[str] | None = None,
        verbose: bool = False,
    ) -> None:
        self.commander = commander
        self.root_path = root_path
        self.root_pkg = root_pkg
        self.passthrough = passthrough
        self.verbose = verbose
        self.state = ReporterState.START
        self.events = TestEvents()
        self.failures: list[Failure] = []
        self._cache = DeclarationCache()

    def run(self, lines: Iterable[str | bytes]) -> int:
        """Process *lines* and emit one error per failing test.

        Returns:
            Number of failing tests reported.

        Raises:
            RuntimeError: If the reporter has already been run.
            SinkWriteError: If the passthrough sink breaks.
        """
        if self.state is not ReporterState.START:
            raise RuntimeError(f"reporter already ran (state: {self.state.value})")

        self.state = ReporterState.DECODING
        self.events = decode_events(lines, self.passthrough)

        self.state = ReporterState.AGGREGATING
        failing = self.events.with_test().with_package().by_key().filter_by_result("fail")

        self.state = ReporterState.EMITTING
        for key in failing.sorted_keys():
            group = failing[key]
            outcome = group.result()
            if outcome is None:
                continue
            failure = Failure(
                key=key,
                package=outcome.package,
                test=outcome.test,
                message=outcome.output,
                location=self._locate(outcome.package, outcome.test),
                elapsed=outcome.elapsed,
            )
            self._emit(failure)
            self.failures.append(failure)

        self.state = ReporterState.DONE
        return len(self.failures)

    def _locate(self, pkg: str, test: str) -> SourceLocation | None:
        try:
            location = find_test(pkg, test, self.root_path, self.root_pkg, cache=self._cache)
        except LocatorError as e:
            if self.verbose:
                print(f"source location: {pkg} {test}: {e}", file=sys.stderr)
            return None
        if location is None and self.verbose:
            print(f"source location: no declaration found for {pkg} {test}", file=sys.stderr)
        return location

    def _emit(self, failure: Failure) -> None:
        file_location = None
        if failure.location is not None and failure.location.line:
            file_location = FileLocation(
                file=failure.location.file,
                line=failure.location.line,
            )
        self.commander.set_error_message(failure.message, file_location)

    def generate_report(self) -> dict[str, Any]:
        """Build a summary of the processed stream.

        Returns:
            Dictionary suitable for YAML or JSON serialization.
        """
        tests = self.events.with_test().with_package().by_key()
        summary: dict[str, Any] = {
            "events": len(self.events),
            "tests": len(tests),
            **tests.summarize(),
            "actions": {
                action: len(group)
                for action, group in sorted(self.events.by_action().items())
            },
        }
        now = datetime.datetime.now(tz=datetime.timezone.utc).isoformat()
        return {
            "report": {
                "generated_at": now,
                "root_pkg": self.root_pkg,
                "summary": summary,
                "failures": [failure.to_dict() for failure in self.failures],
            }
        }

    def write_yaml(self, path: Path) -> None:
        """Write the run summary as YAML, creating parent directories."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(self.generate_report(), f, sort_keys=False)


def output_failures(
    lines: Iterable[str | bytes],
    output: IO[str],
    root_path: str,
    root_pkg: str,
    passthrough: bool = False,
) -> int:
    """Annotate failing tests from *lines* as workflow commands on *output*.

    When *passthrough* is set, test output is mirrored to *output* too.

    Returns:
        Number of failing tests reported.
    """
    commander = WorkflowCommander(printer=output.write)
    reporter = Reporter(
        commander,
        root_path=root_path,
        root_pkg=root_pkg,
        passthrough=output if passthrough else None,
    )
    return reporter.run(lines)
