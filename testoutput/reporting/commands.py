"""GitHub Actions workflow command emitter.

Formats ``::command key=value::message`` lines as described in
https://docs.github.com/en/actions/reference/workflow-commands-for-github-actions
and hands each one to a printer callable, so callers decide where the
commands go.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class FileLocation:
    """Optional file position attached to debug/warning/error messages."""

    file: str
    line: int
    col: int = 0


def escape_data(value: str) -> str:
    """Escape a command message."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def escape_property(value: str) -> str:
    """Escape a command property value."""
    return escape_data(value).replace(":", "%3A").replace(",", "%2C")


def _stdout_printer(text: str) -> None:
    sys.stdout.write(text)


class WorkflowCommander:
    """Issues workflow commands through *printer*.

    Args:
        printer: Called with each fully formatted command line, including
            the trailing newline. Defaults to writing to stdout.
    """

    def __init__(self, printer: Callable[[str], None] | None = None) -> None:
        self.printer = printer or _stdout_printer

    def _emit(self, text: str) -> None:
        self.printer(text)

    def _log(self, level: str, msg: str, location: FileLocation | None) -> None:
        if location is None:
            self._emit(f"::{level}::{escape_data(msg)}\n")
            return
        self._emit(
            f"::{level} file={escape_property(location.file)},"
            f"line={location.line},col={location.col}::{escape_data(msg)}\n"
        )

    def set_error_message(self, msg: str, location: FileLocation | None = None) -> None:
        """Create an error annotation, optionally tied to a file position.

        *msg* is escaped (``%``, CR and LF become ``%25``, ``%0D`` and ``%0A``) so
        multi-line test output stays inside a single annotation.
        """
        self._log("error", msg, location)

    def set_warning_message(self, msg: str, location: FileLocation | None = None) -> None:
        """Create a warning annotation, optionally tied to a file position."""
        self._log("warning", msg, location)

    def set_debug_message(self, msg: str, location: FileLocation | None = None) -> None:
        """Print a debug message (visible with ACTIONS_STEP_DEBUG)."""
        self._log("debug", msg, location)

    def set_output_parameter(self, name: str, value: str) -> None:
        self._emit(f"::set-output name={escape_property(name)}::{escape_data(value)}\n")

    def set_environment_variable(self, name: str, value: str) -> None:
        self._emit(f"::set-env name={escape_property(name)}::{escape_data(value)}\n")

    def add_system_path(self, path: str) -> None:
        self._emit(f"::add-path::{escape_data(path)}\n")

    def mask_value_in_log(self, value: str) -> None:
        self._emit(f"::add-mask::{escape_data(value)}\n")

    def stop_workflow_commands(self, end_token: str) -> Callable[[], None]:
        """Stop command processing until the returned callable is invoked."""
        self._emit(f"::stop-commands::{end_token}\n")

        def resume() -> None:
            self._emit(f"::{end_token}::\n")

        return resume
