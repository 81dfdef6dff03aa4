"""Data model for ``go test -json`` events.

One ``TestEvent`` is decoded from each line the test tool emits. The raw
``Action`` string is kept as-is so that unknown actions still group and
round-trip; ``TestEvent.kind`` gives the tagged view used for outcome
resolution.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from enum import Enum

# Go's zero time.Time, used when an event carries no timestamp
ZERO_TIME = datetime.datetime(1, 1, 1, tzinfo=datetime.timezone.utc)

# Package name go test reports for files given on the command line
COMMAND_LINE_PACKAGE = "command-line-arguments"


class Action(str, Enum):
    """Action kinds emitted by ``go test -json``.

    ``UNKNOWN`` stands in for any tag this version does not recognise;
    the original string stays available on ``TestEvent.action``.
    """

    START = "start"
    RUN = "run"
    PAUSE = "pause"
    CONT = "cont"
    PASS = "pass"
    BENCH = "bench"
    FAIL = "fail"
    OUTPUT = "output"
    SKIP = "skip"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> Action:
        """Map a raw action tag to its enum member, or ``UNKNOWN``."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_ACTIONS


# Actions that conclude a test
TERMINAL_ACTIONS: tuple[Action, ...] = (Action.PASS, Action.FAIL)


@dataclass
class TestEvent:
    """A single event from the test2json stream."""

    __test__ = False

    time: datetime.datetime = ZERO_TIME
    action: str = ""
    package: str = ""
    test: str = ""
    elapsed: float | None = None
    output: str = ""

    @property
    def kind(self) -> Action:
        return Action.parse(self.action)

    @property
    def key(self) -> str:
        """Identity of the test this event belongs to."""
        return f"{self.package}:{self.test}"
