"""In-memory index over the events of one test run.

``TestEvents`` is an ordered list of events with chainable projections;
every projection returns a new collection and leaves the receiver alone,
so they compose freely::

    failing = events.with_test().with_package().by_key().filter_by_result("fail")
"""

from __future__ import annotations

from typing import Callable

from testoutput.analysis import outcome
from testoutput.events.model import COMMAND_LINE_PACKAGE, Action, TestEvent


class TestEvents(list):
    """Ordered collection of TestEvent objects."""

    __test__ = False

    def _group(self, key_fn: Callable[[TestEvent], str]) -> TestEventsMap:
        groups = TestEventsMap()
        for event in self:
            groups.setdefault(key_fn(event), TestEvents()).append(event)
        return groups

    def by_action(self) -> TestEventsMap:
        """Group events by their raw action string."""
        return self._group(lambda ev: ev.action)

    def by_key(self) -> TestEventsMap:
        """Group events by ``package:test`` identity."""
        return self._group(lambda ev: ev.key)

    def by_package(self) -> TestEventsMap:
        """Group events by package import path."""
        return self._group(lambda ev: ev.package)

    def with_test(self) -> TestEvents:
        """Events that belong to a test rather than a whole package."""
        return TestEvents(ev for ev in self if ev.test)

    def with_package(self) -> TestEvents:
        """Events from real packages.

        Drops events with no package and those from ad-hoc
        ``command-line-arguments`` runs, which have no source directory.
        """
        return TestEvents(
            ev for ev in self
            if ev.package and ev.package != COMMAND_LINE_PACKAGE
        )

    def sorted_by_time(self) -> TestEvents:
        """Stable ascending sort by timestamp."""
        return TestEvents(sorted(self, key=lambda ev: ev.time))

    def output(self) -> str:
        """Captured output text, reassembled in timestamp order."""
        chunks = TestEvents(ev for ev in self if ev.kind is Action.OUTPUT)
        return "".join(ev.output for ev in chunks.sorted_by_time())

    def result(self) -> TestEvent | None:
        """The terminal pass/fail event, or None if there is none."""
        return outcome.result(self)


class TestEventsMap(dict):
    """Mapping of a grouping key to the TestEvents sharing it."""

    __test__ = False

    def sorted_keys(self) -> list[str]:
        return sorted(self)

    def filter_by_result(self, desired_result: str) -> TestEventsMap:
        """Keep only groups whose outcome action is *desired_result*."""
        return TestEventsMap(outcome.filter_by_result(self, desired_result))

    def summarize(self) -> dict[str, int]:
        return outcome.summarize(self)
