"""Outcome resolution for a single test's events.

A test's outcome is the first terminal event (``pass`` or ``fail``) seen in
arrival order. Tests that never reached a terminal event have no outcome
and are never reported as failures.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence, TypeVar

from testoutput.events.model import TestEvent

_Group = TypeVar("_Group", bound=Sequence[TestEvent])


def result(events: Iterable[TestEvent]) -> TestEvent | None:
    """Return the first terminal event, or None if the test never finished."""
    for event in events:
        if event.kind.is_terminal:
            return event
    return None


def filter_by_result(
    groups: Mapping[str, _Group],
    desired_result: str,
) -> dict[str, _Group]:
    """Keep only the groups whose outcome action equals *desired_result*.

    Groups without an outcome are dropped. Iteration order of *groups* is
    preserved.
    """
    out: dict[str, _Group] = {}
    for key, events in groups.items():
        event = result(events)
        if event is None:
            continue
        if event.action == desired_result:
            out[key] = events
    return out


def summarize(groups: Mapping[str, Sequence[TestEvent]]) -> dict[str, int]:
    """Count outcomes across keyed groups.

    Returns:
        Dict with ``passed``, ``failed`` and ``unknown`` counts.
    """
    counts = {"passed": 0, "failed": 0, "unknown": 0}
    for events in groups.values():
        event = result(events)
        if event is None:
            counts["unknown"] += 1
        elif event.action == "fail":
            counts["failed"] += 1
        else:
            counts["passed"] += 1
    return counts
