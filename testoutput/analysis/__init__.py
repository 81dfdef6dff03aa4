"""Outcome resolution over grouped test events."""

from testoutput.analysis.outcome import filter_by_result, result, summarize

__all__ = [
    "filter_by_result",
    "result",
    "summarize",
]
