"""Failure reporting: workflow commands and YAML summaries."""

from testoutput.reporting.commands import FileLocation, WorkflowCommander
from testoutput.reporting.reporter import Failure, Reporter, ReporterState, output_failures

__all__ = [
    "Failure",
    "FileLocation",
    "Reporter",
    "ReporterState",
    "WorkflowCommander",
    "output_failures",
]
