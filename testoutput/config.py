"""Configuration file management.

Reads the optional ``.testoutput_config`` JSON file that stores defaults
for the command-line options, so a repository can pin its root import path
once instead of repeating it in every workflow step. Command-line flags
always win over values from the file.
"""

from __future__ import annotations

import dataclasses
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = Path(".testoutput_config")


@dataclass(frozen=True)
class TestOutputConfig:
    """Effective settings for one run.

    Attributes:
        root_path: Filesystem path of the root package.
        root_pkg: Import path of the package at root_path (None = unset).
        passthrough: Whether test output is mirrored to stdout.
        report: Where to write the YAML summary (None = no summary).
    """

    __test__ = False

    root_path: str = "."
    root_pkg: str | None = None
    passthrough: bool = False
    report: Path | None = None

    @classmethod
    def load(cls, path: Path | None) -> TestOutputConfig:
        """Read settings from *path*, falling back to defaults.

        A missing file gives the defaults silently. A file that is not a
        JSON object is reported on stderr and ignored.
        """
        if path is None or not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            print(f"Warning: ignoring config file {path}: {e}", file=sys.stderr)
            return cls()
        if not isinstance(data, dict):
            print(f"Warning: ignoring config file {path}: not a JSON object",
                  file=sys.stderr)
            return cls()
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestOutputConfig:
        """Build a config from decoded JSON, ignoring unknown keys."""
        root_path = data.get("root_path")
        root_pkg = data.get("root_pkg")
        report = data.get("report")
        return cls(
            root_path=str(root_path) if root_path is not None else ".",
            root_pkg=str(root_pkg) if root_pkg else None,
            passthrough=bool(data.get("passthrough", False)),
            report=Path(report) if report is not None else None,
        )

    def with_overrides(self, **values: Any) -> TestOutputConfig:
        """Return a copy where every non-None value in *values* replaces ours."""
        return dataclasses.replace(
            self, **{name: value for name, value in values.items() if value is not None}
        )
