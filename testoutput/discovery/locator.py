"""Locate the source declaration of a Go test function.

Maps a ``(package import path, test name)`` pair to the file and line of
its ``func TestXxx`` declaration by scanning the package directory under a
known root. Lookup is best effort: table-driven or generated test names
simply have no declaration and resolve to ``None``.
"""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass

from testoutput.discovery.go_source import FuncDecl, GoSyntaxError, scan_source


class LocatorError(Exception):
    """Base class for source location failures."""


class PackageNotUnderRoot(LocatorError):
    """The package import path is not below the root import path."""


class DirectoryUnavailable(LocatorError):
    """The package directory is missing or not a directory."""


class ParseFailed(LocatorError):
    """A Go file in the package directory could not be read or parsed."""


@dataclass(frozen=True)
class SourceLocation:
    """File (relative to the report root) and 1-based line of a test."""

    file: str
    line: int


# (path of the file, declarations in it), in file name order
DirectoryDecls = list[tuple[str, list[FuncDecl]]]


def package_dir(pkg: str, root_path: str, root_pkg: str) -> str:
    """Compute the directory holding *pkg*.

    Raises:
        PackageNotUnderRoot: If *pkg* does not start with *root_pkg*.
    """
    if not pkg.startswith(root_pkg):
        raise PackageNotUnderRoot(f"{root_pkg} does not contain {pkg}")
    rel_parts = [part for part in pkg[len(root_pkg):].split("/") if part]
    return os.path.join(root_path, *rel_parts)


def parse_dir(directory: str) -> DirectoryDecls:
    """Scan every ``.go`` file directly inside *directory*.

    Raises:
        DirectoryUnavailable: If *directory* cannot be stat'ed or is not a
            directory.
        ParseFailed: If any Go file fails to read or parse.
    """
    try:
        dir_stat = os.stat(directory)
    except OSError as e:
        raise DirectoryUnavailable(f"failed statting directory: {e}") from e
    if not stat.S_ISDIR(dir_stat.st_mode):
        raise DirectoryUnavailable(f"not a directory: {directory!r}")

    try:
        names = sorted(os.listdir(directory))
    except OSError as e:
        raise ParseFailed(f"failed parsing directory: {e}") from e

    decls: DirectoryDecls = []
    for name in names:
        path = os.path.join(directory, name)
        if not name.endswith(".go") or os.path.isdir(path):
            continue
        try:
            with open(path, encoding="utf-8") as f:
                text = f.read()
            go_file = scan_source(text)
        except (OSError, UnicodeDecodeError, GoSyntaxError) as e:
            raise ParseFailed(f"failed parsing directory: {path}: {e}") from e
        decls.append((path, go_file.funcs))
    return decls


class DeclarationCache:
    """Parsed declarations per directory, for reuse within one run.

    Parse failures are cached as well and re-raised on later lookups.
    """

    def __init__(self) -> None:
        self._entries: dict[str, DirectoryDecls | LocatorError] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, directory: str) -> DirectoryDecls:
        key = os.path.abspath(directory)
        if key not in self._entries:
            try:
                self._entries[key] = parse_dir(directory)
            except LocatorError as e:
                self._entries[key] = e
                raise
        entry = self._entries[key]
        if isinstance(entry, LocatorError):
            raise entry
        return entry


def report_relative_path(path: str, root_path: str) -> str:
    """Express *path* relative to *root_path* for workflow annotations.

    The relative path is placed one level up and the first ``.`` stripped,
    so ``pkg/foo_test.go`` becomes ``./pkg/foo_test.go``.
    """
    rel = os.path.relpath(path, root_path)
    joined = os.path.join("..", rel)
    if joined.startswith("."):
        joined = joined[1:]
    return joined


def find_test(
    pkg: str,
    test_name: str,
    root_path: str,
    root_pkg: str,
    cache: DeclarationCache | None = None,
) -> SourceLocation | None:
    """Find the declaration of a test function.

    Args:
        pkg: Import path of the package the test ran in.
        test_name: Test name; a ``/subtest`` suffix is ignored.
        root_path: Filesystem path corresponding to *root_pkg*.
        root_pkg: Import path of the module or package at *root_path*.
        cache: Optional per-run cache of parsed directories.

    Returns:
        The location of the declaration, or ``None`` if no top-level func
        in the package directory has that name. When several files declare
        it, the last one in file name order wins.

    Raises:
        PackageNotUnderRoot: *pkg* is not below *root_pkg*.
        DirectoryUnavailable: The package directory is missing.
        ParseFailed: The package directory could not be parsed.
    """
    directory = package_dir(pkg, root_path, root_pkg)
    decls = cache.get(directory) if cache is not None else parse_dir(directory)

    leaf = test_name.split("/", 1)[0]
    found_file = ""
    found_line = 0
    for path, funcs in decls:
        for decl in funcs:
            if decl.name == leaf:
                found_file = path
                found_line = decl.line

    if not found_file:
        return None
    return SourceLocation(
        file=report_relative_path(found_file, root_path),
        line=found_line,
    )
