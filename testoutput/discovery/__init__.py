"""Static lookup of Go test declarations."""

from testoutput.discovery.locator import (
    DeclarationCache,
    DirectoryUnavailable,
    LocatorError,
    PackageNotUnderRoot,
    ParseFailed,
    SourceLocation,
    find_test,
)

__all__ = [
    "DeclarationCache",
    "DirectoryUnavailable",
    "LocatorError",
    "PackageNotUnderRoot",
    "ParseFailed",
    "SourceLocation",
    "find_test",
]
