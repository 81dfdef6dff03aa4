"""Annotate failing ``go test -json`` results as GitHub Actions errors."""

__version__ = "0.1.0"
