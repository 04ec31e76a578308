"""Opterra command-line interface."""

from opterra.cli.main import app

__all__ = ["app"]
