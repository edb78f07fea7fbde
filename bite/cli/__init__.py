"""Command line interface."""

from __future__ import annotations

from bite.cli.main import main

__all__ = ["main"]
