"""CLI commands for the trade journal.

This package provides the command-line interface: trade entry, spreadsheet
import, analysis and report export.
"""

from aijournal.cli.main import cli, main

__all__ = ["cli", "main"]
