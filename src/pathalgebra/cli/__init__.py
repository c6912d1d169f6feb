"""Command-line interface for pathalgebra.

This module provides the CLI using Typer with rich output for
user-friendly feedback.

Key features:
- union / subtract / intersect / cut on SVG path data
- Overlap removal for paths and font glyphs
- Quiet mode that writes only path data, for piping
- Detailed error reporting
"""

from pathalgebra.cli.app import cli, main

__all__ = ["cli", "main"]
