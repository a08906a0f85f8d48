#!/usr/bin/env python3
"""
Colored terminal output for the wasmbuild command line.

Uses the Rich library for consistent formatting across Windows, macOS, and Linux.
"""

import sys
from typing import Optional

from rich.console import Console
from rich.tree import Tree


class ColorOutput:
    """Colored status lines on stdout, diagnostics on stderr."""

    def __init__(self, force_terminal: Optional[bool] = None):
        self.console = Console(force_terminal=force_terminal, highlight=False)
        self.err_console = Console(
            stderr=True, force_terminal=force_terminal, highlight=False
        )

    def print_green(self, message: str) -> None:
        self.console.print(message, style="green", markup=False)

    def print_yellow(self, message: str) -> None:
        self.console.print(message, style="yellow", markup=False)

    def print_red(self, message: str) -> None:
        self.err_console.print(message, style="red", markup=False)

    def print_tree(self, tree: Tree) -> None:
        self.console.print(tree)

    def print_raw(self, text: str, stderr: bool = False) -> None:
        """Print tool output exactly as received (no markup, no highlighting)."""
        stream = sys.stderr if stderr else sys.stdout
        stream.write(text)
        if text and not text.endswith("\n"):
            stream.write("\n")
        stream.flush()


_color_output: Optional[ColorOutput] = None


def get_color_output() -> ColorOutput:
    """Get the shared ColorOutput instance"""
    global _color_output
    if _color_output is None:
        _color_output = ColorOutput()
    return _color_output
