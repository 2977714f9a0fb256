"""Rich console formatting utilities.

Provides the shared consoles and the Reporter every component writes its
status messages through.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

from dotstrap.core.theme import get_theme

if TYPE_CHECKING:
    from rich.console import RenderableType

logger = logging.getLogger("dotstrap.report")


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


@dataclass
class Reporter:
    """Leveled status writer handed to every component.

    Info and ok messages are suppressed in quiet mode; warnings and errors
    are always shown. Every message is mirrored to the ``dotstrap.report``
    logger so ``--verbose`` runs keep a single ordered trace.

    Attributes:
        quiet: Suppress info/ok output and rendered tables.
        out: Console for regular output.
        err: Console for warnings and errors.
    """

    quiet: bool = False
    out: Console = field(default_factory=lambda: console)
    err: Console = field(default_factory=lambda: err_console)

    def info(self, message: str) -> None:
        """Print an info message."""
        logger.info(message)
        if not self.quiet:
            self.out.print(f"[info]{escape(message)}[/]")

    def ok(self, message: str) -> None:
        """Print a success message."""
        logger.info(message)
        if not self.quiet:
            self.out.print(f"[success]{escape(message)}[/]")

    def warn(self, message: str) -> None:
        """Print a warning message."""
        logger.warning(message)
        self.err.print(f"[warning]Warning:[/] {escape(message)}")

    def error(self, message: str) -> None:
        """Print an error message."""
        logger.error(message)
        self.err.print(f"[error]Error:[/] {escape(message)}")

    def render(self, renderable: RenderableType) -> None:
        """Print a table or other renderable unless quiet."""
        if not self.quiet:
            self.out.print(renderable)


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{escape(message)}[/]")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {escape(message)}")
