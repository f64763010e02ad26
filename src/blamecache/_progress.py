"""Progress indicator implementations.

This module provides concrete implementations of the ProgressIndicator
protocol.
"""

from pathlib import Path  # noqa: TC003 - Used in runtime type annotations
from typing import final

from rich.console import Console
from rich.style import Style
from rich.text import Text


@final
class NullProgressIndicator:
    """Progress indicator that ignores all signals."""

    __slots__ = ()

    def start_progress(self, file_name: Path) -> None:
        """Ignore the signal."""


@final
class ConsoleProgressIndicator:
    """Progress indicator that prints one line per blame request.

    Formats requests as `[blame] path` using a Rich console.
    """

    __slots__ = ("_console", "_style")

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the indicator.

        Args:
            console: Rich Console instance for output. If None, creates one
                writing to stderr.
        """
        self._console = console or Console(stderr=True)
        self._style = Style(dim=True)

    def start_progress(self, file_name: Path) -> None:
        """Print a line for a blame request.

        Args:
            file_name: Path of the file being blamed.
        """
        text = Text()
        _ = text.append("[blame]", style=Style(color="blue", bold=True))
        _ = text.append(" ")
        _ = text.append(str(file_name), style=self._style)
        self._console.print(text)
