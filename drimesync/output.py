"""Console output helpers built on rich."""

from typing import Optional

from rich.console import Console


class OutputFormatter:
    """Formats user-facing messages for the terminal.

    Informational output is suppressed in quiet mode; warnings and errors
    are always shown and go to stderr.
    """

    def __init__(
        self,
        quiet: bool = False,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        self.quiet = quiet
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)

    def print(self, message: str = "") -> None:
        if not self.quiet:
            self.console.print(message, markup=False)

    def info(self, message: str) -> None:
        if not self.quiet:
            self.console.print(message, markup=False)

    def success(self, message: str) -> None:
        if not self.quiet:
            self.console.print(message, style="green", markup=False)

    def warning(self, message: str) -> None:
        self.err_console.print(message, style="yellow", markup=False)

    def error(self, message: str) -> None:
        self.err_console.print(f"Error: {message}", style="bold red", markup=False)

