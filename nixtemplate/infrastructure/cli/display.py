import logging
import sys
from typing import Any, List, Optional, Tuple

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from nixtemplate.domain.interfaces.user_interface import UserInterface
from nixtemplate.domain.models.common import RenderedOutput

logger = logging.getLogger(__name__)

class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library.

    Rendered output goes to stdout unstyled; every other message goes to a
    stderr console so that output can be redirected into a .nix file.
    """

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console used for messages."""
        self._console = console or Console(stderr=True)

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_output(self, output: RenderedOutput, **kwargs: Any) -> None:
        """Writes the rendered template to stdout as-is.

        Args:
            output: The rendered template.
            **kwargs: ``newline`` (default True) appends a trailing newline.
        """
        newline = kwargs.get("newline", True)
        sys.stdout.write(str(output))
        if newline:
            sys.stdout.write("\n")
        sys.stdout.flush()
        logger.debug(f"display_output wrote {len(str(output))} characters")

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message.

        Args:
            info_message: The informational message to display.
        """
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message.

        Args:
            warning_message: The warning message to display.
        """
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_functions(self, functions: List[Tuple[str, str]]) -> None:
        """Displays the available template functions as a table."""
        table = Table(title="Available functions", box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("Function", style="bold cyan", no_wrap=True)
        table.add_column("Description")
        for signature, doc in functions:
            table.add_row(signature, doc)
        self.console.print(table)
