"""
Rich logging for docstamp.

Provides colourful console logging and CLI console helpers using the rich
library.
"""

import logging
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table


class RichLogger:
    """
    Console helpers for the command-line interface.
    """

    def __init__(self, name: str = "docstamp", console: Optional[Console] = None):
        """
        Initialize rich logger.

        Args:
            name: Logger name
            console: Console to print to (a stderr console by default)
        """
        self.name = name
        self.console = console or Console(stderr=True)

    def success(self, message: str):
        """Print success message."""
        self.console.print(f"[green]✓ {message}[/green]")

    def failure(self, message: str):
        """Print failure message."""
        self.console.print(f"[red]✗ {message}[/red]")

    def progress(self) -> Progress:
        """Create a progress bar bound to this console."""
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=self.console,
            transient=True,
        )

    def panel(self, title: str, content: str, style: str = "blue"):
        """Display content in a rich panel."""
        self.console.print(Panel(content, title=title, style=style))

    def table(self, title: str, data: Dict[str, Any]):
        """Display key/value data in a rich table."""
        table = Table(title=title)
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="magenta")
        for key, value in data.items():
            table.add_row(str(key), str(value))
        self.console.print(table)


def setup_logging(level: str = "INFO", use_rich: bool = True, console: Optional[Console] = None):
    """
    Setup logging for the application.

    Args:
        level: Log level
        use_rich: Whether to use rich logging
        console: Console the rich handler writes to
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    if use_rich:
        handler: logging.Handler = RichHandler(
            console=console or Console(stderr=True),
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
    root_logger.addHandler(handler)
    logging.getLogger(__name__).debug(f"Logging initialized at {level} level (rich={use_rich})")
