"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
status messages, the sync summary table and the list of content records
that failed to process. Supports verbosity levels and --no-color.
"""

from contextlib import contextmanager
from typing import Iterator, List

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.spinner import Spinner
from rich.table import Table

from src.content_sync.models import StoredContent, SyncSummary

# Characters of raw content shown per error item
PREVIEW_LENGTH = 200


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1)
        >>> handler.print_summary(summary)
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        self.verbosity = verbosity
        self.console = Console(
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def print(self, message: str) -> None:
        self.console.print(message)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner while a single operation runs."""
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield

    def print_summary(self, summary: SyncSummary) -> None:
        """Display the sync summary with color coding."""
        table = Table(title="Content sync", show_header=False, box=None)
        table.add_column("metric")
        table.add_column("value", justify="right")
        table.add_row("Files", str(summary.total_files))
        table.add_row("[green]Successful[/green]", str(summary.successful))
        error_style = "red" if summary.errors else "green"
        table.add_row(f"[{error_style}]Errors[/{error_style}]", str(summary.errors))
        table.add_row("Duration", f"{summary.duration_ms} ms")
        for content_type, count in sorted(summary.content_types.items()):
            table.add_row(f"  {content_type}", str(count))
        self.console.print(table)

        if summary.errors:
            self.warning(f"{summary.errors} file(s) have errors; run 'content-sync errors' for details")
        else:
            self.success("All content processed successfully")

    def print_error_items(self, items: List[StoredContent]) -> None:
        """List committed records whose processing failed."""
        if not items:
            self.success("No content errors")
            return

        for item in items:
            attrs = item.attributes
            errors = attrs.parse_errors or {}
            self.console.print(
                f"[red]✗[/red] [bold]{escape(attrs.slug)}[/bold] ({attrs.content_type.value}) "
                f"{escape(str(errors.get('error_type', 'Error')))}: {escape(str(errors.get('message', '')))}"
            )
            line = errors.get('line')
            if line is not None:
                column = errors.get('column')
                position = f"line {line}" + (f", column {column}" if column is not None else "")
                self.console.print(f"    at {position}")
            for violation in errors.get('violations') or []:
                attribute = violation.get('attribute')
                where = f"<{violation.get('element')}>" + (f" {attribute}" if attribute else "")
                self.console.print(f"    {violation.get('type')}: {where}")
            if self.verbosity >= 1 and attrs.raw_content:
                preview = attrs.raw_content[:PREVIEW_LENGTH].replace("\n", " ")
                self.console.print(f"    [dim]{escape(preview)}[/dim]")
