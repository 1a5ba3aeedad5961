"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output.
Converted documents are printed verbatim; status lines and summaries use
Rich markup. Supports verbosity levels and the --no-color flag.
"""

from typing import List

from rich.console import Console
from rich.table import Table

from src.editors.models import ContentMetadata
from src.editors.structured_content_handler import ContentStatistics, ValidationReport


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Document converted")
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(
            force_terminal=not no_color,
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

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    def print(self, message: str) -> None:
        self.console.print(message)

    def print_document(self, text: str) -> None:
        """Print converted content exactly as produced.

        Markup is disabled because markdown links look like Rich tags, and
        soft wrapping keeps long lines intact.

        Args:
            text: Rendered document
        """
        self.console.print(text, markup=False, highlight=False, soft_wrap=True)

    def print_stats(self, statistics: ContentStatistics, metadata: ContentMetadata) -> None:
        """Display document statistics as a table.

        Args:
            statistics: Block-level counts from the structured handler
            metadata: Text-level metadata from the content parser
        """
        table = Table(title="Document Statistics", show_header=False)
        table.add_column("Metric")
        table.add_column("Value", justify="right")

        table.add_row("Blocks", str(statistics.block_count))
        table.add_row("Words", str(statistics.word_count))
        table.add_row("Characters", str(statistics.character_count))
        table.add_row("Estimated tokens", str(metadata.estimated_tokens))
        table.add_row("Links", str(statistics.link_count))
        table.add_row("Images", str(statistics.image_count))
        for block_type, count in sorted(statistics.block_types.items()):
            table.add_row(f"  {block_type}", str(count))

        self.console.print(table)

    def print_validation(self, report: ValidationReport) -> None:
        """Display validation result with color coding.

        Args:
            report: Validation report for the document
        """
        self.console.print("\n[bold]Validation:[/bold]")

        for error in report.errors:
            self.console.print(f"  [red]✗[/red] {error}")

        for warning in report.warnings:
            self.console.print(f"  [yellow]⚠[/yellow] {warning}")

        if report.is_valid:
            self.console.print("\n[green]Document structure is valid[/green]")
        else:
            self.console.print(f"\n[red]Document is invalid ({len(report.errors)} error(s))[/red]")

    def print_preservation_summary(self, preserved_count: int, warnings: List[str]) -> None:
        """Display what survived post-processing of an AI response.

        Args:
            preserved_count: Rich-text elements present in the processed text
            warnings: Elements that could not be placed
        """
        self.console.print("\n[bold]Formatting Preservation:[/bold]")
        self.console.print(f"  [green]✓[/green] Preserved: {preserved_count} element(s)")

        for warning in warnings:
            self.console.print(f"  [yellow]⚠[/yellow] {warning}")
