"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from cobertura.models import CoverageDocument
    from cobertura.summary import CheckResult, CoverageSummary

console = Console()

_GOOD_RATE = 80.0
_FAIR_RATE = 50.0
_MAX_NAME_LENGTH = 50


def _rate_color(percentage: float) -> str:
    """Return a Rich color name for a coverage percentage."""
    if percentage >= _GOOD_RATE:
        return "green"
    if percentage >= _FAIR_RATE:
        return "yellow"
    return "red"


def _format_rate(rate: float) -> str:
    percentage = rate * 100.0
    return f"[{_rate_color(percentage)}]{percentage:.1f}%[/{_rate_color(percentage)}]"


def _truncate(name: str) -> str:
    if len(name) <= _MAX_NAME_LENGTH:
        return name
    return "..." + name[-(_MAX_NAME_LENGTH - 3) :]


class CLIReporter:
    """Rich terminal output for parsed coverage reports."""

    def __init__(self) -> None:
        """Initialize the CLI reporter."""
        self.console = console

    def print_header(self, title: str) -> None:
        """Print a bold header."""
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_document(self, document: CoverageDocument, summary: CoverageSummary) -> None:
        """Print per-package rates followed by declared vs computed totals."""
        table = Table(title="Packages", show_lines=False)
        table.add_column("Package", style="cyan")
        table.add_column("Classes", justify="right")
        table.add_column("Line rate", justify="right")
        table.add_column("Branch rate", justify="right")
        table.add_column("Complexity", justify="right")

        for package in document.packages:
            table.add_row(
                _truncate(package.name or "(default)"),
                str(len(package.classes)),
                _format_rate(package.line_rate),
                _format_rate(package.branch_rate),
                f"{package.complexity:g}",
            )
        self.console.print(table)

        totals = Table(title="Totals", show_header=True)
        totals.add_column("")
        totals.add_column("Declared", justify="right")
        totals.add_column("Computed", justify="right")
        totals.add_row(
            "Lines",
            f"{document.lines_covered}/{document.lines_valid}",
            f"{summary.lines_covered}/{summary.lines_valid}",
        )
        totals.add_row(
            "Branches",
            f"{document.branches_covered}/{document.branches_valid}",
            f"{summary.branches_covered}/{summary.branches_valid}",
        )
        totals.add_row(
            "Line rate", _format_rate(document.line_rate), _format_rate(summary.line_rate)
        )
        totals.add_row(
            "Branch rate", _format_rate(document.branch_rate), _format_rate(summary.branch_rate)
        )
        self.console.print(totals)

    def print_check_result(self, result: CheckResult) -> None:
        """Print the outcome of ``cobertura check``."""
        if not result.rate_compared:
            self.print_warning("Report has no class lines; declared line-rate was not checked")
        if result.passed:
            if result.rate_compared:
                self.print_success(
                    f"Declared line-rate {result.declared_line_rate:.4f} matches computed "
                    f"{result.computed_line_rate:.4f} (tolerance {result.tolerance})"
                )
            else:
                self.print_success("Coverage thresholds met")
            return
        for problem in result.problems:
            self.print_error(problem)


reporter = CLIReporter()
