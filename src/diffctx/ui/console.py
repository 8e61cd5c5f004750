"""Rich-powered console output for diffctx."""

from __future__ import annotations

import logging

from rich.console import Console as RichConsole
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from diffctx import __version__
from diffctx.context.models import SmartContextResult
from diffctx.diff.optimize import NewFileInfo


class Console:
    """Terminal output for diffctx using Rich."""

    def __init__(self, stderr: bool = False) -> None:
        self.console = RichConsole(stderr=stderr)

    def banner(self) -> None:
        """Show the diffctx banner."""
        self.console.print(
            Panel(
                f"[bold cyan]diffctx[/bold cyan] [dim]v{__version__}[/dim]\n"
                "[dim]Diff-aware, budgeted context for LLM prompts[/dim]",
                border_style="cyan",
                padding=(1, 2),
            )
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]i[/blue] {message}")

    def enable_logging(self, verbose: bool = False) -> None:
        """Route diffctx loggers through Rich."""
        handler = RichHandler(console=self.console, show_path=False, markup=False)
        log = logging.getLogger("diffctx")
        log.handlers = [handler]
        log.setLevel(logging.DEBUG if verbose else logging.WARNING)
        log.propagate = False

    def show_result(self, result: SmartContextResult) -> None:
        """Display token accounting for an assembled context."""
        table = Table(title="Smart Context", border_style="cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right", style="cyan")

        budget = f"{result.budget_tokens:,}" if result.is_bounded else "unbounded"
        table.add_row("Total tokens", f"{result.token_count:,}")
        table.add_row("Budget", budget)
        if result.is_bounded:
            table.add_row("Budget used", f"{result.budget_used_pct:.0f}%")
        table.add_row("Excerpt tokens", f"{result.excerpt_tokens:,}")
        table.add_row("Diff tokens", f"{result.diff_tokens:,}")
        table.add_row("Files included", str(result.files_included))
        table.add_row("Files dropped", str(len(result.files_dropped)))
        table.add_row("Files forced", str(len(result.files_forced)))
        table.add_row("Time", f"{result.assembly_time_ms:.1f}ms")

        self.console.print(table)

        for path in result.files_dropped:
            self.console.print(f"  [dim]dropped[/dim] [yellow]{path}[/yellow]")
        for path in result.files_forced:
            self.console.print(f"  [dim]forced[/dim] [magenta]{path}[/magenta]")

    def show_new_files(self, new_files: dict[str, NewFileInfo]) -> None:
        """Display files introduced by a diff."""
        table = Table(title="New Files", border_style="cyan")
        table.add_column("Path", style="bold")
        table.add_column("Lines", justify="right", style="cyan")
        for info in new_files.values():
            table.add_row(info.path, str(info.line_count))
        self.console.print(table)
