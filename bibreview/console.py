"""Console UI for terminal output using Rich."""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from bibreview.document.display import DisplaySurface
from bibreview.errors import ReviewError
from bibreview.models.record import ABSTRACT, FULL_TEXT_URL, REVIEW, Decision, MarkResult, Record


class ConsoleUI:
    """Rich-based console UI for the review session."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize console."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        return self._console

    def info(self, message: str) -> None:
        """Print an info message."""
        self._console.print(message)

    def success(self, message: str) -> None:
        """Print a success message in green."""
        self._console.print(f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        """Print a warning message in yellow."""
        self._console.print(f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        """Print an error message in red."""
        self._console.print(f"[red]Error:[/red] {message}")

    def show_display(self, display: DisplaySurface, record: Record) -> None:
        """Render the display surface for the current record."""
        subtitle = record.get(FULL_TEXT_URL) or None
        self._console.print(
            Panel(
                Text(display.text),
                title=f"[bold]{record.key}[/bold] ({record.entry_type})",
                subtitle=subtitle if isinstance(subtitle, str) else None,
                expand=True,
            )
        )

    def enriched(self, key: str, written: list[str]) -> None:
        """Print which fields enrichment filled in."""
        self._console.print(f"[green]Enriched[/green] {key}: {', '.join(written)}")

    def enrichment_failed(self, key: str, error: ReviewError) -> None:
        """Print a non-fatal enrichment failure."""
        self.warning(f"could not enrich {key}: {error}")

    def marked(self, key: str, decision: Decision, result: MarkResult) -> None:
        """Print the outcome of an accept/reject action."""
        if result is MarkResult.ALREADY_DONE:
            self._console.print(
                f"[yellow]Already reviewed[/yellow]: {key} (no change)"
            )
        else:
            colour = "green" if decision is Decision.ACCEPTED else "red"
            self._console.print(f"[{colour}]{decision.value.capitalize()}[/{colour}]: {key}")

    def saved(self, path: str) -> None:
        self._console.print(f"[dim]Saved {path}[/dim]")

    def display_status(
        self,
        records: list[Record],
        decisions: list[Optional[Decision]],
        reviewer_id: str,
    ) -> None:
        """Display records and review state in a formatted table.

        Args:
            records: Records in document order
            decisions: Decision by ``reviewer_id`` for each record, same order
            reviewer_id: Reviewer the summary counts refer to
        """
        table = Table(title=f"Review status ({reviewer_id})")
        table.add_column("Key", overflow="fold")
        table.add_column("Title", overflow="fold")
        table.add_column("Abstract", justify="center")
        table.add_column("Full text", justify="center")
        table.add_column("Review", overflow="fold")

        for record in records:
            review = record.get(REVIEW)
            table.add_row(
                record.key,
                record.title or "-",
                "✓" if record.get(ABSTRACT) else "-",
                "✓" if record.get(FULL_TEXT_URL) else "-",
                review if isinstance(review, str) and review else "-",
            )

        self._console.print(table)

        if not records:
            self._console.print("No records found.")
            return

        accepted = sum(1 for d in decisions if d is Decision.ACCEPTED)
        rejected = sum(1 for d in decisions if d is Decision.REJECTED)
        pending = len(records) - accepted - rejected
        self._console.print(
            f"[green]Accepted[/green]: {accepted}  "
            f"[red]Rejected[/red]: {rejected}  "
            f"[bold]Unreviewed[/bold]: {pending}"
        )
