"""Command-line interface handlers."""

import argparse
import logging
import sys
import webbrowser
from pathlib import Path
from typing import Optional

from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Prompt

from bibreview.config import ReviewContext, Settings
from bibreview.console import ConsoleUI
from bibreview.errors import ReviewError
from bibreview.models.record import FULL_TEXT_URL, Decision
from bibreview.services.review_navigator import NavigationResult, ReviewNavigator
from bibreview.services.site_fetchers import PageClient, SiteFetcherRegistry

logger = logging.getLogger(__name__)

REVIEW_KEYS = {
    "n": "next",
    "p": "prev",
    "a": "accept",
    "r": "reject",
    "o": "open full text",
    "q": "quit",
}


class BibReviewCLI:
    """CLI application for bibreview."""

    def __init__(self, settings: Optional[Settings] = None, ui: Optional[ConsoleUI] = None):
        """Initialize CLI with settings.

        Args:
            settings: Application settings (loads from .metadata if not provided)
            ui: Console UI (a default Rich console if not provided)
        """
        self.settings = settings or Settings.load()
        self.ui = ui or ConsoleUI()
        self.context = ReviewContext.from_settings(self.settings)
        registry = SiteFetcherRegistry(
            PageClient(self.settings.contact_email, self.settings.request_timeout)
        )
        self.navigator = ReviewNavigator(
            self.context,
            registry=registry,
            report_unsupported=self.settings.report_unsupported,
        )

    def _save(self) -> None:
        document = self.context.document
        if self.settings.autosave and document.modified:
            path = document.save()
            self.ui.saved(str(path))

    def _show(self, result: NavigationResult) -> None:
        if result.written:
            self.ui.enriched(result.record.key, result.written)
            self._save()
        if result.enrichment_error is not None:
            self.ui.enrichment_failed(result.record.key, result.enrichment_error)
        self.ui.show_display(self.navigator.display, result.record)

    def cmd_review(self, skip_reviewed: bool = False, start: Optional[str] = None) -> None:
        """Interactive review session.

        Args:
            skip_reviewed: Skip records this reviewer has already marked
            start: Citation key to start at (default: first record)
        """
        advance = self.navigator.next_unreviewed if skip_reviewed else self.navigator.next
        try:
            self._show(self.navigator.goto(start) if start else advance())
        except ReviewError as e:
            self.ui.error(str(e))
            return

        help_text = "  ".join(f"[bold]{k}[/bold]={v}" for k, v in REVIEW_KEYS.items())
        while True:
            self.ui.info(help_text)
            choice = Prompt.ask("Action", choices=list(REVIEW_KEYS), default="n")
            if choice == "q":
                break
            try:
                if choice == "n":
                    self._show(advance())
                elif choice == "p":
                    self._show(self.navigator.prev())
                elif choice in ("a", "r"):
                    decision = Decision.ACCEPTED if choice == "a" else Decision.REJECTED
                    self._mark_current(decision)
                elif choice == "o":
                    self._open_full_text()
            except ReviewError as e:
                self.ui.error(str(e))

    def _mark_current(self, decision: Decision) -> None:
        if decision is Decision.ACCEPTED:
            result = self.navigator.accept_current()
        else:
            result = self.navigator.reject_current()
        record = self.navigator.current()
        self.ui.marked(record.key, decision, result)
        self._save()
        self.ui.show_display(self.navigator.display, record)

    def _open_full_text(self) -> None:
        url = self.navigator.current().get(FULL_TEXT_URL)
        if not isinstance(url, str) or not url:
            self.ui.warning("current record has no full-text URL")
            return
        webbrowser.open(url)

    def cmd_mark(self, key: str, decision: Decision) -> None:
        """Accept or reject one record by citation key."""
        self.navigator.goto(key)
        self._mark_current(decision)

    def cmd_enrich(self) -> None:
        """Enrich every record that is missing an abstract or full-text URL."""
        enriched = 0
        failed = 0
        with Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            console=self.ui.console,
        ) as progress:
            task = progress.add_task("Enriching records...", total=None)
            for record, written, error in self.navigator.enricher.enrich_all():
                if written:
                    enriched += 1
                if error is not None:
                    failed += 1
                    progress.console.print(f"[yellow]Warning:[/yellow] {record.key}: {error}")
                progress.update(
                    task,
                    description=f"{record.key}: {enriched} enriched, {failed} failed",
                )
        self._save()
        self.ui.success(f"Done. Records enriched: {enriched}, failed: {failed}")

    def cmd_status(self) -> None:
        """Show review state of every record."""
        reviewer_id = self.context.reviewer_id
        records = list(self.navigator.records())
        decisions = [
            self.navigator.policy.decision_by(record, reviewer_id) for record in records
        ]
        self.ui.display_status(records, decisions, reviewer_id)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="bibreview",
        description="Systematic literature review over a BibTeX file",
    )
    parser.add_argument("--bib", type=Path, help="Bibliography file to review")
    parser.add_argument("--reviewer", help="Reviewer ID recorded in the review field")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # review command
    review_parser = subparsers.add_parser("review", help="Interactive review session")
    review_parser.add_argument(
        "--skip-reviewed",
        action="store_true",
        help="Skip records you have already accepted or rejected",
    )
    review_parser.add_argument("--start", metavar="KEY", help="Start at this record")

    # accept / reject commands
    for name in ("accept", "reject"):
        mark_parser = subparsers.add_parser(name, help=f"Mark a record as {name}ed")
        mark_parser.add_argument("key", help="Citation key of the record")

    # enrich command
    subparsers.add_parser("enrich", help="Fetch missing abstracts and full-text links")

    # status command
    subparsers.add_parser("status", help="Show review status of all records")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    settings = Settings.load()
    if args.bib:
        settings.update(bib_path=args.bib)
    if args.reviewer:
        settings.update(reviewer_id=args.reviewer)

    ui = ConsoleUI()
    try:
        cli = BibReviewCLI(settings, ui)
        if args.command == "review":
            cli.cmd_review(skip_reviewed=args.skip_reviewed, start=args.start)
        elif args.command == "accept":
            cli.cmd_mark(args.key, Decision.ACCEPTED)
        elif args.command == "reject":
            cli.cmd_mark(args.key, Decision.REJECTED)
        elif args.command == "enrich":
            cli.cmd_enrich()
        elif args.command == "status":
            cli.cmd_status()
    except (ReviewError, OSError, ValueError) as e:
        ui.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
