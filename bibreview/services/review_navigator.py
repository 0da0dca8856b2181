"""Cursor-driven walk through the records of a document."""

import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional

from bibreview.config import ReviewContext
from bibreview.document.buffer import BOUNDARY_RE, BibDocument
from bibreview.document.display import DisplaySurface
from bibreview.errors import (
    EndOfDocumentError,
    ParseError,
    ReviewError,
    StartOfDocumentError,
)
from bibreview.models.record import Decision, MarkResult, Record
from bibreview.services.annotation_policy import AnnotationPolicy
from bibreview.services.enrichment_service import EnrichmentService
from bibreview.services.field_store import FieldStore
from bibreview.services.site_fetchers import SiteFetcherRegistry

logger = logging.getLogger(__name__)


@dataclass
class NavigationResult:
    """The record arrived at, and what enrichment did to it."""

    record: Record
    written: list[str] = field(default_factory=list)
    enrichment_error: Optional[ReviewError] = None


class ReviewNavigator:
    """Move through records, enriching and displaying each one.

    The navigator owns the document cursor: it sits just after the current
    record's ``@type{`` boundary and is only changed by navigation. Every
    other routine enters the document through ``_in_document()``, which
    restores the document's own point on exit.
    """

    def __init__(
        self,
        context: ReviewContext,
        display: Optional[DisplaySurface] = None,
        registry: Optional[SiteFetcherRegistry] = None,
        report_unsupported: bool = False,
    ):
        self.context = context
        self.display = display or DisplaySurface()
        self.store = FieldStore(context.document)
        self.policy = AnnotationPolicy(self.store)
        self.enricher = EnrichmentService(
            self.store,
            self.policy,
            registry or SiteFetcherRegistry(),
            report_unsupported=report_unsupported,
        )
        self._cursor = context.document.marker(0)

    @property
    def document(self) -> BibDocument:
        return self.context.document

    @property
    def cursor(self) -> int:
        return self._cursor.position

    @contextmanager
    def _in_document(self) -> Iterator[BibDocument]:
        """Enter the document at the cursor; its point is restored on exit."""
        with self.document.excursion() as doc:
            doc.goto(self._cursor.position)
            yield doc

    # ── Navigation ────────────────────────────────────────────────────

    def _read_at(self, match: "re.Match[str]") -> Optional[Record]:
        """Record starting at a boundary match, or None for ``@string``/``@comment`` blocks."""
        try:
            return self.store.parse(match.start())
        except ParseError as e:
            logger.debug("Skipping non-entry block: %s", e)
            return None

    def next(self) -> NavigationResult:
        """Advance to the next record, skipping blocks that are not entries.

        Raises:
            EndOfDocumentError: If there is no next record (cursor and display unchanged)
        """
        with self._in_document() as doc:
            while True:
                match = doc.search_forward(BOUNDARY_RE)
                if match is None:
                    raise EndOfDocumentError()
                if self._read_at(match) is not None:
                    target = match.end()
                    break
        return self._arrive(target)

    def prev(self) -> NavigationResult:
        """Go back to the previous record, skipping blocks that are not entries.

        The cursor is inside the current record's boundary, so the first
        backward step lands on the current record's start and the next ones
        on earlier boundaries.

        Raises:
            StartOfDocumentError: If no record precedes the current one
        """
        with self._in_document() as doc:
            if doc.search_backward(BOUNDARY_RE) is None:
                raise StartOfDocumentError()
            while True:
                match = doc.search_backward(BOUNDARY_RE)
                if match is None:
                    raise StartOfDocumentError()
                if self._read_at(match) is not None:
                    target = match.end()
                    break
        return self._arrive(target)

    def next_unreviewed(self) -> NavigationResult:
        """Advance to the next record the configured reviewer has not marked.

        Skipped records are neither enriched nor displayed.

        Raises:
            EndOfDocumentError: If no such record remains (cursor and display unchanged)
        """
        reviewer_id = self.context.reviewer_id
        with self._in_document() as doc:
            while True:
                match = doc.search_forward(BOUNDARY_RE)
                if match is None:
                    raise EndOfDocumentError()
                record = self._read_at(match)
                if record is not None and not self.policy.already_reviewed_by(record, reviewer_id):
                    target = match.end()
                    break
        return self._arrive(target)

    def goto(self, key: str) -> NavigationResult:
        """Jump to the record with citation key ``key``.

        Raises:
            RecordNotFoundError: If the document has no such record
        """
        with self._in_document():
            record = self.store.find(key)
            target = BOUNDARY_RE.match(self.document.text, record.start).end()
        return self._arrive(target)

    def _arrive(self, target: int) -> NavigationResult:
        """Make ``target`` the cursor, then enrich and display its record."""
        record = self.store.parse(target)
        self._cursor.position = target

        written, error = self.enricher.try_enrich(record)
        if written:
            record = self.reparse()
        self.display.show(record)
        return NavigationResult(record=record, written=written, enrichment_error=error)

    # ── Current record ────────────────────────────────────────────────

    def reparse(self) -> Record:
        """Fresh view of the current record, e.g. after an in-place edit.

        Raises:
            ParseError: If the cursor is not on a record yet
        """
        with self._in_document() as doc:
            if doc.search_backward(BOUNDARY_RE) is None:
                raise ParseError("No current record")
            return self.store.parse(doc.point)

    current = reparse

    def records(self) -> Iterator[Record]:
        """Every record in the document; the cursor is not moved."""
        with self._in_document():
            yield from self.store.iter_records()

    # ── Review marks ──────────────────────────────────────────────────

    def accept_current(self) -> MarkResult:
        return self._mark(Decision.ACCEPTED)

    def reject_current(self) -> MarkResult:
        return self._mark(Decision.REJECTED)

    def _mark(self, decision: Decision) -> MarkResult:
        record = self.reparse()
        result = self.policy.mark_reviewed(record, self.context.reviewer_id, decision)
        self.display.show(self.reparse())
        return result
