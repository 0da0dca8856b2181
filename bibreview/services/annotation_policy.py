"""Rules for when to enrich a record and when to write a review mark."""

import logging
from typing import Optional

from bibreview.models.record import (
    ABSTRACT,
    FULL_TEXT_URL,
    REVIEW,
    Decision,
    MarkResult,
    Record,
    format_annotation,
)
from bibreview.services.field_store import FieldStore

logger = logging.getLogger(__name__)


def _filled(record: Record, name: str) -> bool:
    value = record.get(name)
    return isinstance(value, str) and bool(value.strip())


class AnnotationPolicy:
    """Write-if-absent and reviewer-ownership checks over a :class:`FieldStore`."""

    def __init__(self, store: FieldStore):
        self.store = store

    @staticmethod
    def should_enrich(record: Record) -> bool:
        """True unless both abstract and full-text URL are present and non-empty."""
        return not (_filled(record, ABSTRACT) and _filled(record, FULL_TEXT_URL))

    @staticmethod
    def needs_field(record: Record, name: str) -> bool:
        """True if ``name`` is absent or empty."""
        return not _filled(record, name)

    @staticmethod
    def already_reviewed_by(record: Record, reviewer_id: str) -> bool:
        """True iff the review field contains ``reviewer_id`` (case-sensitive)."""
        review = record.get(REVIEW)
        return isinstance(review, str) and reviewer_id in review

    @staticmethod
    def decision_by(record: Record, reviewer_id: str) -> Optional[Decision]:
        """The decision ``reviewer_id`` recorded, or None if they have not."""
        review = record.get(REVIEW)
        if not isinstance(review, str):
            return None
        for decision in Decision:
            if format_annotation(reviewer_id, decision) in review:
                return decision
        return None

    def mark_reviewed(
        self, record: Record, reviewer_id: str, decision: Decision
    ) -> MarkResult:
        """Record ``decision`` by ``reviewer_id`` unless they already did.

        Annotations from other reviewers are kept; the new one is added to
        the same field. The record is re-read first, so passing the same
        stale view twice still yields ALREADY_DONE the second time.

        Raises:
            ValueError: If ``reviewer_id`` is empty
        """
        if not reviewer_id or not reviewer_id.strip():
            raise ValueError("reviewer_id must not be empty")
        record = self.store.parse(record.start)
        if self.already_reviewed_by(record, reviewer_id):
            logger.info("%s already reviewed by %s", record.key, reviewer_id)
            return MarkResult.ALREADY_DONE

        with self.store.at(record):
            self.store.add_field_if_absent(REVIEW, record)
            self.store.write(REVIEW, format_annotation(reviewer_id, decision))
        logger.info("%s marked %s by %s", record.key, decision.value, reviewer_id)
        return MarkResult.WRITTEN
