"""Tests for enrichment checks and idempotent review marks."""

import pytest

from bibreview.models.record import REVIEW, Decision, MarkResult, Record, format_annotation

from tests.conftest import SAMPLE_BIB

KEY2_OFFSET = SAMPLE_BIB.index("@article{")


def _record(**fields):
    return Record(key="k", entry_type="article", start=0, end=0, fields=fields)


class TestShouldEnrich:
    def test_missing_both(self, policy):
        assert policy.should_enrich(_record(title="x"))

    def test_missing_one(self, policy):
        assert policy.should_enrich(_record(abstract="text"))
        assert policy.should_enrich(_record(fulltexturl="http://x"))

    def test_empty_value_counts_as_missing(self, policy):
        assert policy.should_enrich(_record(abstract="  ", fulltexturl="http://x"))

    def test_both_present(self, policy):
        assert not policy.should_enrich(_record(abstract="text", fulltexturl="http://x"))

    def test_sample_records(self, store, policy):
        assert policy.should_enrich(store.parse(0))
        assert not policy.should_enrich(store.parse(KEY2_OFFSET))


class TestAlreadyReviewed:
    def test_no_review_field(self, policy):
        assert not policy.already_reviewed_by(_record(), "alice")

    def test_substring_match(self, policy):
        record = _record(review="alice: accepted,")
        assert policy.already_reviewed_by(record, "alice")
        assert not policy.already_reviewed_by(record, "bob")

    def test_case_sensitive(self, policy):
        assert not policy.already_reviewed_by(_record(review="alice: accepted,"), "Alice")

    def test_decision_by(self, policy):
        record = _record(review="bob: rejected,alice: accepted,")
        assert policy.decision_by(record, "alice") is Decision.ACCEPTED
        assert policy.decision_by(record, "bob") is Decision.REJECTED
        assert policy.decision_by(record, "carol") is None


class TestMarkReviewed:
    def test_annotation_literal(self):
        assert format_annotation("alice", Decision.ACCEPTED) == "alice: accepted,"
        assert format_annotation("bob", Decision.REJECTED) == "bob: rejected,"

    def test_idempotent(self, document, store, policy):
        record = store.parse(0)
        assert policy.mark_reviewed(record, "alice", Decision.ACCEPTED) is MarkResult.WRITTEN
        after_one = document.text

        assert policy.mark_reviewed(record, "alice", Decision.ACCEPTED) is MarkResult.ALREADY_DONE
        assert document.text == after_one
        assert store.parse(0).get(REVIEW) == "alice: accepted,"

    def test_same_reviewer_cannot_flip(self, store, policy):
        policy.mark_reviewed(store.parse(0), "alice", Decision.ACCEPTED)
        result = policy.mark_reviewed(store.parse(0), "alice", Decision.REJECTED)
        assert result is MarkResult.ALREADY_DONE
        assert store.parse(0).get(REVIEW) == "alice: accepted,"

    def test_multiple_reviewers_accumulate(self, store, policy):
        policy.mark_reviewed(store.parse(0), "alice", Decision.ACCEPTED)
        policy.mark_reviewed(store.parse(0), "bob", Decision.REJECTED)

        review = store.parse(0).get(REVIEW)
        assert review.count("alice: accepted,") == 1
        assert review.count("bob: rejected,") == 1

    def test_only_target_record_changes(self, document, store, policy):
        policy.mark_reviewed(store.parse(KEY2_OFFSET), "alice", Decision.REJECTED)
        assert store.parse(0).get(REVIEW) is None
        assert store.parse(document.text.index("@article{")).get(REVIEW) == "alice: rejected,"

    def test_preserves_point(self, document, store, policy):
        document.goto(5)
        policy.mark_reviewed(store.parse(KEY2_OFFSET), "alice", Decision.ACCEPTED)
        assert document.point == 5

    def test_empty_reviewer_rejected(self, document, store, policy):
        with pytest.raises(ValueError):
            policy.mark_reviewed(store.parse(0), "", Decision.ACCEPTED)
        assert document.text == SAMPLE_BIB
