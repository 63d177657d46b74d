"""Unit tests for fingerprints and in-run duplicate tracking."""

from __future__ import annotations

import hashlib

from campusrag.services.ingestion.deduplicator import (
    Deduplicator,
    DuplicatePolicy,
    faq_fingerprint,
    fingerprint,
)


class TestFingerprint:
    """Tests for fingerprint and faq_fingerprint."""

    def test_is_sha256_hex(self) -> None:
        assert fingerprint("abc") == hashlib.sha256(b"abc").hexdigest()
        assert len(fingerprint("abc")) == 64

    def test_stable(self) -> None:
        assert fingerprint("Frage\nAntwort") == fingerprint("Frage\nAntwort")

    def test_distinct_inputs_differ(self) -> None:
        assert fingerprint("a") != fingerprint("b")

    def test_faq_fingerprint_joins_with_newline(self) -> None:
        assert faq_fingerprint("Q?", "A.") == fingerprint("Q?\nA.")

    def test_faq_fingerprint_separates_question_and_answer(self) -> None:
        assert faq_fingerprint("ab", "c") != faq_fingerprint("a", "bc")


class TestDeduplicator:
    """Tests for the per-run seen set."""

    def test_mark_then_seen(self) -> None:
        dedup = Deduplicator()
        assert not dedup.seen("fp")
        dedup.mark("fp")
        assert dedup.seen("fp")
        assert len(dedup) == 1

    def test_mark_twice_counts_once(self) -> None:
        dedup = Deduplicator()
        dedup.mark("fp")
        dedup.mark("fp")
        assert len(dedup) == 1


class TestDuplicatePolicy:
    def test_values(self) -> None:
        assert DuplicatePolicy("skip") is DuplicatePolicy.SKIP
        assert DuplicatePolicy("update") is DuplicatePolicy.UPDATE
