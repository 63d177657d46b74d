"""Unit tests for cascading fact sheet metadata extraction."""

from __future__ import annotations

from datetime import date

import pytest

from campusrag.models.records import UNKNOWN_LECTURER
from campusrag.services.ingestion.metadata_extractor import (
    ECTS_STRATEGIES,
    TITLE_STRATEGIES,
    MetadataExtractor,
    canonical_term,
    first_match,
    keyword_vote,
    term_for_month,
)


def _extract(text: str, today: date = date(2024, 10, 1)):
    return MetadataExtractor(today=lambda: today).extract(text, "sheet.pdf")


# ======================================================================
# Full fact sheet
# ======================================================================


class TestSampleFactSheet:
    """Every field recovered from a well-formed sheet."""

    def test_course_fields(self, sample_fact_sheet: str) -> None:
        meta = _extract(sample_fact_sheet)

        assert meta.source == "sheet.pdf"
        assert meta.course_number == "8,126"
        assert meta.title == "Advanced Auditing"
        assert meta.ects == 6
        assert meta.language == "English"
        assert meta.lecturers == ["Meister Nicole", "Schmidt Peter"]
        assert meta.semester == "Fall 2024"

    def test_examinations(self, sample_fact_sheet: str) -> None:
        exams = _extract(sample_fact_sheet).examinations

        assert len(exams) == 2
        first = exams[0]
        assert first.type == "Active participation"
        assert first.mode == "Analog"
        assert first.format == "Individual work"
        assert first.grade_type == "individual grade"
        assert first.weighting == "20%"
        assert exams[1].type == "Written exam"
        assert exams[1].weighting == "80%"

    def test_timetable_line_example(self) -> None:
        text = (
            "8,126: Advanced Auditing\nECTS credits: 6\n...Timetable -- Language -- "
            "Lecturer\n8,126,1.00 Advanced Auditing -- English -- Meister Nicole, Schmidt Peter"
        )
        meta = _extract(text)

        assert meta.course_number == "8,126"
        assert meta.ects == 6
        assert meta.language == "English"
        assert meta.lecturers == ["Meister Nicole", "Schmidt Peter"]


# ======================================================================
# Never raises
# ======================================================================


class TestNeverRaises:
    """Unmatched fields stay absent or take defaults."""

    def test_empty_text(self) -> None:
        meta = _extract("")

        assert meta.course_number is None
        assert meta.title is None
        assert meta.ects is None
        assert meta.semester is None
        assert meta.examinations == []
        assert meta.lecturers == [UNKNOWN_LECTURER]
        assert meta.language == "English"

    def test_non_string_input(self) -> None:
        meta = MetadataExtractor().extract(None, "x.pdf")  # type: ignore[arg-type]
        assert meta.lecturers == [UNKNOWN_LECTURER]

    @pytest.mark.parametrize(
        "text",
        ["--", "8,126", "ECTS", "decentral - (%)", "Semester", "-- -- --\n--", "\f\f"],
    )
    def test_fragments(self, text: str) -> None:
        _extract(text)


# ======================================================================
# Title and ECTS cascades
# ======================================================================


class TestTitleCascade:
    def test_labelled_title(self) -> None:
        assert first_match(TITLE_STRATEGIES, "8,126: Advanced Auditing\nmore") == (
            "8,126",
            "Advanced Auditing",
        )

    def test_title_until_ects_fallback(self) -> None:
        text = "8,126 Advanced Auditing\nECTS credits: 6"
        assert TITLE_STRATEGIES[0](text) is None
        meta = _extract(text)
        assert meta.course_number == "8,126"
        assert meta.title == "Advanced Auditing"

    def test_fallback_ignores_non_course_number(self) -> None:
        text = "Fee 1234,56 payable in advance\nECTS credits: 6"
        assert first_match(TITLE_STRATEGIES, text) is None
        meta = _extract(text)
        assert meta.course_number is None
        assert meta.title is None


class TestEctsCascade:
    def test_hyphenated_matched_by_second_strategy(self) -> None:
        text = "ECTS-Credits: 4"
        assert ECTS_STRATEGIES[0](text) is None
        assert first_match(ECTS_STRATEGIES, text) == 4

    def test_separator_strategy(self) -> None:
        assert first_match(ECTS_STRATEGIES, "ECTS - 5") == 5

    def test_trailing_strategy(self) -> None:
        assert first_match(ECTS_STRATEGIES, "worth 3 ECTS in total") == 3

    def test_zero_is_absent(self) -> None:
        assert _extract("ECTS: 0").ects is None


# ======================================================================
# Language and lecturers
# ======================================================================


class TestLanguageAndLecturers:
    def test_unspaced_timetable(self) -> None:
        meta = _extract("8,126,1.00 Auditing--Deutsch--Müller Hans")
        assert meta.language == "Deutsch"
        assert meta.lecturers == ["Müller Hans"]

    def test_explicit_phrases(self) -> None:
        meta = _extract("Language: English\nLecturer: Anna Weber, Tom Keller")
        assert meta.language == "English"
        assert meta.lecturers == ["Anna Weber", "Tom Keller"]

    def test_keyword_vote_german(self) -> None:
        meta = _extract("Die Vorlesung und die Prüfung mit der Gruppe")
        assert meta.language == "Deutsch"
        assert meta.lecturers == [UNKNOWN_LECTURER]

    def test_keyword_vote_tie_is_english(self) -> None:
        assert keyword_vote("und and") == "English"


# ======================================================================
# Examinations
# ======================================================================


class TestExaminations:
    def test_german_pattern(self) -> None:
        exams = _extract(
            "dezentral - Präsentation, Analog, Gruppenarbeit Gruppennote (40%)"
        ).examinations

        assert len(exams) == 1
        assert exams[0].type == "Präsentation"
        assert exams[0].format == "Gruppenarbeit"
        assert exams[0].grade_type == "group grade"
        assert exams[0].weighting == "40%"

    def test_line_scan_fallback(self) -> None:
        exams = _extract("Final exam (60%)").examinations

        assert len(exams) == 1
        assert exams[0].type == "Exam"
        assert exams[0].mode == "Unknown"
        assert exams[0].weighting == "60%"


# ======================================================================
# Semester
# ======================================================================


class TestSemester:
    def test_german_term(self) -> None:
        assert _extract("Herbstsemester 2023").semester == "Fall 2023"

    def test_labelled_term(self) -> None:
        assert _extract("Semester: Spring 2025").semester == "Spring 2025"

    def test_autumn_maps_to_fall(self) -> None:
        assert _extract("valid for Autumn 2024").semester == "Fall 2024"

    def test_year_only_uses_clock_spring(self) -> None:
        assert _extract("Semester 2025", today=date(2025, 3, 1)).semester == "Spring 2025"

    def test_year_only_uses_clock_fall(self) -> None:
        assert _extract("Semester 2025", today=date(2025, 11, 1)).semester == "Fall 2025"

    def test_unknown_term_name_falls_through(self) -> None:
        assert _extract("Term: Winter 2024", today=date(2024, 10, 1)).semester == "Fall 2024"

    def test_canonical_term(self) -> None:
        assert canonical_term("Frühjahrssemester") == "Spring"
        assert canonical_term("autumn") == "Fall"
        assert canonical_term("winter") is None

    @pytest.mark.parametrize(
        ("month", "term"),
        [(1, "Fall"), (2, "Spring"), (8, "Spring"), (9, "Fall"), (12, "Fall")],
    )
    def test_term_for_month(self, month: int, term: str) -> None:
        assert term_for_month(month) == term
