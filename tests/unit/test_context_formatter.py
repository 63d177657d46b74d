"""Unit tests for context block rendering."""

from __future__ import annotations

from campusrag.models.records import Record
from campusrag.services.retrieval.context_formatter import format_context, format_record

_COURSE_META = {
    "type": "chunk",
    "program": "mbi",
    "courseNumber": "8,126",
    "title": "Advanced Auditing",
    "ects": 6,
    "language": "English",
    "lecturers": ["Meister Nicole", "Schmidt Peter"],
    "semester": "Fall 2024",
    "examinations": [
        {
            "type": "Active participation",
            "mode": "Analog",
            "format": "Individual work",
            "gradeType": "individual grade",
            "weighting": "20%",
        }
    ],
}


class TestFormatRecord:
    def test_course_header(self) -> None:
        block = format_record(Record(text="Course body", metadata=_COURSE_META))

        assert block == (
            "MBI | 8,126: Advanced Auditing (6 ECTS)\n"
            "Language: English | Lecturers: Meister Nicole, Schmidt Peter | Semester: Fall 2024\n"
            "Examinations:\n"
            "- Active participation (20%): Individual work, individual grade\n"
            "\n"
            "Course body"
        )

    def test_missing_fields_are_omitted(self) -> None:
        block = format_record(Record(text="Body", metadata={"type": "full", "source": "8126.pdf"}))
        assert block == "8126.pdf\n\nBody"

    def test_unknown_lecturer_is_printed(self) -> None:
        block = format_record(
            Record(text="Body", metadata={"type": "chunk", "title": "T", "lecturers": ["Unknown"]})
        )
        assert block == "T\nLecturers: Unknown\n\nBody"

    def test_faq_text_verbatim(self) -> None:
        text = "KATEGORIE: Bidding\nFRAGE: How many points?"
        assert format_record(Record(text=text, metadata={"type": "faq"})) == text

    def test_thesis_header(self) -> None:
        block = format_record(
            Record(
                text="Title: Digital Twins",
                metadata={
                    "type": "thesis",
                    "titleThesis": "Digital Twins",
                    "student": "Anna",
                    "year": "2021",
                    "supervisor": "Prof X",
                },
            )
        )
        assert block == (
            "Thesis: Digital Twins | Student: Anna | Year: 2021 | Supervisor: Prof X"
            "\n\nTitle: Digital Twins"
        )


class TestFormatContext:
    def test_blocks_separated_by_blank_line(self) -> None:
        records = [
            Record(text="faq one", metadata={"type": "faq"}),
            Record(text="faq two", metadata={"type": "faq"}),
        ]
        assert format_context(records) == "faq one\n\nfaq two"

    def test_empty(self) -> None:
        assert format_context([]) == ""
