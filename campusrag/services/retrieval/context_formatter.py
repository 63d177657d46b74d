"""Render retrieved records as the CONTEXT block of the chat prompt.

FAQ records are stored already formatted, so their text is emitted as is.
Course records (``chunk`` and ``full``) get a short header built from their
metadata followed by the record text::

    MBI | 8,126: Advanced Auditing (6 ECTS)
    Language: English | Lecturers: Meister Nicole, Schmidt Peter | Semester: Fall 2024
    Examinations:
    - Active participation (20%): Individual work, individual grade

    <chunk text>

Thesis records get a one-line ``Thesis: ...`` header.  Header parts whose
metadata is missing are left out entirely.
"""

from __future__ import annotations

from typing import Any, Iterable

from campusrag.models.records import Record, RecordType

BLOCK_SEPARATOR = "\n\n"


def format_context(records: Iterable[Record]) -> str:
    """Render *records* in order, separated by blank lines."""
    return BLOCK_SEPARATOR.join(format_record(record) for record in records)


def format_record(record: Record) -> str:
    record_type = record.metadata.get("type")
    if record_type == RecordType.FAQ.value:
        return record.text
    if record_type == RecordType.THESIS.value:
        return _with_header(_thesis_header(record.metadata), record.text)
    if record_type in (RecordType.CHUNK.value, RecordType.FULL.value):
        return _with_header(_course_header(record.metadata), record.text)
    return record.text


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------

def _with_header(header_lines: list[str], text: str) -> str:
    if not header_lines:
        return text
    return "\n".join(header_lines) + BLOCK_SEPARATOR + text


def _present(value: Any) -> bool:
    return value is not None and value != "" and value != []


def _course_header(meta: dict[str, Any]) -> list[str]:
    lines: list[str] = []

    name = meta.get("title") or meta.get("source") or ""
    if _present(meta.get("courseNumber")):
        name = f"{meta['courseNumber']}: {name}" if name else str(meta["courseNumber"])
    if _present(meta.get("ects")):
        name = f"{name} ({meta['ects']} ECTS)" if name else f"{meta['ects']} ECTS"
    first = [str(meta["program"]).upper()] if _present(meta.get("program")) else []
    if name:
        first.append(name)
    if first:
        lines.append(" | ".join(first))

    second: list[str] = []
    if _present(meta.get("language")):
        second.append(f"Language: {meta['language']}")
    lecturers = meta.get("lecturers")
    if isinstance(lecturers, list):
        lecturers = ", ".join(str(name) for name in lecturers if name)
    if _present(lecturers):
        second.append(f"Lecturers: {lecturers}")
    if _present(meta.get("semester")):
        second.append(f"Semester: {meta['semester']}")
    if second:
        lines.append(" | ".join(second))

    exams = [line for line in (_exam_line(exam) for exam in meta.get("examinations") or []) if line]
    if exams:
        lines.append("Examinations:")
        lines.extend(exams)
    return lines


def _exam_line(exam: Any) -> str:
    if not isinstance(exam, dict):
        return ""
    label = exam.get("type") or "Exam"
    if _present(exam.get("weighting")):
        label = f"{label} ({exam['weighting']})"
    details = ", ".join(
        str(exam[key]) for key in ("format", "gradeType") if _present(exam.get(key))
    )
    return f"- {label}: {details}" if details else f"- {label}"


def _thesis_header(meta: dict[str, Any]) -> list[str]:
    parts: list[str] = []
    if _present(meta.get("titleThesis")):
        parts.append(f"Thesis: {meta['titleThesis']}")
    for key, label in (("student", "Student"), ("year", "Year"), ("supervisor", "Supervisor")):
        if _present(meta.get(key)):
            parts.append(f"{label}: {meta[key]}")
    return [" | ".join(parts)] if parts else []
