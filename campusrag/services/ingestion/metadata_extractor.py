"""Cascading metadata extraction for course fact sheets.

Fact sheets are exported from the course catalogue in slightly different
layouts per program and per year, and PDF text extraction adds its own
noise on top.  Instead of one brittle parser, every field is recovered by
an ordered cascade of small strategies:

- **Course number & title** -- ``8,126: Title`` line, then a looser form
  whose title runs until the next ``ECTS`` line.
- **ECTS credits** -- six patterns from ``ECTS credits: 6`` down to "a
  number within 30 characters after ECTS".
- **Language & lecturers** -- the timetable line
  (``8,126,1.00 Title -- English -- Name A, Name B``) in three layouts,
  then any ``--`` line mentioning a language or the course number, then
  explicit ``Language:`` / ``Lecturer:`` phrases, then a German/English
  keyword vote for the language.
- **Examinations** -- English, German and unspaced
  ``decentral - type, mode, format individual grade (20%)`` patterns,
  then a line-by-line scan for exam keywords with a percentage.
- **Semester** -- ``valid for ... Spring 2024`` phrases, bare German
  terms, ``Semester: Fall 2023``, then a bare year near a term keyword
  with the term inferred from the calendar.

Strategies are plain functions ``str -> value | None`` composed with
:func:`first_match`; the first non-``None`` result wins.  Extraction never
raises: a field nobody matches is left absent or set to its default.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Callable, Iterable, Optional, TypeVar

import structlog

from campusrag.models.records import UNKNOWN_LECTURER, CourseMetadata, Examination
from campusrag.utils.text_normalizer import normalize, split_names

logger = structlog.get_logger(logger_name=__name__)

_T = TypeVar("_T")
Strategy = Callable[[str], Optional[_T]]


def first_match(strategies: Iterable[Strategy[_T]], text: str) -> _T | None:
    """Return the first non-``None`` strategy result for *text*."""
    for strategy in strategies:
        result = strategy(text)
        if result is not None:
            return result
    return None


def _named(name: str, fn: Callable) -> Callable:
    fn.__name__ = name
    return fn


# ---------------------------------------------------------------------------
# Course number & title
# ---------------------------------------------------------------------------

_COURSE_NUMBER = re.compile(r"\d{1,3},\d{1,3}")
_TITLE_LABELLED = re.compile(r"(\d{1,3},\d{1,3}):\s*([^\n]+)")
_TITLE_UNTIL_ECTS = re.compile(r"(\d+,\d+)[:\s]+(.+?)(?=\nECTS|\Z)", re.DOTALL)


def _title_from(pattern: re.Pattern[str], name: str) -> Strategy[tuple[Optional[str], Optional[str]]]:
    def strategy(text: str) -> tuple[Optional[str], Optional[str]] | None:
        match = pattern.search(text)
        if not match:
            return None
        number = match.group(1)
        if not _COURSE_NUMBER.fullmatch(number):
            return None
        title = normalize(match.group(2)).strip() or None
        return number, title

    return _named(name, strategy)


TITLE_STRATEGIES = (
    _title_from(_TITLE_LABELLED, "title_labelled"),
    _title_from(_TITLE_UNTIL_ECTS, "title_until_ects"),
)


# ---------------------------------------------------------------------------
# ECTS credits
# ---------------------------------------------------------------------------

def _credits_from(pattern: str, name: str) -> Strategy[int]:
    compiled = re.compile(pattern, re.IGNORECASE)

    def strategy(text: str) -> int | None:
        match = compiled.search(text)
        if not match:
            return None
        value = int(match.group(1))
        # zero credits is a parse artefact; keep looking
        return value if value > 0 else None

    return _named(name, strategy)


ECTS_STRATEGIES = (
    _credits_from(r"ECTS\s*credits:?\s*(\d+)", "ects_labelled"),
    _credits_from(r"ECTS-Credits:?\s*(\d+)", "ects_hyphenated"),
    _credits_from(r"ECTS:?\s*(\d+)", "ects_colon"),
    _credits_from(r"(\d+)\s*ECTS", "ects_trailing"),
    _credits_from(r"ECTS[\s:-]+(\d+)", "ects_separator"),
    _credits_from(r"ECTS[^0-9]{0,30}(\d+)", "ects_proximity"),
)


# ---------------------------------------------------------------------------
# Language & lecturers
# ---------------------------------------------------------------------------

LanguageAndLecturers = tuple[str, list[str]]

_TIMETABLE_SPACED = re.compile(r"(\d{1,3},\d{1,3},\d{1,2}(?:\.00)?)[^-]+ -- ([^-]+) -- ([^-\n]+)")
_TIMETABLE_UNSPACED = re.compile(r"(\d{1,3},\d{1,3},\d{1,2}(?:\.00)?)[^-]+--([^-]+)--([^-\n]+)")
_TIMETABLE_LOOSE = re.compile(r"(\d{1,3},\d{1,3}(?:,\d{1,2}(?:\.00)?)?)[^-]*--([^-]*)--([^-\n]*)")

_LANGUAGE_TOKENS = ("english", "deutsch", "german")
_EXPLICIT_LECTURERS = re.compile(
    r"(?:Dozent(?:en)?|Lecturer[s]?)(?:\s*:\s*|\s+)([^\n\r]+)", re.IGNORECASE
)

_GERMAN_KEYWORDS = ("und", "der", "die", "das", "mit", "für", "prüfung", "vorlesung")
_ENGLISH_KEYWORDS = ("and", "the", "with", "for", "exam", "lecture")


def _timetable_from(pattern: re.Pattern[str], name: str) -> Strategy[LanguageAndLecturers]:
    def strategy(text: str) -> LanguageAndLecturers | None:
        match = pattern.search(text)
        if not match:
            return None
        language = match.group(2).strip()
        if not language:
            return None
        return language, split_names(match.group(3))

    return _named(name, strategy)


def _timetable_free_text(course_number: str | None) -> Strategy[LanguageAndLecturers]:
    prefix = course_number.split(",")[0] if course_number else None

    def strategy(text: str) -> LanguageAndLecturers | None:
        for line in text.split("\n"):
            if "--" not in line:
                continue
            lowered = line.lower()
            if any(token in lowered for token in _LANGUAGE_TOKENS) or (prefix and prefix in line):
                # only the first candidate line is considered
                parts = line.split("--")
                if len(parts) < 3 or not parts[1].strip():
                    return None
                return parts[1].strip(), split_names(parts[2])
        return None

    return _named("timetable_free_text", strategy)


def _explicit_language(text: str) -> str | None:
    lowered = text.lower()
    if "sprache: deutsch" in lowered or "language: german" in lowered:
        return "Deutsch"
    if "sprache: englisch" in lowered or "language: english" in lowered:
        return "English"
    return None


def _explicit_lecturers(text: str) -> list[str] | None:
    match = _EXPLICIT_LECTURERS.search(text)
    if not match:
        return None
    return split_names(match.group(1)) or None


def _count_words(words: Iterable[str], text: str) -> int:
    return sum(
        len(re.findall(rf"\b{re.escape(word)}\b", text, re.IGNORECASE)) for word in words
    )


def keyword_vote(text: str) -> str:
    """Pick ``Deutsch`` or ``English`` by counting common function words; ties are English."""
    german = _count_words(_GERMAN_KEYWORDS, text)
    english = _count_words(_ENGLISH_KEYWORDS, text)
    return "Deutsch" if german > english else "English"


TIMETABLE_STRATEGIES = (
    _timetable_from(_TIMETABLE_SPACED, "timetable_spaced"),
    _timetable_from(_TIMETABLE_UNSPACED, "timetable_unspaced"),
    _timetable_from(_TIMETABLE_LOOSE, "timetable_loose"),
)


# ---------------------------------------------------------------------------
# Examinations
# ---------------------------------------------------------------------------

_EXAM_ENGLISH = re.compile(
    r"decentral\s*-\s*([^,]+),\s*([^,]+),\s*([^(]+)\s+(individual|group)\s+grade\s*\((\d+%)\)",
    re.IGNORECASE,
)
_EXAM_GERMAN = re.compile(
    r"dezentral\s*-\s*([^,]+),\s*([^,]+),\s*([^(]+)\s+(Individual|Gruppen)note\s*\((\d+%)\)",
    re.IGNORECASE,
)
_EXAM_UNSPACED = re.compile(
    r"(?:decentral|dezentral)-([^,]+),([^,]+),([^(]+)(individual|group|Individual|Gruppen)(?:note|grade)\((\d+%)\)",
    re.IGNORECASE,
)

_EXAM_KEYWORDS = ("decentral", "dezentral", "prüfung", "exam", "test", "note", "grade")
_EXAM_WEIGHTING = re.compile(r"\((\d+%)\)")
_EXAM_TYPE = re.compile(r"(?:decentral|dezentral)\s*-\s*([^,]+)", re.IGNORECASE)
_EXAM_MODE = re.compile(r"(?:decentral|dezentral)\s*-\s*[^,]+,\s*([^,]+)", re.IGNORECASE)


def _grade_type(kind: str) -> str:
    return "group grade" if kind.strip().lower() in ("group", "gruppen") else "individual grade"


def _exams_from(pattern: re.Pattern[str], name: str) -> Strategy[list[Examination]]:
    def strategy(text: str) -> list[Examination] | None:
        exams = [
            Examination(
                type=normalize(match.group(1).strip()),
                mode=normalize(match.group(2).strip()),
                format=normalize(match.group(3).strip()),
                grade_type=_grade_type(match.group(4)),
                weighting=match.group(5).strip(),
            )
            for match in pattern.finditer(text)
        ]
        return exams or None

    return _named(name, strategy)


def _exams_from_lines(text: str) -> list[Examination] | None:
    exams: list[Examination] = []
    for line in text.split("\n"):
        lowered = line.lower()
        if not any(keyword in lowered for keyword in _EXAM_KEYWORDS):
            continue
        if "%" not in line and "pass" not in line:
            continue
        weighting = _EXAM_WEIGHTING.search(line)
        if not weighting:
            continue
        type_match = _EXAM_TYPE.search(line)
        mode_match = _EXAM_MODE.search(line)
        exams.append(
            Examination(
                type=normalize(type_match.group(1).strip()) if type_match else "Exam",
                mode=normalize(mode_match.group(1).strip()) if mode_match else "Unknown",
                format="Unknown",
                grade_type="group grade" if ("group" in lowered or "gruppen" in lowered) else "individual grade",
                weighting=weighting.group(1),
            )
        )
    return exams or None


EXAM_STRATEGIES = (
    _exams_from(_EXAM_ENGLISH, "exams_english"),
    _exams_from(_EXAM_GERMAN, "exams_german"),
    _exams_from(_EXAM_UNSPACED, "exams_unspaced"),
    _named("exams_from_lines", _exams_from_lines),
)


# ---------------------------------------------------------------------------
# Semester
# ---------------------------------------------------------------------------

_SEMESTER_VALID_FOR = re.compile(
    r"(?:valid for|version:|gültig für|Version)[\s\S]*?"
    r"(Spring|Fall|Autumn|Frühjahrssemester|Herbstsemester)\s+(?:Semester\s+)?(\d{4})",
    re.IGNORECASE,
)
_SEMESTER_GERMAN = re.compile(r"(Frühjahrssemester|Herbstsemester)\s*(\d{4})", re.IGNORECASE)
_SEMESTER_LABELLED = re.compile(r"(?:Semester|Term)[\s:]*([A-Za-z]+)[\s-]*(\d{4})", re.IGNORECASE)
_SEMESTER_YEAR_ONLY = re.compile(r"(?:semester|term|jahr)[^0-9]{0,30}(\d{4})", re.IGNORECASE)

_TERM_NAMES = {"spring": "Spring", "fall": "Fall", "autumn": "Fall"}


def canonical_term(name: str) -> str | None:
    """Map an English or German term name to ``Spring`` / ``Fall``."""
    lowered = name.lower()
    if "frühjahr" in lowered:
        return "Spring"
    if "herbst" in lowered:
        return "Fall"
    return _TERM_NAMES.get(lowered)


def _semester_from(pattern: re.Pattern[str], name: str) -> Strategy[str]:
    def strategy(text: str) -> str | None:
        match = pattern.search(text)
        if not match:
            return None
        term = canonical_term(match.group(1))
        if term is None:
            return None
        return f"{term} {match.group(2)}"

    return _named(name, strategy)


SEMESTER_STRATEGIES = (
    _semester_from(_SEMESTER_VALID_FOR, "semester_valid_for"),
    _semester_from(_SEMESTER_GERMAN, "semester_german"),
    _semester_from(_SEMESTER_LABELLED, "semester_labelled"),
)


def term_for_month(month: int) -> str:
    """February through August belong to the spring term."""
    return "Spring" if 2 <= month <= 8 else "Fall"


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------

class MetadataExtractor:
    """Recovers :class:`CourseMetadata` from normalized fact sheet text.

    Parameters
    ----------
    today:
        Clock used by the year-only semester fallback (defaults to
        :meth:`datetime.date.today`).
    debug:
        Log every strategy hit and miss at DEBUG level.
    """

    def __init__(
        self,
        today: Callable[[], date] = date.today,
        debug: bool = False,
    ) -> None:
        self._today = today
        self._debug = debug

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, text: str, source_name: str) -> CourseMetadata:
        """Extract every course field from *text*.

        Never raises; unmatched fields stay absent (``ects``, ``semester``,
        ``courseNumber``, ``title``) or take their defaults (``lecturers``
        is ``["Unknown"]``, ``examinations`` is ``[]``).
        """
        if not isinstance(text, str):
            text = ""

        course_number, title = self._run("title", TITLE_STRATEGIES, text) or (None, None)
        ects = self._run("ects", ECTS_STRATEGIES, text)
        language, lecturers = self._language_and_lecturers(text, course_number)
        examinations = self._run("examinations", EXAM_STRATEGIES, text) or []
        semester = self._run("semester", (*SEMESTER_STRATEGIES, self._semester_year_only), text)

        metadata = CourseMetadata(
            source=source_name,
            course_number=course_number,
            title=title,
            ects=ects,
            language=language,
            lecturers=lecturers,
            semester=semester,
            examinations=examinations,
        )
        logger.debug(
            "metadata_extracted",
            source=source_name,
            course_number=course_number,
            ects=ects,
            language=language,
            lecturers=len(lecturers),
            examinations=len(examinations),
            semester=semester,
        )
        return metadata

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run(self, field: str, strategies: Iterable[Strategy[_T]], text: str) -> _T | None:
        """:func:`first_match` with per-strategy debug logging and error isolation."""
        for strategy in strategies:
            try:
                result = strategy(text)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "extraction_strategy_error",
                    field=field,
                    strategy=strategy.__name__,
                    error=str(exc),
                )
                continue
            if self._debug:
                logger.debug(
                    "extraction_strategy",
                    field=field,
                    strategy=strategy.__name__,
                    hit=result is not None,
                )
            if result is not None:
                return result
        return None

    def _language_and_lecturers(
        self, text: str, course_number: str | None
    ) -> tuple[str, list[str]]:
        found = self._run(
            "language_lecturers",
            (*TIMETABLE_STRATEGIES, _timetable_free_text(course_number)),
            text,
        )
        if found is not None:
            language, lecturers = found
        else:
            language = self._run("language", (_explicit_language,), text)
            lecturers = self._run("lecturers", (_explicit_lecturers,), text) or []

        if not language:
            language = keyword_vote(text)
        return language, lecturers or [UNKNOWN_LECTURER]

    def _semester_year_only(self, text: str) -> str | None:
        """Bare year near a term keyword; the term comes from the injected clock."""
        match = _SEMESTER_YEAR_ONLY.search(text)
        if not match:
            return None
        return f"{term_for_month(self._today().month)} {match.group(1)}"
