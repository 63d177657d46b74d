"""Lexical query classification for the retrieval blender.

Three signals are read off the raw question with plain string checks:

- **granularity** -- ``full`` when the user asks for complete course
  information (``syllabus``, ``vollständige Details``), else ``chunk``.
- **language** -- ``de`` when the query contains umlauts/ß or a German
  interrogative word, else ``en``.
- **is_question** -- a ``?`` anywhere, or an interrogative/auxiliary word
  at the start of the query.

Any failure falls back to the default classification.
"""

from __future__ import annotations

import re

import structlog

from campusrag.models.records import QueryClassification

logger = structlog.get_logger(logger_name=__name__)

FULL_DOCUMENT_PHRASES = (
    "full details",
    "complete information",
    "syllabus",
    "vollständige details",
    "vollständige informationen",
    "lehrplan",
)

_GERMAN_CHARACTERS = re.compile(r"[äöüÄÖÜß]")
_GERMAN_INTERROGATIVES = re.compile(
    r"\b(wie|was|wo|wann|warum|wer|welche|welcher|welches)\b", re.IGNORECASE
)

QUESTION_PREFIXES = (
    "how", "what", "where", "when", "why", "who", "which", "can", "is", "are", "do", "does",
    "wie", "was", "wo", "wann", "warum", "wer", "welche", "welcher", "welches",
    "kann", "ist", "sind", "hat", "haben",
)


def detect_language(text: str) -> str:
    """Return ``"de"`` for German-looking text, else ``"en"``."""
    if _GERMAN_CHARACTERS.search(text) or _GERMAN_INTERROGATIVES.search(text):
        return "de"
    return "en"


def wants_full_document(text: str) -> bool:
    lowered = text.lower()
    return any(phrase in lowered for phrase in FULL_DOCUMENT_PHRASES)


def is_question(text: str) -> bool:
    if "?" in text:
        return True
    # plain prefix match: "Isabel" counts as "is"
    lowered = text.lower()
    return any(lowered.startswith(prefix) for prefix in QUESTION_PREFIXES)


def classify(query: str) -> QueryClassification:
    """Classify *query*; non-string or failing input yields the defaults."""
    if not isinstance(query, str):
        return QueryClassification()
    try:
        return QueryClassification(
            granularity="full" if wants_full_document(query) else "chunk",
            language=detect_language(query),
            is_question=is_question(query),
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("query_classification_failed", error=str(exc))
        return QueryClassification()
