"""Source processor for the help-desk FAQ export (CSV).

Each row has the columns ``Kategorie, Titel, Frage, Datum, Antwort,
NameAntwortgeber``.  A row becomes one FAQ record with two texts:

- the **display text** stored with the record and shown to the answer
  model, a fixed ``KATEGORIE/TITEL/FRAGE/ANTWORT/DATUM/ANTWORTGEBER``
  block;
- the **search text** that is embedded instead, enriched with variations
  of the question (without question marks, rephrased as a statement) and
  a keyword line, so short user questions land close to the right row.

Rows without a question or an answer are skipped.
"""

from __future__ import annotations

import csv
import re
from pathlib import Path
from typing import Literal

import structlog
from pydantic import BaseModel, ConfigDict

from campusrag.models.records import FaqMetadata, RecordDraft
from campusrag.services.ingestion.deduplicator import faq_fingerprint
from campusrag.services.retrieval.query_classifier import detect_language
from campusrag.utils.errors import SourceAccessError
from campusrag.utils.text_normalizer import clean_text

logger = structlog.get_logger(logger_name=__name__)

FAQ_COLUMNS = ("Kategorie", "Titel", "Frage", "Datum", "Antwort", "NameAntwortgeber")

_LEADING_INTERROGATIVE = re.compile(
    r"^(Wie|Was|Wo|Wann|Warum|Wer|Welche|Welcher|Welches|Kann|Ist|Sind|Hat|Haben|Darf|Müssen|Soll|Können)",
    re.IGNORECASE,
)


class FaqEntry(BaseModel):
    """One usable FAQ row with its display and search texts."""

    model_config = ConfigDict(frozen=True)

    kategorie: str = ""
    titel: str = ""
    frage: str
    antwort: str
    datum: str = ""
    name_antwortgeber: str = ""
    display_text: str
    search_text: str
    language_hint: Literal["de", "en"] = "en"
    chunk_id: str

    def to_draft(self, source: str) -> RecordDraft:
        metadata = FaqMetadata(
            source=source,
            kategorie=self.kategorie,
            titel=self.titel,
            frage=self.frage,
            antwort=self.antwort,
            datum=self.datum,
            name_antwortgeber=self.name_antwortgeber,
            language_hint=self.language_hint,
            chunk_id=self.chunk_id,
        )
        return RecordDraft(
            text=self.display_text,
            embedding_text=self.search_text,
            metadata=metadata.to_metadata(),
            fingerprint=self.chunk_id,
            label=(self.titel or self.frage)[:40],
        )


def question_variations(question: str) -> list[str]:
    """The question, the question without ``?``, and the question as a statement."""
    variations = [
        question,
        question.replace("?", ""),
        _LEADING_INTERROGATIVE.sub("", question).replace("?", ".").strip(),
    ]
    return [v for v in variations if v]


def build_display_text(row: dict[str, str], question: str, answer: str) -> str:
    return "\n".join(
        [
            f"KATEGORIE: {row.get('Kategorie') or 'Keine Kategorie'}",
            f"TITEL: {row.get('Titel') or 'Kein Titel'}",
            f"FRAGE: {question}",
            f"ANTWORT: {answer}",
            f"DATUM: {row.get('Datum') or 'Kein Datum'}",
            f"ANTWORTGEBER: {row.get('NameAntwortgeber') or 'Unbekannt'}",
        ]
    )


def build_search_text(row: dict[str, str], question: str, answer: str) -> str:
    category = row.get("Kategorie") or ""
    title = row.get("Titel") or ""
    keywords = " ".join(part for part in (category, title, question) if part)
    return "\n".join(
        [
            f"KATEGORIE: {category}",
            f"TITEL: {title}",
            f"FRAGE: {question}",
            f"FRAGE VARIATIONEN: {' | '.join(question_variations(question))}",
            f"ANTWORT: {answer}",
            f"SUCHBEGRIFFE: {keywords}",
        ]
    )


class FaqCsvProcessor:
    """Reads the FAQ CSV export into :class:`FaqEntry` objects."""

    def read(self, file_path: str | Path) -> list[FaqEntry]:
        """Parse *file_path* and return one entry per complete row.

        Raises
        ------
        SourceAccessError
            If the file cannot be opened or is not valid CSV.
        """
        entries: list[FaqEntry] = []
        skipped = 0
        try:
            # utf-8-sig swallows the BOM spreadsheet exports put in front
            with open(file_path, newline="", encoding="utf-8-sig") as f:
                reader = csv.DictReader(f)
                missing = [c for c in FAQ_COLUMNS if c not in (reader.fieldnames or [])]
                if missing:
                    logger.warning("faq_columns_missing", file_path=str(file_path), missing=missing)
                for row in reader:
                    row = {key: (value or "").strip() for key, value in row.items() if key}
                    entry = self._to_entry(row)
                    if entry is None:
                        skipped += 1
                        logger.info("faq_row_incomplete", titel=row.get("Titel") or "(no title)")
                        continue
                    entries.append(entry)
        except (OSError, csv.Error, UnicodeDecodeError) as exc:
            raise SourceAccessError(
                message=f"Cannot read FAQ CSV {file_path}: {exc}",
                provider_name="csv",
            ) from exc

        logger.info("faq_csv_read", file_path=str(file_path), entries=len(entries), skipped=skipped)
        return entries

    @staticmethod
    def _to_entry(row: dict[str, str]) -> FaqEntry | None:
        if not row.get("Frage") or not row.get("Antwort"):
            return None
        question = clean_text(row["Frage"])
        answer = clean_text(row["Antwort"])
        return FaqEntry(
            kategorie=row.get("Kategorie", ""),
            titel=row.get("Titel", ""),
            frage=question,
            antwort=answer,
            datum=row.get("Datum", ""),
            name_antwortgeber=row.get("NameAntwortgeber", ""),
            display_text=build_display_text(row, question, answer),
            search_text=build_search_text(row, question, answer),
            language_hint=detect_language(question),
            chunk_id=faq_fingerprint(question, answer),
        )
