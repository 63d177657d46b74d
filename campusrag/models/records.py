"""Record and metadata models for the campusrag knowledge base.

Defines Pydantic v2 models for the records stored in the vector collection,
the per-source metadata shapes attached to them, the query classification
consumed by the retrieval blender, and the counters reported by an
ingestion run.

Metadata models serialise with camelCase keys (``courseNumber``,
``chunkIndex``, ``nameAntwortgeber``) through field aliases, because those
are the keys existing collections and downstream prompt templates use.
They allow extra keys so that a record read back from the store keeps
fields this package does not know about.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN_LECTURER = "Unknown"


class RecordType(str, Enum):
    """Value of the ``type`` metadata key; also the retrieval filter."""

    CHUNK = "chunk"
    FULL = "full"
    FAQ = "faq"
    THESIS = "thesis"


# ---------------------------------------------------------------------------
# Metadata shapes
# ---------------------------------------------------------------------------

class Examination(BaseModel):
    """One graded component of a course, as listed on its fact sheet."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str = Field(description="Examination type, e.g. 'Active participation'.")
    mode: str = Field(default="Unknown", description="Delivery mode, e.g. 'Analog'.")
    format: str = Field(default="Unknown", description="Work format, e.g. 'Individual work'.")
    grade_type: Literal["individual grade", "group grade"] = Field(
        default="individual grade",
        alias="gradeType",
    )
    weighting: str = Field(description="Share of the final grade, e.g. '20%'.")


class _RecordMetadata(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    type: RecordType
    source: str = Field(default="", description="Originating document name.")

    def to_metadata(self) -> dict[str, Any]:
        """Dump to the camelCase dict stored next to the vector, dropping absent fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CourseMetadata(_RecordMetadata):
    """Fields recovered from a course fact sheet plus positional chunk fields."""

    type: RecordType = RecordType.CHUNK
    program: str | None = None
    path: str | None = None
    course_number: str | None = Field(
        default=None,
        alias="courseNumber",
        pattern=r"^\d{1,3},\d{1,3}$",
    )
    title: str | None = None
    ects: int | None = Field(default=None, gt=0)
    language: str | None = None
    lecturers: list[str] = Field(default_factory=lambda: [UNKNOWN_LECTURER])
    semester: str | None = None
    examinations: list[Examination] = Field(default_factory=list)
    chunk_index: int | None = Field(default=None, ge=0, alias="chunkIndex")
    total_chunks: int | None = Field(default=None, ge=1, alias="totalChunks")
    full_document_id: str | None = Field(default=None, alias="fullDocumentId")
    overlap_chars: int | None = Field(
        default=None,
        ge=0,
        alias="overlapChars",
        description="Leading characters shared with the previous chunk.",
    )

    @field_validator("lecturers")
    @classmethod
    def _never_empty(cls, value: list[str]) -> list[str]:
        return value or [UNKNOWN_LECTURER]


class FaqMetadata(_RecordMetadata):
    """Columns of one FAQ row plus its dedup fingerprint."""

    type: RecordType = RecordType.FAQ
    kategorie: str = ""
    titel: str = ""
    frage: str
    antwort: str
    datum: str = ""
    name_antwortgeber: str = Field(default="", alias="nameAntwortgeber")
    language_hint: Literal["de", "en"] = Field(default="en", alias="languageHint")
    chunk_id: str = Field(alias="chunkId", description="Fingerprint of question + answer.")


class ThesisMetadata(_RecordMetadata):
    """Columns of one thesis registry row."""

    type: RecordType = RecordType.THESIS
    title_thesis: str = Field(alias="titleThesis")
    student: str = ""
    year: str = ""
    supervisor: str = ""


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class Record(BaseModel):
    """The unit stored in and returned from the vector collection."""

    model_config = ConfigDict(frozen=True)

    id: str | None = Field(default=None, description="Store-assigned identifier.")
    vector: list[float] = Field(default_factory=list)
    text: str = Field(min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def record_type(self) -> str | None:
        return self.metadata.get("type")


class RecordDraft(BaseModel):
    """A record waiting for its embedding.

    ``embedding_text`` is what gets embedded; it differs from ``text`` for
    FAQ rows, whose enriched search text includes question variations and
    keywords that are not shown to the answer model.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    embedding_text: str | None = None
    metadata: dict[str, Any]
    fingerprint: str | None = None
    label: str = ""

    def text_to_embed(self) -> str:
        return self.embedding_text or self.text

    def to_record(self, vector: list[float], record_id: str | None = None) -> Record:
        return Record(id=record_id, vector=vector, text=self.text, metadata=self.metadata)


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------

class QueryClassification(BaseModel):
    """Lexical signals that steer the retrieval blender."""

    model_config = ConfigDict(frozen=True)

    granularity: Literal["chunk", "full"] = "chunk"
    language: Literal["de", "en"] = "en"
    is_question: bool = False


# ---------------------------------------------------------------------------
# Ingestion counters
# ---------------------------------------------------------------------------

class IngestionCounts(BaseModel):
    """Point-in-time copy of an :class:`IngestionStats` accumulator."""

    model_config = ConfigDict(frozen=True)

    succeeded: int = 0
    updated: int = 0
    failed: int = 0
    duplicates: int = 0
    skipped: int = 0


class IngestionStats:
    """Success/failure/duplicate counters shared by one ingestion run.

    Batch items finish in arbitrary order, so every increment happens under
    a lock.  Pass one instance through :meth:`IngestionService.process_batch`
    calls and read it back with :meth:`snapshot`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._succeeded = 0
        self._updated = 0
        self._failed = 0
        self._duplicates = 0
        self._skipped = 0

    def record_success(self, updated: bool = False) -> None:
        with self._lock:
            if updated:
                self._updated += 1
            else:
                self._succeeded += 1

    def record_failure(self) -> None:
        with self._lock:
            self._failed += 1

    def record_duplicate(self) -> None:
        with self._lock:
            self._duplicates += 1

    def record_skip(self) -> None:
        with self._lock:
            self._skipped += 1

    def snapshot(self) -> IngestionCounts:
        with self._lock:
            return IngestionCounts(
                succeeded=self._succeeded,
                updated=self._updated,
                failed=self._failed,
                duplicates=self._duplicates,
                skipped=self._skipped,
            )


class IngestionResult(BaseModel):
    """Summary returned for one ingested source file."""

    model_config = ConfigDict(frozen=True)

    source: str = Field(description="File name or path that was ingested.")
    records_created: int = Field(default=0, ge=0)
    records_updated: int = Field(default=0, ge=0)
    duplicates: int = Field(default=0, ge=0)
    failures: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    ingestion_time: float = Field(default=0.0, ge=0.0, description="Wall-clock seconds.")
    ingested_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_stats(cls, source: str, stats: IngestionStats, elapsed: float) -> IngestionResult:
        counts = stats.snapshot()
        return cls(
            source=source,
            records_created=counts.succeeded,
            records_updated=counts.updated,
            duplicates=counts.duplicates,
            failures=counts.failed,
            skipped=counts.skipped,
            ingestion_time=round(elapsed, 3),
        )
