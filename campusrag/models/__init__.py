"""campusrag domain models -- re-exports all public model classes."""

from __future__ import annotations

from campusrag.models.records import (
    UNKNOWN_LECTURER,
    CourseMetadata,
    Examination,
    FaqMetadata,
    IngestionCounts,
    IngestionResult,
    IngestionStats,
    QueryClassification,
    Record,
    RecordDraft,
    RecordType,
    ThesisMetadata,
)

__all__ = [
    "UNKNOWN_LECTURER",
    "CourseMetadata",
    "Examination",
    "FaqMetadata",
    "IngestionCounts",
    "IngestionResult",
    "IngestionStats",
    "QueryClassification",
    "Record",
    "RecordDraft",
    "RecordType",
    "ThesisMetadata",
]
