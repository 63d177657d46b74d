"""Shared pytest fixtures for the campusrag test suite."""

from __future__ import annotations

import hashlib
import math
import struct
import uuid
from typing import Any

import pytest

from campusrag.interfaces.embedding_provider import IEmbeddingProvider
from campusrag.interfaces.vector_store_provider import IVectorStoreProvider
from campusrag.models.records import Record

# ---------------------------------------------------------------------------
# Sample documents
# ---------------------------------------------------------------------------

SAMPLE_FACT_SHEET = (
    "8,126: Advanced Auditing\n"
    "ECTS credits: 6\n"
    "Course information sheet valid for Fall Semester 2024\n"
    "\n"
    "Course description\n"
    "The course covers the audit of financial statements, the role of the "
    "external auditor and the assessment of internal controls. Students work "
    "through case studies from listed companies and discuss recent audit "
    "failures together with the regulatory response to them.\n"
    "\n"
    "Examination\n"
    "decentral - Active participation, Analog, Individual work individual grade (20%)\n"
    "decentral - Written exam, Digital, Individual work individual grade (80%)\n"
    "\n"
    "Timetable -- Language -- Lecturer\n"
    "8,126,1.00 Advanced Auditing -- English -- Meister Nicole, Schmidt Peter\n"
)

SAMPLE_FAQ_CSV = (
    "Kategorie,Titel,Frage,Datum,Antwort,NameAntwortgeber\n"
    "Prüfungen,Abmeldung,Wie melde ich mich von einer Prüfung ab?,01.03.2024,"
    "Über das Studierendenportal bis zum Ende der Abmeldefrist.,Studiensekretariat\n"
    "Bidding,Points,How many bidding points do I get?,15.08.2024,"
    "Every student receives 500 points per semester.,SHSG\n"
    "Sonstiges,Leer,,01.01.2024,Antwort ohne Frage,Niemand\n"
)


@pytest.fixture
def sample_fact_sheet() -> str:
    """Normalized single-page course fact sheet text."""
    return SAMPLE_FACT_SHEET


# ---------------------------------------------------------------------------
# RAG fixtures
# ---------------------------------------------------------------------------

_EMBEDDING_DIM = 128


def _hash_to_vector(text: str, dim: int = _EMBEDDING_DIM) -> list[float]:
    """Generate a deterministic fixed-length unit vector by hashing *text*.

    Bytes are read as unsigned integers and centred around zero, so every
    component is a finite float.
    """
    raw = hashlib.sha256(text.encode("utf-8")).digest()
    while len(raw) < dim * 2:
        raw += hashlib.sha256(raw).digest()
    values = [v - 32768.0 for v in struct.unpack(f"<{dim}H", raw[: dim * 2])]
    magnitude = max(math.sqrt(sum(v * v for v in values)), 1e-10)
    return [v / magnitude for v in values]


class MockEmbeddingProvider(IEmbeddingProvider):
    """In-memory deterministic embedding provider for tests.

    Texts listed in *failing* raise ``RuntimeError`` to simulate API errors.
    """

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.calls: list[str] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_single(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        if text in self.failing:
            raise RuntimeError("embedding service unavailable")
        return _hash_to_vector(text)

    def get_dimension(self) -> int:
        return _EMBEDDING_DIM

    def get_provider_name(self) -> str:
        return "mock-embedding"

    def is_available(self) -> bool:
        return True


class MockVectorStore(IVectorStoreProvider):
    """In-memory vector store backed by a dict of records.

    Search ranks by cosine similarity (dot product of unit vectors) under
    flat equality filters on metadata keys.
    """

    def __init__(self) -> None:
        self.records: dict[str, Record] = {}
        self.collections: dict[str, tuple[int, str]] = {}
        self.fail_inserts = False

    async def insert(self, record: Record) -> str:
        if self.fail_inserts:
            raise RuntimeError("store unavailable")
        record_id = record.id or str(uuid.uuid4())
        self.records[record_id] = record.model_copy(update={"id": record_id})
        return record_id

    async def update(self, record_id: str, record: Record) -> bool:
        if record_id not in self.records:
            return False
        self.records[record_id] = record.model_copy(update={"id": record_id})
        return True

    async def find_one(self, filters: dict[str, Any]) -> Record | None:
        for record in self.records.values():
            if self._matches(record, filters):
                return record
        return None

    async def search(
        self,
        filters: dict[str, Any] | None,
        vector: list[float],
        limit: int,
    ) -> list[Record]:
        candidates = [r for r in self.records.values() if self._matches(r, filters)]
        candidates.sort(
            key=lambda r: sum(a * b for a, b in zip(vector, r.vector)),
            reverse=True,
        )
        return candidates[:limit]

    async def list_collections(self) -> list[str]:
        return list(self.collections)

    async def create_collection(self, name: str, dimension: int, metric: str = "cosine") -> None:
        self.collections.setdefault(name, (dimension, metric))

    def get_provider_name(self) -> str:
        return "mock-store"

    def is_available(self) -> bool:
        return True

    def by_type(self, record_type: str) -> list[Record]:
        return [r for r in self.records.values() if r.metadata.get("type") == record_type]

    @staticmethod
    def _matches(record: Record, filters: dict[str, Any] | None) -> bool:
        return all(record.metadata.get(k) == v for k, v in (filters or {}).items())


@pytest.fixture
def mock_embedding_provider() -> MockEmbeddingProvider:
    """Mock IEmbeddingProvider returning deterministic hash-based vectors."""
    return MockEmbeddingProvider()


@pytest.fixture
def mock_vector_store() -> MockVectorStore:
    """Mock IVectorStoreProvider backed by an in-memory dict."""
    return MockVectorStore()


@pytest.fixture
def faq_csv_path(tmp_path):
    """FAQ export with two complete rows and one row missing its question."""
    path = tmp_path / "faq.csv"
    path.write_text(SAMPLE_FAQ_CSV, encoding="utf-8")
    return path


@pytest.fixture
def mock_settings() -> Any:
    """Return a Settings object with a dummy API key for provider tests."""
    from campusrag.config.settings import Settings

    return Settings(
        openai_api_key="sk-test-key",
        chromadb_persist_dir="/tmp/test_chromadb",
        app_env="test",
    )
