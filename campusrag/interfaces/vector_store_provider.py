"""Abstract base class for vector-store service providers.

Defines the contract for storing, finding and searching embedded records.
The pipeline treats the store as a plain similarity-search service: it
writes vector + text + metadata, and reads back records ranked by cosine
similarity under a metadata filter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from campusrag.models.records import Record


# Concrete implementation: ChromaDBProvider (campusrag/providers/vector_store/)
class IVectorStoreProvider(ABC):
    """Contract for vector-store services used by ingestion and retrieval.

    All query and mutation methods are async to support network-backed
    stores without blocking the event loop.

    **Filter syntax** (the *filters* dict of :meth:`find_one` and
    :meth:`search`) is flat equality on metadata keys:

    * ``{"type": "faq"}`` -- FAQ records only.
    * ``{"chunkId": "<sha256>"}`` -- the FAQ record with that fingerprint.
    * ``{"type": "chunk", "program": "MBI"}`` -- every key must match.

    An empty or ``None`` filter matches every record.
    """

    @abstractmethod
    async def insert(self, record: Record) -> str:
        """Store *record* and return its identifier.

        A record without an ``id`` receives a new UUID.

        Raises
        ------
        campusrag.utils.errors.RAGError
            If the write fails or the vector dimension does not match the
            collection.
        """

    @abstractmethod
    async def update(self, record_id: str, record: Record) -> bool:
        """Overwrite text, vector and metadata of an existing record.

        Returns
        -------
        bool
            ``False`` when no record with *record_id* exists.
        """

    @abstractmethod
    async def find_one(self, filters: dict[str, Any]) -> Record | None:
        """Return any one record matching *filters*, or ``None``."""

    @abstractmethod
    async def search(
        self,
        filters: dict[str, Any] | None,
        vector: list[float],
        limit: int,
    ) -> list[Record]:
        """Return up to *limit* records matching *filters*, best match first.

        Parameters
        ----------
        filters:
            Metadata equality filter (see class docstring).
        vector:
            Query embedding; must have the collection's dimension.
        limit:
            Maximum number of records to return.
        """

    @abstractmethod
    async def list_collections(self) -> list[str]:
        """Return the names of all collections in the store."""

    @abstractmethod
    async def create_collection(
        self,
        name: str,
        dimension: int,
        metric: str = "cosine",
    ) -> None:
        """Create collection *name* for vectors of *dimension* under *metric*.

        Creating a collection that already exists is a no-op.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is reachable."""
