"""ChromaDB vector store provider adapter.

Wraps ``chromadb.PersistentClient`` to implement
:class:`IVectorStoreProvider`.  Collections use cosine distance.  Records
are always written with pre-computed embeddings, so the collection is
opened with a no-op embedding function.

ChromaDB metadata values must be scalars (str, int, float, bool).  List
and dict fields such as ``lecturers`` and ``examinations`` are stored as
JSON strings and their keys are listed under ``_jsonKeys`` so they can be
decoded on the way out.
"""

from __future__ import annotations

import json
import os
import uuid
from enum import Enum
from typing import Any

# Telemetry off before chromadb is imported; some chromadb releases ship a
# posthog client that breaks against the installed posthog version.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import posthog

posthog.disabled = True

import chromadb
import structlog

from campusrag.interfaces.vector_store_provider import IVectorStoreProvider
from campusrag.models.records import Record
from campusrag.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)

_JSON_KEYS_FIELD = "_jsonKeys"
_DIMENSION_FIELD = "dimension"


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Embedding function that must never run; every write carries its vector."""

    def __init__(self) -> None:
        pass

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "campusrag uses pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        return "noop_precomputed"


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store provider backed by ChromaDB with local persistence.

    Parameters
    ----------
    persist_directory:
        Directory holding the ChromaDB files.
    collection_name:
        Collection all reads and writes go to.
    client:
        Optional pre-built client (tests pass an in-memory one).
    """

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "campusrag",
        client: Any | None = None,
    ) -> None:
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._client = client or chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        self._collection: Any | None = None
        self._dimension: int | None = None

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def insert(self, record: Record) -> str:
        record_id = record.id or str(uuid.uuid4())
        collection = self._get_collection()
        self._check_dimension(record.vector)
        try:
            collection.add(
                ids=[record_id],
                embeddings=[record.vector],
                documents=[record.text],
                metadatas=[self._to_chroma_metadata(record.metadata)],
            )
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB insert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return record_id

    async def update(self, record_id: str, record: Record) -> bool:
        collection = self._get_collection()
        self._check_dimension(record.vector)
        try:
            existing = collection.get(ids=[record_id], include=[])
            if not existing["ids"]:
                return False
            collection.upsert(
                ids=[record_id],
                embeddings=[record.vector],
                documents=[record.text],
                metadatas=[self._to_chroma_metadata(record.metadata)],
            )
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB update failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return True

    async def find_one(self, filters: dict[str, Any]) -> Record | None:
        collection = self._get_collection()
        try:
            result = collection.get(
                where=self._translate_filters(filters),
                limit=1,
                include=["documents", "metadatas", "embeddings"],
            )
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB find_one failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        records = self._to_records(
            result.get("ids"),
            result.get("documents"),
            result.get("metadatas"),
            result.get("embeddings"),
        )
        return records[0] if records else None

    async def search(
        self,
        filters: dict[str, Any] | None,
        vector: list[float],
        limit: int,
    ) -> list[Record]:
        collection = self._get_collection()
        self._check_dimension(vector)
        kwargs: dict[str, Any] = {
            "query_embeddings": [vector],
            "n_results": limit,
            "include": ["documents", "metadatas", "embeddings", "distances"],
        }
        where = self._translate_filters(filters)
        if where:
            kwargs["where"] = where

        try:
            result = collection.query(**kwargs)
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB search failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        # query() nests every field one level deeper, one list per query vector.
        records = self._to_records(
            _first(result.get("ids")),
            _first(result.get("documents")),
            _first(result.get("metadatas")),
            _first(result.get("embeddings")),
        )
        logger.debug("chromadb_search", filters=filters, limit=limit, hits=len(records))
        return records

    async def list_collections(self) -> list[str]:
        try:
            collections = self._client.list_collections()
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB list_collections failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        # chromadb >= 0.6 returns names, older releases Collection objects
        return [c if isinstance(c, str) else c.name for c in collections]

    async def create_collection(
        self,
        name: str,
        dimension: int,
        metric: str = "cosine",
    ) -> None:
        metadata = {"hnsw:space": metric, _DIMENSION_FIELD: dimension}
        try:
            collection = self._open_collection(name, metadata)
        except Exception as exc:
            raise RAGError(
                message=f"ChromaDB create_collection failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chromadb_collection_ready", collection=name, dimension=dimension, metric=metric)
        if name == self._collection_name:
            self._collection = collection
            self._dimension = dimension

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """Return ``True`` if the ChromaDB client answers a heartbeat."""
        try:
            self._client.heartbeat()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _open_collection(self, name: str, metadata: dict[str, Any] | None) -> Any:
        # Newer chromadb refuses an embedding function that differs from the
        # persisted one; fall back to whatever the collection was created with.
        try:
            return self._client.get_or_create_collection(
                name=name,
                metadata=metadata,
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            return self._client.get_or_create_collection(name=name, metadata=metadata)

    def _get_collection(self) -> Any:
        if self._collection is None:
            try:
                self._collection = self._open_collection(
                    self._collection_name, {"hnsw:space": "cosine"}
                )
            except Exception as exc:
                raise RAGError(
                    message=f"ChromaDB collection '{self._collection_name}' unavailable: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc
            stored = (self._collection.metadata or {}).get(_DIMENSION_FIELD)
            self._dimension = int(stored) if stored else None
        return self._collection

    def _check_dimension(self, vector: list[float]) -> None:
        if self._dimension is not None and len(vector) != self._dimension:
            raise RAGError(
                message=(
                    f"Vector dimension {len(vector)} does not match collection "
                    f"'{self._collection_name}' dimension {self._dimension}"
                ),
                provider_name=self.get_provider_name(),
            )

    @classmethod
    def _to_records(
        cls,
        ids: list[str] | None,
        documents: list[str | None] | None,
        metadatas: list[dict[str, Any] | None] | None,
        embeddings: Any,
    ) -> list[Record]:
        records: list[Record] = []
        for idx, record_id in enumerate(ids or []):
            text = documents[idx] if documents is not None and idx < len(documents) else None
            if not text:
                continue
            vector: list[float] = []
            if embeddings is not None and idx < len(embeddings) and embeddings[idx] is not None:
                vector = [float(value) for value in embeddings[idx]]
            metadata = metadatas[idx] if metadatas is not None and idx < len(metadatas) else None
            records.append(
                Record(
                    id=record_id,
                    vector=vector,
                    text=text,
                    metadata=cls._from_chroma_metadata(metadata),
                )
            )
        return records

    @staticmethod
    def _to_chroma_metadata(metadata: dict[str, Any]) -> dict[str, str | int | float | bool]:
        """Flatten *metadata* to ChromaDB scalars; ``None`` values are dropped."""
        flat: dict[str, str | int | float | bool] = {}
        json_keys: list[str] = []
        for key, value in metadata.items():
            if value is None:
                continue
            if isinstance(value, Enum):
                value = value.value
            if isinstance(value, (str, int, float, bool)):
                flat[key] = value
            else:
                flat[key] = json.dumps(value, ensure_ascii=False)
                json_keys.append(key)
        if json_keys:
            flat[_JSON_KEYS_FIELD] = ",".join(json_keys)
        return flat

    @staticmethod
    def _from_chroma_metadata(metadata: dict[str, Any] | None) -> dict[str, Any]:
        restored = dict(metadata or {})
        json_keys = restored.pop(_JSON_KEYS_FIELD, "") or ""
        for key in filter(None, str(json_keys).split(",")):
            value = restored.get(key)
            if isinstance(value, str):
                try:
                    restored[key] = json.loads(value)
                except json.JSONDecodeError:
                    logger.warning("chromadb_metadata_decode_failed", key=key)
        return restored

    @staticmethod
    def _translate_filters(filters: dict[str, Any] | None) -> dict[str, Any] | None:
        """Translate a flat equality filter to a ChromaDB ``where`` clause.

        ``{"type": "faq"}`` becomes ``{"type": {"$eq": "faq"}}``; several
        keys are combined with ``$and``.  An empty filter yields ``None``.
        """
        if not filters:
            return None
        clauses: list[dict[str, Any]] = []
        for key, value in filters.items():
            if value is None:
                continue
            if isinstance(value, Enum):
                value = value.value
            clauses.append({key: {"$eq": value}})
        if not clauses:
            return None
        if len(clauses) == 1:
            return clauses[0]
        return {"$and": clauses}


def _first(nested: list[Any] | None) -> Any:
    if nested is None or len(nested) == 0:
        return None
    return nested[0]
