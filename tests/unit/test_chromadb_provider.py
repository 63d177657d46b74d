"""Unit tests for the ChromaDB vector store provider.

The chromadb client is replaced by a MagicMock passed through the
``client`` argument; the static metadata and filter helpers are tested
directly.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from campusrag.models.records import Record
from campusrag.providers.vector_store.chromadb_provider import ChromaDBProvider, _NoopEmbeddingFunction
from campusrag.utils.errors import RAGError


def _provider(dimension: int | None = 3) -> tuple[ChromaDBProvider, MagicMock, MagicMock]:
    collection = MagicMock()
    collection.metadata = {"hnsw:space": "cosine", "dimension": dimension} if dimension else {}
    client = MagicMock()
    client.get_or_create_collection.return_value = collection
    provider = ChromaDBProvider(persist_directory="/tmp/unused", collection_name="campusrag", client=client)
    return provider, client, collection


def _record(**overrides) -> Record:
    fields = {
        "vector": [0.1, 0.2, 0.3],
        "text": "chunk text",
        "metadata": {"type": "chunk", "lecturers": ["Meister Nicole"], "ects": 6},
    }
    fields.update(overrides)
    return Record(**fields)


class TestInsertAndUpdate:
    @pytest.mark.asyncio
    async def test_insert_assigns_uuid_and_flattens_metadata(self) -> None:
        provider, _, collection = _provider()

        record_id = await provider.insert(_record())

        assert len(record_id) == 36
        kwargs = collection.add.call_args.kwargs
        assert kwargs["ids"] == [record_id]
        assert kwargs["documents"] == ["chunk text"]
        assert kwargs["metadatas"] == [
            {"type": "chunk", "lecturers": '["Meister Nicole"]', "ects": 6, "_jsonKeys": "lecturers"}
        ]

    @pytest.mark.asyncio
    async def test_insert_keeps_given_id(self) -> None:
        provider, _, _ = _provider()
        assert await provider.insert(_record(id="fixed")) == "fixed"

    @pytest.mark.asyncio
    async def test_insert_dimension_mismatch(self) -> None:
        provider, _, collection = _provider(dimension=2)
        with pytest.raises(RAGError):
            await provider.insert(_record())
        collection.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_insert_failure_wrapped(self) -> None:
        provider, _, collection = _provider()
        collection.add.side_effect = RuntimeError("disk full")
        with pytest.raises(RAGError, match="disk full"):
            await provider.insert(_record())

    @pytest.mark.asyncio
    async def test_update_missing_returns_false(self) -> None:
        provider, _, collection = _provider()
        collection.get.return_value = {"ids": []}

        assert await provider.update("nope", _record()) is False
        collection.upsert.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_existing_upserts(self) -> None:
        provider, _, collection = _provider()
        collection.get.return_value = {"ids": ["r1"]}

        assert await provider.update("r1", _record()) is True
        assert collection.upsert.call_args.kwargs["ids"] == ["r1"]


class TestReads:
    @pytest.mark.asyncio
    async def test_find_one_translates_filter_and_decodes(self) -> None:
        provider, _, collection = _provider()
        collection.get.return_value = {
            "ids": ["r1"],
            "documents": ["faq text"],
            "metadatas": [{"type": "faq", "chunkId": "abc"}],
            "embeddings": [[0.1, 0.2, 0.3]],
        }

        record = await provider.find_one({"chunkId": "abc"})

        assert record is not None
        assert record.id == "r1"
        assert record.vector == [0.1, 0.2, 0.3]
        assert collection.get.call_args.kwargs["where"] == {"chunkId": {"$eq": "abc"}}
        assert collection.get.call_args.kwargs["limit"] == 1

    @pytest.mark.asyncio
    async def test_find_one_none(self) -> None:
        provider, _, collection = _provider()
        collection.get.return_value = {"ids": [], "documents": [], "metadatas": [], "embeddings": []}
        assert await provider.find_one({"chunkId": "abc"}) is None

    @pytest.mark.asyncio
    async def test_search_unwraps_nested_results(self) -> None:
        provider, _, collection = _provider()
        collection.query.return_value = {
            "ids": [["a", "b"]],
            "documents": [["first", "second"]],
            "metadatas": [[{"type": "chunk", "lecturers": '["X"]', "_jsonKeys": "lecturers"}, {"type": "chunk"}]],
            "embeddings": [[[0.1, 0.2, 0.3], [0.3, 0.2, 0.1]]],
            "distances": [[0.1, 0.2]],
        }

        records = await provider.search({"type": "chunk"}, [0.1, 0.2, 0.3], 5)

        assert [r.id for r in records] == ["a", "b"]
        assert records[0].metadata == {"type": "chunk", "lecturers": ["X"]}
        kwargs = collection.query.call_args.kwargs
        assert kwargs["n_results"] == 5
        assert kwargs["where"] == {"type": {"$eq": "chunk"}}

    @pytest.mark.asyncio
    async def test_search_without_filter_has_no_where(self) -> None:
        provider, _, collection = _provider()
        collection.query.return_value = {"ids": [[]], "documents": [[]], "metadatas": [[]]}

        assert await provider.search(None, [0.1, 0.2, 0.3], 3) == []
        assert "where" not in collection.query.call_args.kwargs

    @pytest.mark.asyncio
    async def test_search_failure_wrapped(self) -> None:
        provider, _, collection = _provider()
        collection.query.side_effect = RuntimeError("boom")
        with pytest.raises(RAGError):
            await provider.search({"type": "faq"}, [0.1, 0.2, 0.3], 3)


class TestCollections:
    @pytest.mark.asyncio
    async def test_list_collections_accepts_names_and_objects(self) -> None:
        provider, client, _ = _provider()
        legacy = MagicMock()
        legacy.name = "old"
        client.list_collections.return_value = ["campusrag", legacy]

        assert await provider.list_collections() == ["campusrag", "old"]

    @pytest.mark.asyncio
    async def test_create_collection_sets_space_and_dimension(self) -> None:
        provider, client, _ = _provider(dimension=None)

        await provider.create_collection("campusrag", 3, "cosine")

        kwargs = client.get_or_create_collection.call_args.kwargs
        assert kwargs["metadata"] == {"hnsw:space": "cosine", "dimension": 3}
        with pytest.raises(RAGError):
            await provider.insert(_record(vector=[0.1, 0.2]))

    def test_is_available(self) -> None:
        provider, client, _ = _provider()
        assert provider.is_available() is True
        client.heartbeat.side_effect = RuntimeError("down")
        assert provider.is_available() is False


class TestHelpers:
    def test_translate_single_filter(self) -> None:
        assert ChromaDBProvider._translate_filters({"type": "faq"}) == {"type": {"$eq": "faq"}}

    def test_translate_several_filters(self) -> None:
        assert ChromaDBProvider._translate_filters({"type": "chunk", "program": "MBI"}) == {
            "$and": [{"type": {"$eq": "chunk"}}, {"program": {"$eq": "MBI"}}]
        }

    def test_translate_empty(self) -> None:
        assert ChromaDBProvider._translate_filters({}) is None
        assert ChromaDBProvider._translate_filters(None) is None

    def test_metadata_round_trip_of_nested_values(self) -> None:
        metadata = {
            "type": "chunk",
            "examinations": [{"type": "Written exam", "weighting": "80%"}],
            "lecturers": ["Müller Hans"],
            "semester": None,
        }
        flat = ChromaDBProvider._to_chroma_metadata(metadata)

        assert all(isinstance(v, (str, int, float, bool)) for v in flat.values())
        assert "semester" not in flat
        assert ChromaDBProvider._from_chroma_metadata(flat) == {
            "type": "chunk",
            "examinations": [{"type": "Written exam", "weighting": "80%"}],
            "lecturers": ["Müller Hans"],
        }


class TestNoopEmbeddingFunction:
    def test_defines_own_init(self) -> None:
        assert "__init__" in _NoopEmbeddingFunction.__dict__

    def test_refuses_to_embed(self) -> None:
        function = _NoopEmbeddingFunction()
        assert function.name() == "noop_precomputed"
        with pytest.raises(NotImplementedError):
            function(["text"])
