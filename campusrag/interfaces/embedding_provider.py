"""Abstract base class for text-embedding service providers.

Defines the contract for turning record and query text into vectors.  The
ingestion service embeds every record through this interface and the chat
service embeds the incoming question, so both sides of a collection always
share one provider and one dimension.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OpenAIEmbeddingProvider (campusrag/providers/embedding/)
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the pipeline.

    Embeddings are consumed by
    :class:`~campusrag.interfaces.vector_store_provider.IVectorStoreProvider`
    for indexing and query-time similarity search.
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.  Each
            inner list has length equal to :meth:`get_dimension`.

        Raises
        ------
        campusrag.utils.errors.RAGError
            If the embedding API call fails.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Parameters
        ----------
        text:
            The text string to embed.

        Returns
        -------
        list[float]
            The embedding vector with length equal to :meth:`get_dimension`.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Must match the dimension the target collection was created with
        (``1536`` for ``text-embedding-3-small``).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai-text-embedding-3-small"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (credentials present)."""
