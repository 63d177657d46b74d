"""Public interface definitions for all external service providers.

Every external service the pipeline touches is reached exclusively through
the abstract base classes defined in this package.  Concrete adapters live
in ``campusrag/providers/`` and are injected by the CLI at startup; tests
inject in-memory fakes instead.

    Interface              ->  Concrete implementation
    --------------------------------------------------
    IEmbeddingProvider     ->  OpenAIEmbeddingProvider
    IVectorStoreProvider   ->  ChromaDBProvider
    ILLMProvider           ->  OpenAILLMProvider
"""

from campusrag.interfaces.embedding_provider import IEmbeddingProvider
from campusrag.interfaces.llm_provider import ILLMProvider
from campusrag.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = [
    "IEmbeddingProvider",
    "ILLMProvider",
    "IVectorStoreProvider",
]
