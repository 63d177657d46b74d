"""Vector store provider implementations.

ChromaDB is the sole vector store implementation.  To use another vector
database, implement IVectorStoreProvider and wire it up in the CLI.
"""

from campusrag.providers.vector_store.chromadb_provider import ChromaDBProvider

__all__ = ["ChromaDBProvider"]
