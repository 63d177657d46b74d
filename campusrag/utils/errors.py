"""Custom exception hierarchy for campusrag.

All application exceptions inherit from :class:`CampusRagError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "chromadb", "pymupdf") caused the failure.

The hierarchy is organized by pipeline stage:

    CampusRagError  (base -- catch-all for any campusrag error)
    +-- ConfigurationError   (startup / missing config)
    +-- SourceAccessError    (unreadable PDF, CSV or spreadsheet)
    +-- IngestionError       (a record could not be prepared or stored)
    +-- RAGError             (embedding or vector-store failure)
    +-- LLMError             (any chat completion failure)

Metadata extraction never raises; a field that cannot be recovered is left
absent or set to its documented default instead.
"""


class CampusRagError(Exception):
    """Base exception for all campusrag errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets for
    structured log output, e.g. ``[chromadb] Collection not found``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------

class ConfigurationError(CampusRagError):
    """Raised when required configuration is missing or invalid."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

class SourceAccessError(CampusRagError):
    """Raised when a source document or folder cannot be opened or read."""

    def __init__(
        self,
        message: str = "Source could not be read",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class IngestionError(CampusRagError):
    """Raised when a record cannot be built or written during ingestion."""

    def __init__(
        self,
        message: str = "Record ingestion failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External services
# ---------------------------------------------------------------------------

class RAGError(CampusRagError):
    """Raised when an embedding or vector-store operation fails."""

    def __init__(
        self,
        message: str = "RAG operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(CampusRagError):
    """Raised when a chat completion request fails."""

    def __init__(
        self,
        message: str = "LLM call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
