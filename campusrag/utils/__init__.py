"""Utility modules for campusrag.

- **errors** -- Exception hierarchy rooted at CampusRagError.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **concurrency** -- semaphore-throttled ``asyncio.gather``.
- **text_normalizer** -- merged-word repair and whitespace/name cleanup for
  extracted document text.
"""

from campusrag.utils.concurrency import throttled_gather
from campusrag.utils.errors import (
    CampusRagError,
    ConfigurationError,
    IngestionError,
    LLMError,
    RAGError,
    SourceAccessError,
)
from campusrag.utils.logging import configure_logging, get_logger
from campusrag.utils.text_normalizer import clean_text, normalize, split_names

__all__ = [
    "CampusRagError",
    "ConfigurationError",
    "IngestionError",
    "LLMError",
    "RAGError",
    "SourceAccessError",
    "clean_text",
    "configure_logging",
    "get_logger",
    "normalize",
    "split_names",
    "throttled_gather",
]
