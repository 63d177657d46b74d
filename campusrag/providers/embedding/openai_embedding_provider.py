"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Supports real OpenAI and OpenAI-compatible endpoints via the
``openai_base_url`` and ``openai_embedding_model`` settings.
"""

from __future__ import annotations

import openai
import structlog

from campusrag.config.settings import Settings
from campusrag.interfaces.embedding_provider import IEmbeddingProvider
from campusrag.utils.errors import RAGError

logger = structlog.get_logger(logger_name=__name__)

_OPENAI_BATCH_LIMIT = 2048

# Known embedding model dimensions.
_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

# Maximum input tokens per text.
_MODEL_MAX_TOKENS: dict[str, int] = {
    "text-embedding-3-small": 8191,
    "text-embedding-3-large": 8191,
    "text-embedding-ada-002": 8191,
}

# Fact sheets mix German compounds, course numbers and punctuation, which
# tokenize denser than plain English prose.
_CHARS_PER_TOKEN = 3.0


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Uses ``text-embedding-3-small`` (1536 dims) by default.  Inputs longer
    than the model's token limit are truncated on a word boundary using a
    character-per-token estimate, so whole-document records of long fact
    sheets still embed.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key

        client_kwargs: dict = {"api_key": self._api_key}
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client_kwargs = client_kwargs
        self._client: openai.AsyncOpenAI | None = None
        self._model = settings.openai_embedding_model or "text-embedding-3-small"
        self._dimension = _MODEL_DIMENSIONS.get(self._model, settings.embedding_dimension)
        self._max_tokens = _MODEL_MAX_TOKENS.get(self._model, 0)
        self._provider_label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Splits into calls of at most 2048 inputs and truncates texts that
        exceed the model's input limit.
        """
        if not texts:
            return []

        if self._max_tokens > 0:
            texts = [self._truncate_to_token_limit(t) for t in texts]

        client = self._get_client()
        try:
            all_embeddings: list[list[float]] = []
            for start in range(0, len(texts), _OPENAI_BATCH_LIMIT):
                batch = texts[start : start + _OPENAI_BATCH_LIMIT]
                response = await client.embeddings.create(
                    input=batch,
                    model=self._model,
                    encoding_format="float",
                )
                all_embeddings.extend(item.embedding for item in response.data)
                logger.debug(
                    "openai_embedding_batch",
                    model=self._model,
                    provider=self._provider_label,
                    batch_size=len(batch),
                    tokens=response.usage.total_tokens if response.usage else None,
                )
            return all_embeddings
        except openai.APIError as exc:
            raise RAGError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""
        result = await self.embed([text])
        if not result:
            raise RAGError(
                message=f"{self._provider_label} returned no embedding",
                provider_name=self.get_provider_name(),
            )
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    def _get_client(self) -> openai.AsyncOpenAI:
        """Build the API client on first use; the SDK refuses an empty key."""
        if self._client is None:
            if not self._api_key:
                raise RAGError(
                    message="OPENAI_API_KEY is not set",
                    provider_name=self.get_provider_name(),
                )
            self._client = openai.AsyncOpenAI(**self._client_kwargs)
        return self._client

    def _truncate_to_token_limit(self, text: str) -> str:
        """Cut *text* at the last word boundary inside the model's input limit."""
        max_chars = int(self._max_tokens * _CHARS_PER_TOKEN)
        if len(text) <= max_chars:
            return text

        truncated = text[:max_chars].rsplit(" ", 1)[0]
        logger.debug(
            "truncating_embedding_input_chars",
            original_chars=len(text),
            truncated_chars=len(truncated),
            model=self._model,
        )
        return truncated
