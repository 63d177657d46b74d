"""OpenAI-compatible chat provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.  The
answer is streamed: :meth:`OpenAILLMProvider.stream_chat` yields content
deltas as they arrive so the CLI can print them immediately.  When
``openai_base_url`` is configured the client talks to that endpoint
instead of api.openai.com.
"""

from __future__ import annotations

from typing import AsyncIterator

import openai
import structlog

from campusrag.config.settings import Settings
from campusrag.interfaces.llm_provider import ILLMProvider
from campusrag.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)

_TIMEOUT_SECONDS = 60.0


class OpenAILLMProvider(ILLMProvider):
    """Streaming chat provider backed by an OpenAI-compatible API.

    Uses ``gpt-4o`` unless ``openai_chat_model`` is set.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key

        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(_TIMEOUT_SECONDS, connect=5.0),
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client_kwargs = client_kwargs
        self._client: openai.AsyncOpenAI | None = None
        self._model = settings.openai_chat_model or "gpt-4o"
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def stream_chat(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.3,
    ) -> AsyncIterator[str]:
        """Stream the completion for *messages*, yielding non-empty content deltas."""
        chunks = 0
        client = self._get_client()
        try:
            stream = await client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=temperature,
                stream=True,
            )
            async for event in stream:
                if not event.choices:
                    continue
                delta = event.choices[0].delta.content
                if delta:
                    chunks += 1
                    yield delta
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._provider_label} timed out after {_TIMEOUT_SECONDS:.0f}s",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "openai_chat_streamed",
            model=self._model,
            provider=self._provider_label,
            chunks=chunks,
        )

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    def _get_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            if not self._api_key:
                raise LLMError(
                    message="OPENAI_API_KEY is not set",
                    provider_name=self.get_provider_name(),
                )
            self._client = openai.AsyncOpenAI(**self._client_kwargs)
        return self._client
