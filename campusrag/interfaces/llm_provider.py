"""Abstract base class for chat-completion providers.

The chat service hands the assembled message list (one system message
carrying the retrieved context, the prior conversation, the new question)
to an implementation of this interface and relays the streamed tokens.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator


# Concrete implementation: OpenAILLMProvider (campusrag/providers/llm/)
class ILLMProvider(ABC):
    """Contract for streaming chat-completion services."""

    @abstractmethod
    def stream_chat(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.3,
    ) -> AsyncIterator[str]:
        """Stream the model's answer to *messages* token by token.

        Parameters
        ----------
        messages:
            OpenAI-style ``{"role": ..., "content": ...}`` dicts.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).

        Yields
        ------
        str
            Content deltas in arrival order.

        Raises
        ------
        campusrag.utils.errors.LLMError
            If the API call fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (API key present)."""
