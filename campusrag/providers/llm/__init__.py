"""Chat-completion provider implementations."""

from campusrag.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
