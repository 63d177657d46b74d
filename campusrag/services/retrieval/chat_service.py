"""Retrieval-augmented answering over the course / FAQ / thesis collection.

Data flow for one user turn:

  1. CLASSIFY  -- lexical signals: ``chunk`` or ``full`` granularity,
                  language, whether the query reads like a question.
  2. EMBED     -- the raw query text, with the same provider used at
                  ingestion time.
  3. BLEND     -- course channel + FAQ channel, ordered by the question
                  signal (see :class:`RetrievalBlender`).
  4. FORMAT    -- retrieved records rendered as context blocks.
  5. ANSWER    -- one system message carrying prompt, context and the
                  question, followed by the prior conversation, streamed
                  from the chat model.

Retrieval never fails the turn: an embedding or store error yields an
empty context and the model answers from the system prompt alone.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, AsyncIterator

import structlog

from campusrag.models.records import QueryClassification
from campusrag.services.retrieval.context_formatter import format_context
from campusrag.services.retrieval.query_classifier import classify
from campusrag.utils.errors import ConfigurationError

if TYPE_CHECKING:
    from campusrag.interfaces.embedding_provider import IEmbeddingProvider
    from campusrag.interfaces.llm_provider import ILLMProvider
    from campusrag.interfaces.vector_store_provider import IVectorStoreProvider
    from campusrag.services.retrieval.retrieval_blender import RetrievalBlender

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_SYSTEM_PROMPT = """You are a helpful assistant for students of the Master programs \
(MACFin, MBI, MGM, MiMM). You answer questions about courses, theses and \
the student help desk using the documents in CONTEXT.

WHEN ASKED ABOUT COURSES:
- Mention the program and the course number (e.g. "8,126") if available
- List the ECTS if known, otherwise leave them out
- Briefly describe the topic
- Mention examination details, language of instruction, lecturers and semester when found
- Be confident and informal

FOR FAQ QUESTIONS:
- Be friendly and helpful like a student assistant
- Answer in the same language as the question (German or English)
- If the FAQ entry has a date and a name of the person who answered, mention both and \
say that the information comes from a similar question answered in the past

If the documents do not contain the answer, say so instead of guessing."""

GERMAN_ANSWER_INSTRUCTION = "WICHTIG: Antworte auf Deutsch, wenn die Frage auf Deutsch gestellt wurde."


def load_system_prompt(path: str | None) -> str:
    """Return the prompt stored at *path*, or :data:`DEFAULT_SYSTEM_PROMPT` when *path* is empty.

    Raises:
        ConfigurationError: If *path* is set but cannot be read.
    """
    if not path:
        return DEFAULT_SYSTEM_PROMPT
    try:
        return Path(path).read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigurationError(f"Cannot read system prompt {path}: {exc}") from exc


class ChatService:
    """Answers one conversation turn with retrieved context.

    Parameters
    ----------
    embedding_provider:
        Embeds the query; must match the provider used at ingestion.
    vector_store:
        Collection searched by *blender*; kept for availability checks.
    llm:
        Streaming chat model producing the answer.
    blender:
        Dual-channel retrieval over *vector_store*.
    system_prompt:
        Instructions placed at the top of the system message.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        llm: ILLMProvider,
        blender: RetrievalBlender,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._llm = llm
        self._blender = blender
        self._system_prompt = system_prompt

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def retrieve_context(
        self,
        query: str,
        classification: QueryClassification | None = None,
    ) -> str:
        """Classify, embed and blend for *query*; return the formatted context.

        Returns ``""`` when the query cannot be embedded or the store
        cannot be searched.
        """
        classification = classification or classify(query)
        try:
            vector = await self._embedding_provider.embed_single(query)
            records = await self._blender.blend(vector, classification)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "context_retrieval_failed",
                store=self._vector_store.get_provider_name(),
                error=str(exc),
            )
            return ""

        logger.info(
            "context_retrieved",
            records=len(records),
            granularity=classification.granularity,
            language=classification.language,
        )
        return format_context(records)

    def build_messages(
        self,
        history: list[dict[str, str]],
        query: str,
        context: str,
        classification: QueryClassification,
    ) -> list[dict[str, str]]:
        """Assemble the message list sent to the chat model.

        The system message holds the prompt, the ``CONTEXT:`` block and the
        ``QUESTION:`` line (plus an instruction to answer in German for
        German queries); *history* follows unchanged, then the query.
        """
        system = f"{self._system_prompt}\n\nCONTEXT:\n{context}\n\n\nQUESTION: {query}"
        if classification.language == "de":
            system += f"\n\n{GERMAN_ANSWER_INSTRUCTION}"

        return [
            {"role": "system", "content": system},
            *history,
            {"role": "user", "content": query},
        ]

    async def stream_answer(self, history: list[dict[str, str]]) -> AsyncIterator[str]:
        """Answer the last user message of *history*, yielding tokens as they arrive.

        Raises
        ------
        ValueError
            If *history* does not end with a user message.
        campusrag.utils.errors.LLMError
            If the chat model fails.
        """
        if not history or history[-1].get("role") != "user":
            raise ValueError("history must end with a user message")

        query = history[-1].get("content", "")
        classification = classify(query)
        context = await self.retrieve_context(query, classification)
        messages = self.build_messages(history[:-1], query, context, classification)

        async for token in self._llm.stream_chat(messages):
            yield token
