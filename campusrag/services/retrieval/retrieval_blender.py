"""Dual-channel retrieval: course records and FAQ records, blended by position.

Each query runs two similarity searches against the same collection: one
restricted to course records of the requested granularity (``chunk`` or
``full``) and one restricted to FAQ records.  The two ranked lists are
concatenated, FAQ first when the query reads like a question and course
first otherwise, then truncated.  There is no score-based re-ranking; the
order inside each channel is the store's similarity order.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from campusrag.models.records import QueryClassification, Record, RecordType

if TYPE_CHECKING:
    from campusrag.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)


class RetrievalBlender:
    """Blends course and FAQ search results for one query vector.

    Parameters
    ----------
    vector_store:
        Store searched by both channels.
    limit:
        Maximum number of records returned by :meth:`blend` (default 10).
    per_channel_limit:
        Maximum number of records requested from each channel (default 5).
    """

    def __init__(
        self,
        vector_store: IVectorStoreProvider,
        limit: int = 10,
        per_channel_limit: int = 5,
    ) -> None:
        self._vector_store = vector_store
        self._limit = limit
        self._per_channel_limit = per_channel_limit

    async def blend(
        self,
        query_vector: list[float],
        classification: QueryClassification,
    ) -> list[Record]:
        """Search both channels concurrently and merge them by position.

        A channel whose search fails is logged and treated as empty.
        """
        course_hits, faq_hits = await asyncio.gather(
            self._search_channel("course", {"type": classification.granularity}, query_vector),
            self._search_channel("faq", {"type": RecordType.FAQ.value}, query_vector),
        )

        if classification.is_question:
            blended = faq_hits + course_hits
        else:
            blended = course_hits + faq_hits

        logger.debug(
            "retrieval_blended",
            granularity=classification.granularity,
            is_question=classification.is_question,
            course_hits=len(course_hits),
            faq_hits=len(faq_hits),
        )
        return blended[: self._limit]

    async def _search_channel(
        self,
        channel: str,
        filters: dict[str, str],
        query_vector: list[float],
    ) -> list[Record]:
        try:
            return await self._vector_store.search(filters, query_vector, self._per_channel_limit)
        except Exception as exc:  # noqa: BLE001
            logger.warning("retrieval_channel_failed", channel=channel, error=str(exc))
            return []
