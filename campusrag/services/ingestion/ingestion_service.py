"""Orchestrator for the knowledge-base ingestion pipeline.

Pipeline stages: **read -> normalize -> strip -> extract -> segment -> embed -> store**.

The :class:`IngestionService` coordinates the source processors, the
metadata extractor, the segmenter, the embedding provider and the vector
store without any of them knowing about each other.  Each public
``ingest_*`` method follows the same flow:

    1. Source processor -- reads the PDF, CSV or XLSX file
    2. normalize / strip_trailing_page -- course text only
    3. MetadataExtractor -- recovers course number, ECTS, lecturers ...
    4. TextChunker -- one ``full`` draft plus overlapping ``chunk`` drafts
    5. IEmbeddingProvider -- embeds one batch of drafts concurrently
    6. IVectorStoreProvider -- inserts (or, for known FAQ rows, updates)

FAQ rows carry a fingerprint of question and answer.  A row repeated in
the same file is counted as a duplicate; a row already in the store is
skipped or overwritten depending on the :class:`DuplicatePolicy`.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from campusrag.models.records import IngestionResult, IngestionStats, RecordDraft
from campusrag.services.ingestion.boilerplate import strip_trailing_page
from campusrag.services.ingestion.chunker import TextChunker
from campusrag.services.ingestion.deduplicator import Deduplicator, DuplicatePolicy
from campusrag.services.ingestion.metadata_extractor import MetadataExtractor
from campusrag.services.ingestion.source_processors import (
    CoursePdfProcessor,
    FaqCsvProcessor,
    ThesisSheetProcessor,
)
from campusrag.utils.concurrency import throttled_gather
from campusrag.utils.text_normalizer import normalize

if TYPE_CHECKING:
    from campusrag.interfaces.embedding_provider import IEmbeddingProvider
    from campusrag.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_BATCH_SIZE = 5


class IngestionService:
    """Orchestrates ingestion of course fact sheets, FAQ rows and theses.

    Parameters
    ----------
    chunker:
        Splits course text into the ``full`` record and overlapping chunks.
    metadata_extractor:
        Recovers course fields from normalized fact sheet text.
    embedding_provider:
        Generates embedding vectors for record text.
    vector_store:
        Stores embedded records for semantic retrieval.
    collection_name:
        Collection created by :meth:`ensure_collection` when missing.
    batch_size:
        Number of records embedded concurrently per batch.
    duplicate_policy:
        What to do with an FAQ row whose fingerprint is already stored.
    """

    def __init__(
        self,
        chunker: TextChunker,
        metadata_extractor: MetadataExtractor,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        collection_name: str = "campusrag",
        batch_size: int = DEFAULT_BATCH_SIZE,
        duplicate_policy: DuplicatePolicy = DuplicatePolicy.UPDATE,
        pdf_processor: CoursePdfProcessor | None = None,
        faq_processor: FaqCsvProcessor | None = None,
        thesis_processor: ThesisSheetProcessor | None = None,
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._chunker = chunker
        self._metadata_extractor = metadata_extractor
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._collection_name = collection_name
        self._batch_size = batch_size
        self._duplicate_policy = DuplicatePolicy(duplicate_policy)
        self._pdf_processor = pdf_processor or CoursePdfProcessor()
        self._faq_processor = faq_processor or FaqCsvProcessor()
        self._thesis_processor = thesis_processor or ThesisSheetProcessor()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ensure_collection(self) -> bool:
        """Create the configured collection if the store does not have it yet.

        Returns
        -------
        bool
            ``True`` when the collection was created by this call.
        """
        existing = await self._vector_store.list_collections()
        if self._collection_name in existing:
            logger.debug("collection_exists", collection=self._collection_name)
            return False

        dimension = self._embedding_provider.get_dimension()
        await self._vector_store.create_collection(self._collection_name, dimension, "cosine")
        logger.info("collection_created", collection=self._collection_name, dimension=dimension)
        return True

    async def ingest_course_pdf(self, file_path: str | Path, program: str) -> IngestionResult:
        """Ingest one course fact sheet PDF belonging to *program*.

        Raises
        ------
        SourceAccessError
            If the PDF cannot be opened.
        """
        path = Path(file_path)
        raw = self._pdf_processor.read(path)
        return await self.ingest_course_text(raw, source_name=path.name, program=program, path=str(path))

    async def ingest_course_text(
        self,
        raw: str,
        source_name: str,
        program: str | None = None,
        path: str | None = None,
    ) -> IngestionResult:
        """Run the course pipeline on already-extracted fact sheet text.

        1. :func:`normalize` -> split run-together words
        2. :func:`strip_trailing_page` -> drop the last-page boilerplate
        3. :class:`MetadataExtractor` -> course fields
        4. :class:`TextChunker` -> ``full`` draft + ``chunk`` drafts
        5. :meth:`process_batch` -> embed and store, batch by batch
        """
        start = time.monotonic()
        stats = IngestionStats()

        text = strip_trailing_page(normalize(raw)).strip()
        if not text:
            logger.warning("course_text_empty", source=source_name)
            stats.record_skip()
            return IngestionResult.from_stats(source_name, stats, time.monotonic() - start)

        metadata = self._metadata_extractor.extract(text, source_name).model_copy(
            update={"program": program, "path": path}
        )
        full, chunks = self._chunker.build_course_records(text, metadata, document_id=source_name)

        await self._process_in_batches([full, *chunks], stats)
        return self._finish(source_name, stats, start)

    async def ingest_program_directory(
        self,
        base_path: str | Path,
        programs: list[str],
    ) -> list[IngestionResult]:
        """Ingest every PDF in ``base_path/<program>`` for each program.

        An unreadable program folder is logged and skipped; a file that
        fails is logged and reported as a result with one failure.  Neither
        stops the run.
        """
        results: list[IngestionResult] = []
        base = Path(base_path)

        for program in programs:
            folder = base / program
            try:
                pdfs = sorted(p for p in folder.iterdir() if p.suffix.lower() == ".pdf")
            except OSError as exc:
                logger.warning("program_directory_unreadable", program=program, path=str(folder), error=str(exc))
                continue

            logger.info("program_ingestion_started", program=program, files=len(pdfs))
            for pdf in pdfs:
                try:
                    results.append(await self.ingest_course_pdf(pdf, program))
                except Exception as exc:  # noqa: BLE001
                    logger.error("course_ingestion_failed", program=program, file=pdf.name, error=str(exc))
                    results.append(IngestionResult(source=pdf.name, failures=1))

        return results

    async def ingest_faq_csv(self, file_path: str | Path) -> IngestionResult:
        """Ingest the FAQ CSV export, one record per complete row.

        Raises
        ------
        SourceAccessError
            If the CSV cannot be read.
        """
        start = time.monotonic()
        stats = IngestionStats()
        path = Path(file_path)

        entries = self._faq_processor.read(path)
        deduplicator = Deduplicator()
        drafts: list[RecordDraft] = []
        for entry in entries:
            if deduplicator.seen(entry.chunk_id):
                logger.debug("faq_duplicate_in_file", titel=entry.titel, chunk_id=entry.chunk_id[:12])
                stats.record_duplicate()
                continue
            deduplicator.mark(entry.chunk_id)
            drafts.append(entry.to_draft(source=path.name))

        await self._process_in_batches(drafts, stats)
        return self._finish(path.name, stats, start)

    async def ingest_theses(self, file_path: str | Path) -> IngestionResult:
        """Ingest the thesis registry workbook, one record per row.

        Raises
        ------
        SourceAccessError
            If the workbook cannot be opened.
        """
        start = time.monotonic()
        stats = IngestionStats()
        path = Path(file_path)

        drafts = [entry.to_draft(source=path.name) for entry in self._thesis_processor.read(path)]
        await self._process_in_batches(drafts, stats)
        return self._finish(path.name, stats, start)

    async def process_batch(self, drafts: list[RecordDraft], stats: IngestionStats) -> None:
        """Embed *drafts* concurrently, then write them to the store one by one.

        Drafts whose embedding fails are logged and counted as failures; a
        failed store write is counted the same way.  Nothing raises.
        """
        vectors = await throttled_gather(
            [self._embedding_provider.embed_single(d.text_to_embed()) for d in drafts]
        )

        for draft, vector in zip(drafts, vectors):
            if isinstance(vector, BaseException):
                logger.warning("embedding_failed", record=draft.label, error=str(vector))
                stats.record_failure()
                continue
            try:
                await self._store(draft, vector, stats)
            except Exception as exc:  # noqa: BLE001
                logger.warning("store_write_failed", record=draft.label, error=str(exc))
                stats.record_failure()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _process_in_batches(self, drafts: list[RecordDraft], stats: IngestionStats) -> None:
        for i in range(0, len(drafts), self._batch_size):
            await self.process_batch(drafts[i : i + self._batch_size], stats)
            logger.debug("batch_processed", done=min(i + self._batch_size, len(drafts)), total=len(drafts))

    async def _store(self, draft: RecordDraft, vector: list[float], stats: IngestionStats) -> None:
        if draft.fingerprint:
            existing = await self._vector_store.find_one({"chunkId": draft.fingerprint})
            if existing is not None:
                if self._duplicate_policy is DuplicatePolicy.SKIP:
                    logger.debug("record_exists_skipped", record=draft.label)
                    stats.record_duplicate()
                    return
                if await self._vector_store.update(existing.id, draft.to_record(vector, existing.id)):
                    logger.debug("record_updated", record=draft.label)
                    stats.record_success(updated=True)
                    return

        await self._vector_store.insert(draft.to_record(vector))
        stats.record_success()

    @staticmethod
    def _finish(source: str, stats: IngestionStats, start: float) -> IngestionResult:
        result = IngestionResult.from_stats(source, stats, time.monotonic() - start)
        logger.info(
            "ingestion_complete",
            source=source,
            created=result.records_created,
            updated=result.records_updated,
            duplicates=result.duplicates,
            failures=result.failures,
            time_s=result.ingestion_time,
        )
        return result
