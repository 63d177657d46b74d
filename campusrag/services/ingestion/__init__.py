"""Document ingestion pipeline for the campusrag knowledge base.

Pipeline stages overview:

1. **Read** (source_processors/) -- PDF fact sheets, the FAQ CSV export and
   the thesis workbook become text or row entries.

2. **Clean** (utils.text_normalizer, boilerplate.py) -- merged words are
   split and the trailing fact sheet page is dropped.

3. **Extract** (metadata_extractor.py / MetadataExtractor) -- ordered
   regex strategies recover course number, title, ECTS, language,
   lecturers, examinations and semester.

4. **Segment** (chunker.py / TextChunker) -- a ``full`` record plus
   overlapping ``chunk`` records that are exact substrings of the text.

5. **Embed and store** (ingestion_service.py / IngestionService) -- batches
   of five, FAQ rows deduplicated by fingerprint (deduplicator.py).
"""

from campusrag.services.ingestion.chunker import TextChunker
from campusrag.services.ingestion.ingestion_service import IngestionService
from campusrag.services.ingestion.metadata_extractor import MetadataExtractor

__all__ = [
    "IngestionService",
    "MetadataExtractor",
    "TextChunker",
]
